"""
APA skill level tables.
Points (9-ball) or games (8-ball) each skill level needs to win a match,
plus the expected output of an average player at that level.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import GameFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkillLevelInfo:
    """One row of a skill level table."""
    level: int
    points_needed: int
    expected_ppm: float  # Expected points per match for an average player
    description: str


# Official APA 9-ball point requirements
NINE_BALL_SKILL_LEVELS: List[SkillLevelInfo] = [
    SkillLevelInfo(1, 14, 10, "Beginner"),
    SkillLevelInfo(2, 19, 14, "Novice"),
    SkillLevelInfo(3, 25, 19, "Intermediate"),
    SkillLevelInfo(4, 31, 24, "Advanced Intermediate"),
    SkillLevelInfo(5, 38, 30, "Skilled"),
    SkillLevelInfo(6, 46, 37, "Advanced"),
    SkillLevelInfo(7, 55, 45, "Expert"),
    SkillLevelInfo(8, 65, 54, "Semi-Pro"),
    SkillLevelInfo(9, 75, 63, "Professional"),
]

# 8-ball races are counted in games
EIGHT_BALL_SKILL_LEVELS: List[SkillLevelInfo] = [
    SkillLevelInfo(2, 2, 1.5, "Beginner"),
    SkillLevelInfo(3, 2, 1.5, "Novice"),
    SkillLevelInfo(4, 3, 2.2, "Intermediate"),
    SkillLevelInfo(5, 4, 3.0, "Advanced Intermediate"),
    SkillLevelInfo(6, 5, 3.8, "Skilled"),
    SkillLevelInfo(7, 5, 3.8, "Advanced"),
]

SKILL_LEVEL_TABLES: Dict[GameFormat, List[SkillLevelInfo]] = {
    GameFormat.NINE_BALL: NINE_BALL_SKILL_LEVELS,
    GameFormat.EIGHT_BALL: EIGHT_BALL_SKILL_LEVELS,
}

# Mid-table row used for unknown skill levels
DEFAULT_SKILL_LEVEL: Dict[GameFormat, int] = {
    GameFormat.NINE_BALL: 5,
    GameFormat.EIGHT_BALL: 4,
}

# Higher skill levels win slightly more than the handicap implies
SKILL_EDGE_PER_LEVEL = 0.015
# Adjustment per 100% difference in race length
POINT_RATIO_WEIGHT = 0.05
MIN_BASE_PROBABILITY = 0.2
MAX_BASE_PROBABILITY = 0.8


def skill_level_info(
    skill_level: int,
    game_format: GameFormat = GameFormat.NINE_BALL
) -> Optional[SkillLevelInfo]:
    """Look up a table row, or None for an unknown level."""
    for info in SKILL_LEVEL_TABLES[game_format]:
        if info.level == skill_level:
            return info
    return None


def _info_or_default(skill_level: int, game_format: GameFormat) -> SkillLevelInfo:
    info = skill_level_info(skill_level, game_format)
    if info is None:
        default_level = DEFAULT_SKILL_LEVEL[game_format]
        logger.debug(f"Unknown skill level {skill_level!r}, using SL{default_level}")
        info = skill_level_info(default_level, game_format)
    return info


def points_needed(skill_level: int, game_format: GameFormat = GameFormat.NINE_BALL) -> int:
    """Race target for a skill level. Unknown levels get the mid-table default."""
    return _info_or_default(skill_level, game_format).points_needed


def expected_ppm(skill_level: int, game_format: GameFormat = GameFormat.NINE_BALL) -> float:
    """Expected points per match for an average player at this level."""
    return _info_or_default(skill_level, game_format).expected_ppm


@dataclass(frozen=True)
class Handicap:
    """Race targets for a pairing."""
    player_needs: int
    opponent_needs: int
    handicap_advantage: float  # Positive favors the player


def calculate_handicap(
    player_skill_level: int,
    opponent_skill_level: int,
    game_format: GameFormat = GameFormat.NINE_BALL
) -> Handicap:
    """
    Handicap for player vs opponent.
    An SL3 (needs 25) against an SL7 (needs 55) gets a large advantage.
    """
    player_needs = points_needed(player_skill_level, game_format)
    opponent_needs = points_needed(opponent_skill_level, game_format)
    return Handicap(
        player_needs=player_needs,
        opponent_needs=opponent_needs,
        handicap_advantage=(opponent_needs - player_needs) / opponent_needs,
    )


def race_format(
    player_skill_level: int,
    opponent_skill_level: int,
    game_format: GameFormat = GameFormat.NINE_BALL
) -> str:
    """Race string, e.g. 'Race to 38-25'."""
    a = points_needed(player_skill_level, game_format)
    b = points_needed(opponent_skill_level, game_format)
    return f"Race to {max(a, b)}-{min(a, b)}"


def base_win_probability(
    skill_level: int,
    opponent_skill_level: int,
    game_format: GameFormat = GameFormat.NINE_BALL
) -> float:
    """
    Win probability from the handicap alone.

    Perfect handicapping would give 0.5. Two adjustments are applied:
    a small per-level edge for the higher skill level, and a bonus when
    the opponent's race is longer than ours. Clamped to [0.2, 0.8].
    """
    player_needs = points_needed(skill_level, game_format)
    opponent_needs = points_needed(opponent_skill_level, game_format)

    skill_adjustment = (skill_level - opponent_skill_level) * SKILL_EDGE_PER_LEVEL
    point_adjustment = (opponent_needs / player_needs - 1) * POINT_RATIO_WEIGHT

    probability = 0.5 + skill_adjustment + point_adjustment
    return max(MIN_BASE_PROBABILITY, min(MAX_BASE_PROBABILITY, probability))


def table_rows(game_format: GameFormat = GameFormat.NINE_BALL) -> List[Tuple[int, int, float, str]]:
    """Rows for display, ordered by skill level."""
    return [
        (i.level, i.points_needed, i.expected_ppm, i.description)
        for i in sorted(SKILL_LEVEL_TABLES[game_format], key=lambda i: i.level)
    ]
