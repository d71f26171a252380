"""
Win probability model for a single player-vs-opponent pairing.

Five independent factors, each in probability space around a neutral 0.5,
are blended with fixed weights. Missing data never raises: the factor
stays at 0.5 and contributes no evidence units, which lowers confidence.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_POLICY, MatchupPolicy
from .models import (
    GameFormat, HeadToHead, Player, PlayerStats, RiskLevel,
    WinProbabilityFactors, WinProbabilityResult
)
from .skill_levels import base_win_probability, expected_ppm

logger = logging.getLogger(__name__)

NEUTRAL = 0.5

# (value, evidence units)
Factor = Tuple[float, int]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def skill_level_factor(
    player: Player,
    opponent: Player,
    game_format: GameFormat = GameFormat.NINE_BALL
) -> Factor:
    """Handicap-based probability. Always available."""
    return base_win_probability(player.skill_level, opponent.skill_level, game_format), 1


def win_percentage_factor(
    player_stats: Optional[PlayerStats],
    opponent_stats: Optional[PlayerStats]
) -> Factor:
    """Season win rate difference, needs at least one match on both sides."""
    if not player_stats or not opponent_stats:
        return NEUTRAL, 0
    if player_stats.matches_played == 0 or opponent_stats.matches_played == 0:
        return NEUTRAL, 0

    delta = player_stats.win_pct / 100 - opponent_stats.win_pct / 100
    return _clamp(NEUTRAL + delta * 0.5, 0.2, 0.8), 2


def head_to_head_factor(
    head_to_head: Optional[HeadToHead],
    policy: MatchupPolicy = DEFAULT_POLICY
) -> Factor:
    """
    Head-to-head win rate regressed toward 0.5.
    One game barely moves it; h2h_full_weight_games or more is taken at face value.
    """
    if head_to_head is None or head_to_head.total_games <= 0:
        return NEUTRAL, 0

    raw = head_to_head.wins / head_to_head.total_games
    shrink = min(head_to_head.total_games / policy.h2h_full_weight_games, 1)
    return NEUTRAL + (raw - NEUTRAL) * shrink, head_to_head.total_games


def _average_win_rate(stats: Sequence[PlayerStats]) -> float:
    return sum(s.win_pct for s in stats) / len(stats) / 100


def _season_win_rate(stats: Optional[PlayerStats]) -> float:
    # Zero or missing season win pct is treated as no information
    if stats and stats.win_pct:
        return stats.win_pct / 100
    return NEUTRAL


def recent_form_factor(
    player_stats: Optional[PlayerStats],
    opponent_stats: Optional[PlayerStats],
    recent_player_stats: Optional[Sequence[PlayerStats]],
    recent_opponent_stats: Optional[Sequence[PlayerStats]] = None
) -> Factor:
    """Momentum: recent win rate relative to season win rate, ours vs theirs."""
    if not recent_player_stats:
        return NEUTRAL, 0

    player_trend = NEUTRAL + (
        _average_win_rate(recent_player_stats) - _season_win_rate(player_stats)
    ) * 2

    opponent_trend = NEUTRAL
    if recent_opponent_stats:
        opponent_trend = NEUTRAL + (
            _average_win_rate(recent_opponent_stats) - _season_win_rate(opponent_stats)
        ) * 2

    value = NEUTRAL + (player_trend - opponent_trend) * 0.5
    return _clamp(value, 0.3, 0.7), len(recent_player_stats)


def ppm_efficiency_factor(
    player: Player,
    player_stats: Optional[PlayerStats],
    opponent: Player,
    opponent_stats: Optional[PlayerStats],
    game_format: GameFormat = GameFormat.NINE_BALL
) -> Factor:
    """Points per match relative to what the skill level is expected to score."""
    if not player_stats or not opponent_stats:
        return NEUTRAL, 0

    player_eff = player_stats.ppm / expected_ppm(player.skill_level, game_format)
    opponent_eff = opponent_stats.ppm / expected_ppm(opponent.skill_level, game_format)
    return _clamp(NEUTRAL + (player_eff - opponent_eff) * 0.25, 0.3, 0.7), 2


def blend_factors(
    factors: WinProbabilityFactors,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> float:
    """Weighted sum of the factors, before the output clamp."""
    w = policy.weights
    return (
        w.skill_level_advantage * factors.skill_level_advantage
        + w.win_percentage_delta * factors.win_percentage_delta
        + w.head_to_head_record * factors.head_to_head_record
        + w.recent_form_trend * factors.recent_form_trend
        + w.ppm_efficiency * factors.ppm_efficiency
    )


def calculate_win_probability(
    player: Player,
    player_stats: Optional[PlayerStats],
    opponent: Player,
    opponent_stats: Optional[PlayerStats],
    head_to_head: Optional[HeadToHead] = None,
    recent_player_stats: Optional[Sequence[PlayerStats]] = None,
    recent_opponent_stats: Optional[Sequence[PlayerStats]] = None,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> WinProbabilityResult:
    """Probability that player beats opponent, with confidence."""
    skill, skill_units = skill_level_factor(player, opponent, game_format)
    win_pct, win_pct_units = win_percentage_factor(player_stats, opponent_stats)
    h2h, h2h_units = head_to_head_factor(head_to_head, policy)
    form, form_units = recent_form_factor(
        player_stats, opponent_stats, recent_player_stats, recent_opponent_stats
    )
    ppm, ppm_units = ppm_efficiency_factor(
        player, player_stats, opponent, opponent_stats, game_format
    )

    factors = WinProbabilityFactors(
        skill_level_advantage=skill,
        win_percentage_delta=win_pct,
        head_to_head_record=h2h,
        recent_form_trend=form,
        ppm_efficiency=ppm,
    )
    data_points = skill_units + win_pct_units + h2h_units + form_units + ppm_units

    probability = _clamp(
        blend_factors(factors, policy), policy.min_probability, policy.max_probability
    )
    confidence = min(data_points / policy.confidence_saturation, 1)
    logger.debug(
        f"{player.name} vs {opponent.name}: p={probability:.3f} "
        f"({data_points} data points)"
    )

    return WinProbabilityResult(
        probability=probability,
        factors=factors,
        confidence=confidence,
        data_points=data_points,
    )


def assess_matchup_risk(
    win_probability: float,
    our_score: int,
    their_score: int,
    game_number: int,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> RiskLevel:
    """Risk label for playing a matchup at this point in the match."""
    games_remaining = policy.games_per_match - game_number + 1
    deficit = their_score - our_score

    def label(low: float, medium: float) -> RiskLevel:
        if win_probability > low:
            return RiskLevel.LOW
        if win_probability > medium:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    # Ahead: room for lower probability matchups
    if our_score > their_score:
        return label(0.35, 0.25)
    # Must win every remaining game
    if deficit >= games_remaining:
        return label(0.5, 0.4)
    return label(0.45, 0.35)


def generate_reasoning(
    player: Player,
    opponent: Player,
    factors: WinProbabilityFactors,
    head_to_head: Optional[HeadToHead] = None
) -> List[str]:
    """Short, deterministic explanations for a matchup."""
    reasons = []

    diff = player.skill_level - opponent.skill_level
    if diff > 0:
        reasons.append(
            f"{player.name} is a higher skill level "
            f"(SL{player.skill_level} vs SL{opponent.skill_level})"
        )
    elif diff < 0:
        reasons.append(
            f"{player.name} gets favorable handicap "
            f"(SL{player.skill_level} vs SL{opponent.skill_level})"
        )
    else:
        reasons.append(f"Even skill level matchup (both SL{player.skill_level})")

    if factors.win_percentage_delta > 0.55:
        reasons.append(f"{player.name} has a higher win percentage this season")
    elif factors.win_percentage_delta < 0.45:
        reasons.append(f"{opponent.name} has been winning more consistently")

    if head_to_head and head_to_head.total_games > 0:
        h = head_to_head
        win_rate = int(h.wins / h.total_games * 100 + 0.5)
        if win_rate > 55:
            reasons.append(f"{player.name} is {h.wins}-{h.losses} against {opponent.name}")
        elif win_rate < 45:
            reasons.append(
                f"{opponent.name} has won most of their matchups ({h.losses}-{h.wins})"
            )
        else:
            reasons.append(f"Even head-to-head history ({h.wins}-{h.losses})")

    if factors.recent_form_trend > 0.55:
        reasons.append(f"{player.name} has been performing well recently")
    elif factors.recent_form_trend < 0.45:
        reasons.append(f"{player.name} may be in a slump lately")

    return reasons
