"""
Data models for the APA Match-Up engine.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Tuple
from enum import Enum


class GameFormat(Enum):
    """League game variant."""
    NINE_BALL = "nine"
    EIGHT_BALL = "eight"


class GameResult(Enum):
    """Outcome of a single game slot, from our side."""
    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"


class Side(Enum):
    """Which team a roster or game slot belongs to."""
    US = "us"
    THEM = "them"


class CoinTossChoice(Enum):
    """What to do after winning the coin toss."""
    THROW_FIRST = "throw_first"
    DEFER = "defer"


class RiskLevel(Enum):
    """Risk label for a matchup given the match state."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _check_counts(matches_played: int, matches_won: int):
    if matches_played < 0 or matches_won < 0:
        raise ValueError("Match counts cannot be negative")
    if matches_won > matches_played:
        raise ValueError(
            f"matches_won ({matches_won}) cannot exceed matches_played ({matches_played})"
        )


def _win_pct(matches_won: int, matches_played: int) -> float:
    if matches_played == 0:
        return 0.0
    return matches_won / matches_played * 100


@dataclass
class PlayerStats:
    """Stats for one player over one period (session)."""
    player_id: int
    matches_played: int = 0
    matches_won: int = 0
    ppm: float = 0.0  # Points per match
    pa: float = 0.0  # Points awarded, fraction 0-1
    session_id: str = ""
    session_name: str = ""
    skill_level: Optional[int] = None

    def __post_init__(self):
        _check_counts(self.matches_played, self.matches_won)

    @property
    def win_pct(self) -> float:
        """Win percentage (0-100), always derived from the counts."""
        return _win_pct(self.matches_won, self.matches_played)


@dataclass
class LifetimeStats:
    """Career totals for a player."""
    matches_played: int = 0
    matches_won: int = 0
    defensive_shot_avg: float = 0.0
    break_and_runs: int = 0
    mini_slams: int = 0
    nine_on_snaps: int = 0
    shutouts: int = 0

    def __post_init__(self):
        _check_counts(self.matches_played, self.matches_won)

    @property
    def win_pct(self) -> float:
        return _win_pct(self.matches_won, self.matches_played)


@dataclass
class Player:
    """A rostered league player with current-session numbers."""
    id: int
    name: str
    skill_level: int
    team_id: Optional[int] = None
    matches_played: int = 0
    matches_won: int = 0
    ppm: float = 0.0
    pa: float = 0.0
    # Optional enrichments
    recent: Optional[PlayerStats] = None  # Aggregated over recent sessions
    lifetime: Optional[LifetimeStats] = None

    def __post_init__(self):
        _check_counts(self.matches_played, self.matches_won)

    @property
    def win_pct(self) -> float:
        """Win percentage (0-100), 0 when no matches played."""
        return _win_pct(self.matches_won, self.matches_played)

    def current_stats(self) -> PlayerStats:
        """Current-session numbers as a PlayerStats record."""
        return PlayerStats(
            player_id=self.id,
            matches_played=self.matches_played,
            matches_won=self.matches_won,
            ppm=self.ppm,
            pa=self.pa,
            skill_level=self.skill_level,
        )


@dataclass
class HeadToHead:
    """Cumulative record of one player against one specific opponent."""
    player_id: int
    opponent_id: int
    total_games: int = 0
    wins: int = 0
    losses: int = 0
    avg_points_scored: float = 0.0
    avg_points_needed: float = 0.0
    last_played: Optional[date] = None

    def __post_init__(self):
        if self.wins + self.losses != self.total_games:
            raise ValueError(
                f"wins ({self.wins}) + losses ({self.losses}) must equal "
                f"total_games ({self.total_games})"
            )

    @property
    def key(self) -> Tuple[int, int]:
        return (self.player_id, self.opponent_id)

    @property
    def win_rate(self) -> float:
        return self.wins / self.total_games if self.total_games > 0 else 0.0

    def record_game(
        self,
        won: bool,
        points_scored: float = 0.0,
        points_needed: float = 0.0,
        played_at: Optional[date] = None
    ):
        """
        Fold one game into the record.
        Averages are running means, so games must be added one at a time.
        """
        self.total_games += 1
        if won:
            self.wins += 1
        else:
            self.losses += 1

        n = self.total_games
        self.avg_points_scored = (self.avg_points_scored * (n - 1) + points_scored) / n
        self.avg_points_needed = (self.avg_points_needed * (n - 1) + points_needed) / n

        if played_at is not None and (self.last_played is None or played_at > self.last_played):
            self.last_played = played_at


@dataclass
class MatchupInput:
    """A player plus whatever stats we have for them."""
    player: Player
    stats: Optional[PlayerStats] = None
    recent_stats: Optional[List[PlayerStats]] = None


@dataclass
class WinProbabilityFactors:
    """The five factor scores, each in probability space centered at 0.5."""
    skill_level_advantage: float = 0.5
    win_percentage_delta: float = 0.5
    head_to_head_record: float = 0.5
    recent_form_trend: float = 0.5
    ppm_efficiency: float = 0.5

    def as_dict(self) -> Dict[str, float]:
        return {
            "skill_level_advantage": self.skill_level_advantage,
            "win_percentage_delta": self.win_percentage_delta,
            "head_to_head_record": self.head_to_head_record,
            "recent_form_trend": self.recent_form_trend,
            "ppm_efficiency": self.ppm_efficiency,
        }


@dataclass
class WinProbabilityResult:
    """Output of the win probability model for one pairing."""
    probability: float
    factors: WinProbabilityFactors
    confidence: float
    data_points: int


@dataclass
class MatchupRecommendation:
    """A ranked, explained player suggestion."""
    player_id: int
    player_name: str
    win_probability: float
    confidence: float
    reasoning: List[str] = field(default_factory=list)
    factors: WinProbabilityFactors = field(default_factory=WinProbabilityFactors)


@dataclass
class ThrowFirstAnalysis:
    """Throw-first vs defer scoring."""
    throw_first_score: float
    defer_score: float
    recommendation: CoinTossChoice
    reasoning: List[str] = field(default_factory=list)


@dataclass
class CoinTossDecision:
    """What to do with a won coin toss."""
    recommendation: CoinTossChoice
    confidence: float
    reasoning: List[str] = field(default_factory=list)
    suggested_first_player: Optional[int] = None


@dataclass
class LiveGame:
    """One game slot within a team match."""
    game_number: int
    our_player_id: Optional[int] = None
    their_player_id: Optional[int] = None
    result: GameResult = GameResult.PENDING
    our_points: Optional[int] = None
    their_points: Optional[int] = None

    @property
    def is_assigned(self) -> bool:
        return self.our_player_id is not None and self.their_player_id is not None

    def player_for(self, side: Side) -> Optional[int]:
        return self.our_player_id if side == Side.US else self.their_player_id


def _default_games() -> List[LiveGame]:
    return [LiveGame(game_number=n) for n in range(1, 6)]


@dataclass
class LiveMatch:
    """Snapshot of a team match in progress."""
    our_score: int = 0
    their_score: int = 0
    games: List[LiveGame] = field(default_factory=_default_games)
    current_game: int = 1
    opponent_team_id: Optional[int] = None
    opponent_team_name: str = ""
    our_players_present: List[int] = field(default_factory=list)
    their_players_present: List[int] = field(default_factory=list)
    we_throw_first: Optional[bool] = None  # Who threw first in game 1

    @property
    def total_games(self) -> int:
        return len(self.games)

    @property
    def games_remaining(self) -> int:
        """Games left including the current one."""
        return self.total_games - self.current_game + 1

    def is_complete(self, games_to_win: int = 3) -> bool:
        return self.our_score >= games_to_win or self.their_score >= games_to_win

    def current_slot(self) -> Optional[LiveGame]:
        for game in self.games:
            if game.game_number == self.current_game:
                return game
        return None

    def we_throw_first_in(self, game_number: int) -> Optional[bool]:
        """Throw order alternates each game from the game 1 choice."""
        if self.we_throw_first is None:
            return None
        if self.we_throw_first:
            return game_number % 2 == 1
        return game_number % 2 == 0

    def used_player_ids(self, side: Side) -> set:
        return {g.player_for(side) for g in self.games if g.player_for(side) is not None}


def h2h_key(player_id: int, opponent_id: int) -> Tuple[int, int]:
    """Composite key for head-to-head lookups (direction matters)."""
    return (player_id, opponent_id)


HeadToHeadMap = Dict[Tuple[int, int], HeadToHead]
