"""
APA Match-Up
Win probability and matchup recommendations for pool league captains.
"""

__version__ = "1.0.0"

from .models import (
    Player, PlayerStats, LifetimeStats, HeadToHead, MatchupInput, LiveMatch, LiveGame,
    WinProbabilityFactors, WinProbabilityResult, MatchupRecommendation,
    ThrowFirstAnalysis, CoinTossDecision, GameFormat, GameResult, Side,
    CoinTossChoice, RiskLevel, h2h_key
)
from .config import MatchupPolicy, FactorWeights, DEFAULT_POLICY, get_config
from .skill_levels import points_needed, expected_ppm, base_win_probability
from .win_probability import calculate_win_probability, generate_reasoning, assess_matchup_risk
from .matchups import (
    rank_matchups, best_opener, analyze_throw_first_advantage, match_win_probability
)
from .advisor import (
    available_players, coin_toss_recommendation, throw_recommendation, match_state_advice
)
from .history import build_head_to_head

__all__ = [
    # Models
    "Player", "PlayerStats", "LifetimeStats", "HeadToHead", "MatchupInput",
    "LiveMatch", "LiveGame", "WinProbabilityFactors", "WinProbabilityResult",
    "MatchupRecommendation", "ThrowFirstAnalysis", "CoinTossDecision",
    "GameFormat", "GameResult", "Side", "CoinTossChoice", "RiskLevel", "h2h_key",
    # Config
    "MatchupPolicy", "FactorWeights", "DEFAULT_POLICY", "get_config",
    # Engine
    "points_needed", "expected_ppm", "base_win_probability",
    "calculate_win_probability", "generate_reasoning", "assess_matchup_risk",
    "rank_matchups", "best_opener", "analyze_throw_first_advantage",
    "match_win_probability", "available_players", "coin_toss_recommendation",
    "throw_recommendation", "match_state_advice", "build_head_to_head",
]
