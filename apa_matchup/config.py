"""
Configuration management for the APA Match-Up engine.
Policy constants for the recommendation engine live in MatchupPolicy;
application settings come from the environment.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from dotenv import load_dotenv

from .models import GameFormat


# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class FactorWeights:
    """Blend weights for the five win probability factors."""
    skill_level_advantage: float = 0.35
    win_percentage_delta: float = 0.25
    head_to_head_record: float = 0.20
    recent_form_trend: float = 0.15
    ppm_efficiency: float = 0.05

    @property
    def total(self) -> float:
        return (
            self.skill_level_advantage + self.win_percentage_delta
            + self.head_to_head_record + self.recent_form_trend + self.ppm_efficiency
        )


@dataclass(frozen=True)
class MatchupPolicy:
    """
    Tunable constants for the recommendation engine.
    These are hand-set policy values, not fitted coefficients.
    """
    weights: FactorWeights = field(default_factory=FactorWeights)

    # Win probability output range (never certainty)
    min_probability: float = 0.15
    max_probability: float = 0.85

    # Evidence units at which confidence saturates to 1.0
    confidence_saturation: int = 50

    # Head-to-head sample size taken at face value
    h2h_full_weight_games: int = 10

    # Fixed confidence for multi-opponent recommendations
    opener_confidence: float = 0.7
    blind_throw_confidence: float = 0.65

    # Coin toss scoring
    throw_first_opener_weight: float = 0.6
    throw_first_base: float = 0.2  # 0.4 weight on a neutral 0.5
    defer_threat_weight: float = 0.4
    defer_counter_pick_bonus: float = 0.33  # 0.6 weight on a 0.55 counter-pick edge
    coin_toss_confidence_cap: float = 0.95

    # Match format
    games_to_win: int = 3
    games_per_match: int = 5
    min_match_probability: float = 0.05
    max_match_probability: float = 0.95

    def __post_init__(self):
        if abs(self.weights.total - 1.0) > 1e-9:
            raise ValueError(f"Factor weights must sum to 1.0, got {self.weights.total:.4f}")
        if self.confidence_saturation <= 0:
            raise ValueError("confidence_saturation must be positive")
        if self.h2h_full_weight_games <= 0:
            raise ValueError("h2h_full_weight_games must be positive")


DEFAULT_POLICY = MatchupPolicy()


@dataclass
class Config:
    """Application configuration."""
    game_format: GameFormat = GameFormat.NINE_BALL
    log_level: str = "INFO"

    # Policy overrides (None = use DEFAULT_POLICY value)
    confidence_saturation: Optional[int] = None
    opener_confidence: Optional[float] = None

    def __post_init__(self):
        """Load settings from environment."""
        fmt = os.getenv("APA_MATCHUP_FORMAT", "").strip().lower()
        if fmt:
            self._raw_format = fmt
            try:
                self.game_format = GameFormat(fmt)
            except ValueError:
                self.game_format = GameFormat.NINE_BALL
        else:
            self._raw_format = self.game_format.value

        self.log_level = (os.getenv("APA_MATCHUP_LOG_LEVEL") or self.log_level).strip().upper()

        saturation = os.getenv("APA_MATCHUP_CONFIDENCE_SATURATION", "")
        if saturation:
            try:
                self.confidence_saturation = int(saturation)
            except ValueError:
                self.confidence_saturation = -1

        opener = os.getenv("APA_MATCHUP_OPENER_CONFIDENCE", "")
        if opener:
            try:
                self.opener_confidence = float(opener)
            except ValueError:
                self.opener_confidence = -1.0

    def validate_config(self) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors = []
        if self._raw_format not in {f.value for f in GameFormat}:
            errors.append(
                f"APA_MATCHUP_FORMAT must be one of: {', '.join(f.value for f in GameFormat)}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"APA_MATCHUP_LOG_LEVEL '{self.log_level}' is not a logging level")
        if self.confidence_saturation is not None and self.confidence_saturation <= 0:
            errors.append("APA_MATCHUP_CONFIDENCE_SATURATION must be a positive integer")
        if self.opener_confidence is not None and not 0 <= self.opener_confidence <= 1:
            errors.append("APA_MATCHUP_OPENER_CONFIDENCE must be between 0 and 1")
        return errors

    def is_configured(self) -> bool:
        return not self.validate_config()

    def policy(self) -> MatchupPolicy:
        """Default policy with environment overrides applied."""
        overrides = {}
        if self.confidence_saturation is not None and self.confidence_saturation > 0:
            overrides["confidence_saturation"] = self.confidence_saturation
        if self.opener_confidence is not None and 0 <= self.opener_confidence <= 1:
            overrides["opener_confidence"] = self.opener_confidence
        return replace(DEFAULT_POLICY, **overrides)


def get_config() -> Config:
    """Get application configuration."""
    return Config()
