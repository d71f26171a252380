"""
Head-to-head records and stat helpers built from game history.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from .models import HeadToHead, HeadToHeadMap, PlayerStats, h2h_key

logger = logging.getLogger(__name__)

GAME_RECORD_COLUMNS = ["player_id", "opponent_id", "won"]
WIN_VALUES = {"1", "true", "yes", "w", "win"}
LOSS_VALUES = {"0", "false", "no", "l", "loss"}


@dataclass
class GameRecord:
    """One individual game, from player_id's point of view."""
    player_id: int
    opponent_id: int
    won: bool
    points_scored: float = 0.0
    points_needed: float = 0.0
    played_at: Optional[date] = None


def build_head_to_head(records: Iterable[GameRecord]) -> HeadToHeadMap:
    """Fold game records, in order, into directional head-to-head records."""
    h2h: HeadToHeadMap = {}
    for game in records:
        key = h2h_key(game.player_id, game.opponent_id)
        record = h2h.get(key)
        if record is None:
            record = HeadToHead(player_id=game.player_id, opponent_id=game.opponent_id)
            h2h[key] = record
        record.record_game(game.won, game.points_scored, game.points_needed, game.played_at)
    return h2h


def mirrored_records(records: Iterable[GameRecord]) -> List[GameRecord]:
    """Each game plus the same game seen from the opponent's side."""
    result = []
    for g in records:
        result.append(g)
        result.append(GameRecord(
            player_id=g.opponent_id,
            opponent_id=g.player_id,
            won=not g.won,
            played_at=g.played_at,
        ))
    return result


def load_game_records(csv_path: Union[str, Path]) -> List[GameRecord]:
    """
    Read a game results export.
    Required columns: player_id, opponent_id, won. Optional: points_scored,
    points_needed, played_at. Rows are returned oldest first.
    """
    df = pd.read_csv(csv_path)
    missing = [c for c in GAME_RECORD_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Game results file is missing columns: {', '.join(missing)}")

    blank = df.index[df["won"].isna()]
    if len(blank):
        # +2 for the header line and 1-based numbering
        raise ValueError(f"Game results row {blank[0] + 2} has no 'won' value")

    for col in ("points_scored", "points_needed"):
        if col not in df.columns:
            df[col] = 0.0
    df[["points_scored", "points_needed"]] = df[["points_scored", "points_needed"]].fillna(0.0)

    if "played_at" in df.columns:
        df["played_at"] = pd.to_datetime(df["played_at"], errors="coerce")
        df = df.sort_values("played_at", kind="stable", na_position="first")
    else:
        df["played_at"] = pd.NaT

    records = []
    for row in df.itertuples(index=False):
        played = None if pd.isna(row.played_at) else row.played_at.date()
        records.append(GameRecord(
            player_id=int(row.player_id),
            opponent_id=int(row.opponent_id),
            won=_as_result(row.won),
            points_scored=float(row.points_scored),
            points_needed=float(row.points_needed),
            played_at=played,
        ))

    logger.info(f"Loaded {len(records)} game records from {csv_path}")
    return records


def _as_result(value) -> bool:
    """Parse a won cell. Anything but a recognised win or loss is rejected."""
    text = None
    if isinstance(value, str):
        text = value.strip().lower()
    elif value in (0, 1):
        text = str(int(value))

    if text in WIN_VALUES:
        return True
    if text in LOSS_VALUES:
        return False
    raise ValueError(f"Unrecognised game result {value!r}")


def calc_win_pct(won: int, played: int) -> float:
    """Win percentage rounded to one decimal place."""
    if played == 0:
        return 0.0
    return round(won / played * 100, 1)


def latest_stats_by_player(stats: Iterable[PlayerStats]) -> Dict[int, PlayerStats]:
    """Most recent session's stats per player (session ids sort chronologically)."""
    latest: Dict[int, PlayerStats] = {}
    for s in stats:
        existing = latest.get(s.player_id)
        if existing is None or (s.session_id or "") > (existing.session_id or ""):
            latest[s.player_id] = s
    return latest
