"""
Match-night snapshot loading.

A snapshot is a JSON document holding both rosters, optional head-to-head
records, and an optional live match. It is how the CLI receives the data
that the sync layer would otherwise hand to the engine in memory.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import (
    GameResult, HeadToHead, HeadToHeadMap, LifetimeStats, LiveGame, LiveMatch,
    MatchupInput, Player, PlayerStats, h2h_key
)

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot file cannot be read or is inconsistent."""
    pass


@dataclass
class Snapshot:
    """Everything needed for one decision point."""
    our_players: List[MatchupInput] = field(default_factory=list)
    their_players: List[MatchupInput] = field(default_factory=list)
    head_to_head: HeadToHeadMap = field(default_factory=dict)
    live_match: LiveMatch = field(default_factory=LiveMatch)

    def find(self, player_id: int) -> Optional[MatchupInput]:
        for i in self.our_players + self.their_players:
            if i.player.id == player_id:
                return i
        return None


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise SnapshotError(f"{context}: missing required field '{key}'")
    return data[key]


def _object(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SnapshotError(f"{context}: expected an object, got {type(value).__name__}")
    return value


def _array(value: Any, context: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"{context}: expected a list, got {type(value).__name__}")
    return value


def _parse_stats(data: Any, player_id: int) -> PlayerStats:
    data = _object(data, f"Player {player_id} stats")
    try:
        return PlayerStats(
            player_id=player_id,
            matches_played=int(data.get("matches_played", 0)),
            matches_won=int(data.get("matches_won", 0)),
            ppm=float(data.get("ppm", 0.0)),
            pa=float(data.get("pa", 0.0)),
            session_id=str(data.get("session_id", "")),
            session_name=str(data.get("session_name", "")),
        )
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Player {player_id} stats: {e}") from e


def _parse_player(data: Any) -> MatchupInput:
    data = _object(data, "Player")
    context = f"Player {data.get('id', '?')}"
    try:
        player_id = int(_require(data, "id", context))
        player = Player(
            id=player_id,
            name=str(_require(data, "name", context)),
            skill_level=int(_require(data, "skill_level", context)),
            team_id=data.get("team_id"),
            matches_played=int(data.get("matches_played", 0)),
            matches_won=int(data.get("matches_won", 0)),
            ppm=float(data.get("ppm", 0.0)),
            pa=float(data.get("pa", 0.0)),
            lifetime=LifetimeStats(**data["lifetime"]) if data.get("lifetime") else None,
        )
    except SnapshotError:
        raise
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"{context}: {e}") from e

    # Current stats default to the player's own session numbers
    stats = _parse_stats(data["stats"], player_id) if data.get("stats") else None
    if stats is None and player.matches_played > 0:
        stats = player.current_stats()

    recent = [
        _parse_stats(s, player_id)
        for s in _array(data.get("recent_stats"), f"{context} recent_stats")
    ]
    return MatchupInput(player=player, stats=stats, recent_stats=recent or None)


def _parse_head_to_head(items: List[Any]) -> HeadToHeadMap:
    h2h: HeadToHeadMap = {}
    for item in items:
        item = _object(item, "Head-to-head record")
        try:
            last = item.get("last_played")
            wins = int(item.get("wins", 0))
            losses = int(item.get("losses", 0))
            record = HeadToHead(
                player_id=int(_require(item, "player_id", "Head-to-head")),
                opponent_id=int(_require(item, "opponent_id", "Head-to-head")),
                total_games=int(item.get("total_games", wins + losses)),
                wins=wins,
                losses=losses,
                avg_points_scored=float(item.get("avg_points_scored", 0.0)),
                avg_points_needed=float(item.get("avg_points_needed", 0.0)),
                last_played=date.fromisoformat(last) if last else None,
            )
        except SnapshotError:
            raise
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Head-to-head record: {e}") from e
        h2h[h2h_key(record.player_id, record.opponent_id)] = record
    return h2h


def _parse_live_match(data: Any) -> LiveMatch:
    data = _object(data, "Live match")
    games = []
    for g in _array(data.get("games"), "Live match games"):
        g = _object(g, "Game slot")
        try:
            games.append(LiveGame(
                game_number=int(_require(g, "game_number", "Game")),
                our_player_id=g.get("our_player_id"),
                their_player_id=g.get("their_player_id"),
                result=GameResult(g.get("result", "pending")),
                our_points=g.get("our_points"),
                their_points=g.get("their_points"),
            ))
        except SnapshotError:
            raise
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Game slot: {e}") from e

    try:
        match = LiveMatch(
            current_game=int(data.get("current_game", 1)),
            opponent_team_id=data.get("opponent_team_id"),
            opponent_team_name=str(data.get("opponent_team_name", "")),
            our_players_present=[
                int(i) for i in _array(data.get("our_players_present"), "our_players_present")
            ],
            their_players_present=[
                int(i) for i in _array(data.get("their_players_present"), "their_players_present")
            ],
            we_throw_first=data.get("we_throw_first"),
        )
        if games:
            match.games = games

        # Score follows the recorded results unless given explicitly
        match.our_score = int(data.get(
            "our_score", sum(1 for g in match.games if g.result == GameResult.WIN)
        ))
        match.their_score = int(data.get(
            "their_score", sum(1 for g in match.games if g.result == GameResult.LOSS)
        ))
    except SnapshotError:
        raise
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Live match: {e}") from e
    return match


def parse_snapshot(data: Any) -> Snapshot:
    """Build a Snapshot from already-decoded JSON."""
    data = _object(data, "Snapshot")

    snapshot = Snapshot(
        our_players=[
            _parse_player(p)
            for p in _array(_require(data, "our_players", "Snapshot"), "our_players")
        ],
        their_players=[
            _parse_player(p)
            for p in _array(_require(data, "their_players", "Snapshot"), "their_players")
        ],
        head_to_head=_parse_head_to_head(_array(data.get("head_to_head"), "head_to_head")),
    )
    if data.get("live_match"):
        snapshot.live_match = _parse_live_match(data["live_match"])

    our_ids = {i.player.id for i in snapshot.our_players}
    their_ids = {i.player.id for i in snapshot.their_players}
    for game in snapshot.live_match.games:
        if game.our_player_id is not None and game.our_player_id not in our_ids:
            raise SnapshotError(
                f"Game {game.game_number}: player {game.our_player_id} is not on our roster"
            )
        if game.their_player_id is not None and game.their_player_id not in their_ids:
            raise SnapshotError(
                f"Game {game.game_number}: player {game.their_player_id} is not on their roster"
            )
    return snapshot


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read and validate a snapshot file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in {path}: {e}") from e

    snapshot = parse_snapshot(data)
    logger.info(
        f"Loaded snapshot: {len(snapshot.our_players)} vs {len(snapshot.their_players)} players, "
        f"{len(snapshot.head_to_head)} head-to-head records"
    )
    return snapshot
