"""
Shared pytest fixtures for APA Match-Up tests.
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from apa_matchup.models import HeadToHead, MatchupInput, Player, PlayerStats, h2h_key


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env():
    """Environment with no APA_MATCHUP_* overrides."""
    with patch.dict(os.environ, {
        "APA_MATCHUP_FORMAT": "",
        "APA_MATCHUP_LOG_LEVEL": "",
        "APA_MATCHUP_CONFIDENCE_SATURATION": "",
        "APA_MATCHUP_OPENER_CONFIDENCE": "",
    }, clear=False):
        yield


def _make_input(player_id, name, skill_level, played=0, won=0, ppm=0.0, recent=None):
    """Player plus current stats built from the same numbers."""
    player = Player(
        id=player_id, name=name, skill_level=skill_level,
        matches_played=played, matches_won=won, ppm=ppm,
    )
    stats = player.current_stats() if played else None
    recent_stats = None
    if recent:
        recent_stats = [
            PlayerStats(player_id=player_id, matches_played=p, matches_won=w, ppm=ppm)
            for p, w in recent
        ]
    return MatchupInput(player=player, stats=stats, recent_stats=recent_stats)


@pytest.fixture
def make_input():
    """Factory for MatchupInput objects."""
    return _make_input


@pytest.fixture
def our_roster():
    """Our team: a strong SL5, an average SL4, a struggling SL6."""
    return [
        _make_input(1, "Alice", 5, played=10, won=8, ppm=34.0),
        _make_input(2, "Ben", 4, played=10, won=5, ppm=24.0),
        _make_input(3, "Cara", 6, played=10, won=3, ppm=33.0),
    ]


@pytest.fixture
def their_roster():
    """Their team."""
    return [
        _make_input(11, "Xavier", 5, played=10, won=5, ppm=30.0),
        _make_input(12, "Yolanda", 3, played=10, won=4, ppm=18.0),
        _make_input(13, "Zed", 7, played=10, won=6, ppm=46.0),
    ]


@pytest.fixture
def head_to_head():
    """A few head-to-head records between the two rosters."""
    records = [
        HeadToHead(player_id=1, opponent_id=11, total_games=4, wins=3, losses=1),
        HeadToHead(player_id=11, opponent_id=1, total_games=4, wins=1, losses=3),
        HeadToHead(player_id=3, opponent_id=13, total_games=2, wins=0, losses=2),
    ]
    return {h2h_key(r.player_id, r.opponent_id): r for r in records}


@pytest.fixture
def sample_snapshot_data():
    """Sample snapshot JSON document."""
    return {
        "our_players": [
            {"id": 1, "name": "Alice", "skill_level": 5, "matches_played": 10,
             "matches_won": 8, "ppm": 34.0, "pa": 0.71},
            {"id": 2, "name": "Ben", "skill_level": 4, "matches_played": 10,
             "matches_won": 5, "ppm": 24.0, "pa": 0.55,
             "recent_stats": [{"matches_played": 4, "matches_won": 3, "ppm": 26.0}]},
            {"id": 3, "name": "Cara", "skill_level": 6},
        ],
        "their_players": [
            {"id": 11, "name": "Xavier", "skill_level": 5, "matches_played": 10,
             "matches_won": 5, "ppm": 30.0},
            {"id": 12, "name": "Yolanda", "skill_level": 3, "matches_played": 10,
             "matches_won": 4, "ppm": 18.0},
        ],
        "head_to_head": [
            {"player_id": 1, "opponent_id": 11, "wins": 3, "losses": 1,
             "last_played": "2026-03-12"},
        ],
        "live_match": {
            "current_game": 2,
            "we_throw_first": True,
            "games": [
                {"game_number": 1, "our_player_id": 1, "their_player_id": 11, "result": "win"},
                {"game_number": 2},
                {"game_number": 3},
                {"game_number": 4},
                {"game_number": 5},
            ],
        },
    }


@pytest.fixture
def snapshot_file(temp_dir, sample_snapshot_data):
    """Sample snapshot written to disk."""
    path = temp_dir / "snapshot.json"
    path.write_text(json.dumps(sample_snapshot_data), encoding="utf-8")
    return path
