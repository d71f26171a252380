"""
Match-night advisor.
Works out who is still available and calls into the matchup engine
for each decision point: coin toss, next throw, and match status.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import DEFAULT_POLICY, MatchupPolicy
from .matchups import (
    HeadToHeadLookup, analyze_throw_first_advantage, best_opener,
    evaluate_pairing, rank_matchups
)
from .models import (
    CoinTossChoice, CoinTossDecision, GameFormat, LiveMatch, MatchupInput,
    MatchupRecommendation, Player, PlayerStats, Side, WinProbabilityFactors
)

logger = logging.getLogger(__name__)


def filter_present_players(players: Iterable[Player], present_ids: Iterable[int]) -> List[Player]:
    """Players whose id is in the attendance list."""
    present = set(present_ids)
    return [p for p in players if p.id in present]


def available_players(
    present_players: Sequence[Player],
    live_match: LiveMatch,
    side: Side = Side.US
) -> List[Player]:
    """Present players not yet put up in any game slot for this side."""
    used = live_match.used_player_ids(side)
    return [p for p in present_players if p.id not in used]


def available_opponents(present_opponents: Sequence[Player], live_match: LiveMatch) -> List[Player]:
    return available_players(present_opponents, live_match, Side.THEM)


def prepare_inputs(
    players: Iterable[Player],
    stats_map: Mapping[int, PlayerStats],
    recent_stats_map: Optional[Mapping[int, List[PlayerStats]]] = None
) -> List[MatchupInput]:
    """Attach known stats to each player."""
    recent_stats_map = recent_stats_map or {}
    return [
        MatchupInput(
            player=p,
            stats=stats_map.get(p.id),
            recent_stats=recent_stats_map.get(p.id),
        )
        for p in players
    ]


def coin_toss_recommendation(
    our_players: Sequence[MatchupInput],
    their_players: Sequence[MatchupInput],
    head_to_head: HeadToHeadLookup,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> CoinTossDecision:
    """Throw first or defer, with a suggested opener when throwing first."""
    analysis = analyze_throw_first_advantage(
        our_players, their_players, head_to_head, game_format, policy
    )

    suggested = None
    if analysis.recommendation == CoinTossChoice.THROW_FIRST:
        opener = best_opener(our_players, their_players, head_to_head, game_format, policy)
        suggested = opener.player_id if opener else None

    gap = abs(analysis.throw_first_score - analysis.defer_score)
    confidence = min(0.5 + gap * 2, policy.coin_toss_confidence_cap)

    return CoinTossDecision(
        recommendation=analysis.recommendation,
        confidence=round(confidence, 2),
        reasoning=analysis.reasoning,
        suggested_first_player=suggested,
    )


def throw_recommendation(
    our_available: Sequence[MatchupInput],
    their_available: Sequence[MatchupInput],
    head_to_head: HeadToHeadLookup,
    their_current: Optional[MatchupInput] = None,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> List[MatchupRecommendation]:
    """
    Who we should put up next.

    With a known opponent this is a counter-pick ranking. Otherwise we are
    throwing blind, and each player is ranked on their average probability
    across every opponent still available.
    """
    if their_current is not None:
        return rank_matchups(our_available, their_current, head_to_head, game_format, policy)

    recommendations = []
    for candidate in our_available:
        probabilities = [
            round(evaluate_pairing(
                candidate, opp, head_to_head, game_format=game_format, policy=policy
            ).probability, 2)
            for opp in their_available
        ]
        avg = sum(probabilities) / len(probabilities) if probabilities else 0.5

        recommendations.append(MatchupRecommendation(
            player_id=candidate.player.id,
            player_name=candidate.player.name,
            win_probability=round(avg, 2),
            confidence=policy.blind_throw_confidence,
            reasoning=[
                f"{candidate.player.name} averages {int(avg * 100 + 0.5)}% win probability",
                "Strong across multiple opponent matchups",
            ],
            # Per-opponent breakdown has no meaning for an average
            factors=WinProbabilityFactors(),
        ))

    logger.debug(f"Blind ranking of {len(recommendations)} players vs {len(their_available)} opponents")
    return sorted(recommendations, key=lambda r: r.win_probability, reverse=True)


def match_state_advice(live_match: LiveMatch) -> List[str]:
    """Plain-language guidance for the current score."""
    advice = []
    ours, theirs = live_match.our_score, live_match.their_score
    games_remaining = live_match.games_remaining

    if ours == 0 and theirs == 0:
        advice.append("First game sets the tone - consider a strong opener")
    elif ours > theirs:
        if ours - theirs >= 2:
            advice.append("Comfortable lead - can take calculated risks")
            advice.append("Consider saving your strongest player for a must-win")
        else:
            advice.append("Slight lead - maintain momentum with reliable matchups")
    elif theirs > ours:
        deficit = theirs - ours
        if deficit >= 2 and games_remaining <= deficit:
            advice.append("Must-win situation - go with highest probability matchup")
            advice.append("No room for strategic saves")
        else:
            advice.append("Need to make up ground - look for advantageous matchups")
    else:
        advice.append("Tied match - every game is crucial")
        advice.append("Consider opponent tendencies when making your pick")

    if live_match.current_game == live_match.total_games:
        advice.append("Final game - put your best foot forward")

    return advice


def match_inputs_by_side(
    live_match: LiveMatch,
    our_roster: Sequence[MatchupInput],
    their_roster: Sequence[MatchupInput]
) -> Dict[Side, List[MatchupInput]]:
    """Present and still-available inputs for both sides of a live match."""
    result = {}
    for side, roster, present_ids in (
        (Side.US, our_roster, live_match.our_players_present),
        (Side.THEM, their_roster, live_match.their_players_present),
    ):
        # An empty attendance list means everyone on the roster is present
        present = filter_present_players([i.player for i in roster], present_ids) \
            if present_ids else [i.player for i in roster]
        available_ids = {p.id for p in available_players(present, live_match, side)}
        result[side] = [i for i in roster if i.player.id in available_ids]
    return result
