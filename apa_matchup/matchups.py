"""
Matchup aggregation: ranks candidate players, picks openers, and scores
the throw-first vs defer choice by running the win probability model
over every relevant pairing.
"""

import logging
from math import comb
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_POLICY, MatchupPolicy
from .models import (
    CoinTossChoice, GameFormat, HeadToHead, MatchupInput, MatchupRecommendation,
    ThrowFirstAnalysis, WinProbabilityFactors, WinProbabilityResult, h2h_key
)
from .win_probability import calculate_win_probability, generate_reasoning

logger = logging.getLogger(__name__)

HeadToHeadLookup = Mapping[Tuple[int, int], HeadToHead]


def _round2(value: float) -> float:
    return round(value, 2)


def evaluate_pairing(
    candidate: MatchupInput,
    opponent: MatchupInput,
    head_to_head: HeadToHeadLookup,
    include_recent_form: bool = True,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> WinProbabilityResult:
    """Run the model for one pairing, looking up the head-to-head record."""
    record = head_to_head.get(h2h_key(candidate.player.id, opponent.player.id))
    return calculate_win_probability(
        candidate.player,
        candidate.stats,
        opponent.player,
        opponent.stats,
        record,
        candidate.recent_stats if include_recent_form else None,
        opponent.recent_stats if include_recent_form else None,
        game_format=game_format,
        policy=policy,
    )


def rank_matchups(
    available_players: Sequence[MatchupInput],
    opponent: MatchupInput,
    head_to_head: HeadToHeadLookup,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> List[MatchupRecommendation]:
    """
    Rank our available players against a known opponent.
    Sorted by win probability, highest first; ties keep input order.
    """
    recommendations = []

    for candidate in available_players:
        result = evaluate_pairing(
            candidate, opponent, head_to_head, game_format=game_format, policy=policy
        )
        record = head_to_head.get(h2h_key(candidate.player.id, opponent.player.id))

        recommendations.append(MatchupRecommendation(
            player_id=candidate.player.id,
            player_name=candidate.player.name,
            win_probability=_round2(result.probability),
            confidence=_round2(result.confidence),
            reasoning=generate_reasoning(candidate.player, opponent.player, result.factors, record),
            factors=result.factors,
        ))

    logger.debug(f"Ranked {len(recommendations)} players against {opponent.player.name}")
    return sorted(recommendations, key=lambda r: r.win_probability, reverse=True)


def best_opener(
    available_players: Sequence[MatchupInput],
    opponents: Sequence[MatchupInput],
    head_to_head: HeadToHeadLookup,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> Optional[MatchupRecommendation]:
    """
    The player with the highest average win probability across all opponents.
    Returns None when either side is empty.
    """
    if not available_players or not opponents:
        return None

    best_avg = 0.0
    best = None

    for candidate in available_players:
        results = [
            evaluate_pairing(candidate, opp, head_to_head, game_format=game_format, policy=policy)
            for opp in opponents
        ]
        avg_probability = float(np.mean([r.probability for r in results]))
        avg_factors = np.mean(
            [list(r.factors.as_dict().values()) for r in results], axis=0
        )

        # Strict comparison: earlier candidates win ties
        if avg_probability > best_avg:
            best_avg = avg_probability
            best = MatchupRecommendation(
                player_id=candidate.player.id,
                player_name=candidate.player.name,
                win_probability=_round2(avg_probability),
                confidence=policy.opener_confidence,
                reasoning=[
                    f"{candidate.player.name} has strong matchups across the board",
                    f"Average {int(avg_probability * 100 + 0.5)}% win probability vs all opponents",
                ],
                factors=WinProbabilityFactors(*(float(v) for v in avg_factors)),
            )

    return best


def throw_first_score(opener_probability: float, policy: MatchupPolicy = DEFAULT_POLICY) -> float:
    """Value of throwing first: mostly the quality of our best opener."""
    return policy.throw_first_opener_weight * opener_probability + policy.throw_first_base


def defer_score(their_opener_probability: float, policy: MatchupPolicy = DEFAULT_POLICY) -> float:
    """
    Value of deferring, from their best opener plus a fixed counter-pick bonus.
    The threat term is 1 - their opener probability, scored as (1 - threat).
    """
    threat = 1 - their_opener_probability
    return policy.defer_threat_weight * (1 - threat) + policy.defer_counter_pick_bonus


def analyze_throw_first_advantage(
    our_players: Sequence[MatchupInput],
    their_players: Sequence[MatchupInput],
    head_to_head: HeadToHeadLookup,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> ThrowFirstAnalysis:
    """Score throwing first against deferring. Inputs are not modified."""
    ours = best_opener(our_players, their_players, head_to_head, game_format, policy)
    our_prob = ours.win_probability if ours else 0.5

    # Their best opener, seen from their side of the table
    theirs = best_opener(their_players, our_players, head_to_head, game_format, policy)
    their_prob = theirs.win_probability if theirs else 0.5

    throw_first = throw_first_score(our_prob, policy)
    defer = defer_score(their_prob, policy)

    reasoning = []
    if throw_first > defer:
        choice = CoinTossChoice.THROW_FIRST
        opener_name = ours.player_name if ours else "Our opener"
        reasoning.append(f"Our opener ({opener_name}) has strong matchups")
        reasoning.append("Setting the pace early gives us an advantage")
        if our_prob > 0.55:
            reasoning.append(
                f"{opener_name} has {int(our_prob * 100 + 0.5)}% average win probability"
            )
    else:
        choice = CoinTossChoice.DEFER
        reasoning.append("Deferring lets us counter-pick their choice")
        reasoning.append("We can optimize each matchup reactively")
        if theirs and theirs.win_probability > 0.55:
            reasoning.append("This avoids letting them exploit their best matchups")

    logger.debug(f"Throw first {throw_first:.3f} vs defer {defer:.3f} -> {choice.value}")

    return ThrowFirstAnalysis(
        throw_first_score=_round2(throw_first),
        defer_score=_round2(defer),
        recommendation=choice,
        reasoning=reasoning,
    )


def binomial_at_least(trials: int, successes_needed: int, p: float) -> float:
    """P(X >= successes_needed) for X ~ Binomial(trials, p)."""
    return sum(
        comb(trials, k) * p ** k * (1 - p) ** (trials - k)
        for k in range(max(successes_needed, 0), trials + 1)
    )


def match_win_probability(
    our_score: int,
    their_score: int,
    our_remaining: Sequence[MatchupInput],
    their_remaining: Sequence[MatchupInput],
    head_to_head: HeadToHeadLookup,
    game_format: GameFormat = GameFormat.NINE_BALL,
    policy: MatchupPolicy = DEFAULT_POLICY
) -> float:
    """
    Chance we win the team match from the current score.

    Averages the pairwise probability over every remaining pairing, then
    treats the remaining games as independent trials. The trial count is
    the smaller remaining roster, which undercounts when the rosters differ.
    """
    our_needed = policy.games_to_win - our_score
    their_needed = policy.games_to_win - their_score

    if our_needed <= 0:
        return 1.0
    if their_needed <= 0:
        return 0.0

    # Recent form is not used for the match-level estimate
    probabilities = [
        evaluate_pairing(
            ours, theirs, head_to_head, include_recent_form=False,
            game_format=game_format, policy=policy
        ).probability
        for ours in our_remaining
        for theirs in their_remaining
    ]
    avg_probability = float(np.mean(probabilities)) if probabilities else 0.5

    games_remaining = min(len(our_remaining), len(their_remaining))
    probability = binomial_at_least(games_remaining, our_needed, avg_probability)

    return max(policy.min_match_probability, min(policy.max_match_probability, probability))
