"""
Tests for win_probability.py - The five-factor model.
"""

import pytest

from apa_matchup.config import DEFAULT_POLICY, FactorWeights, MatchupPolicy
from apa_matchup.models import (
    HeadToHead, Player, PlayerStats, RiskLevel, WinProbabilityFactors
)
from apa_matchup.win_probability import (
    assess_matchup_risk, blend_factors, calculate_win_probability, generate_reasoning,
    head_to_head_factor, ppm_efficiency_factor, recent_form_factor,
    win_percentage_factor
)


def stats(player_id, played, won, ppm=0.0):
    return PlayerStats(player_id=player_id, matches_played=played, matches_won=won, ppm=ppm)


@pytest.fixture
def even_players():
    return Player(id=1, name="Alice", skill_level=5), Player(id=2, name="Bob", skill_level=5)


class TestFactors:
    """Tests for the individual factor functions."""

    def test_win_percentage_needs_matches_on_both_sides(self):
        """Test the factor stays neutral without matches for both players."""
        assert win_percentage_factor(stats(1, 10, 6), None) == (0.5, 0)
        assert win_percentage_factor(stats(1, 10, 6), stats(2, 0, 0)) == (0.5, 0)

    def test_win_percentage_delta(self):
        """Test a 60% vs 40% player lands at 0.6 with 2 units."""
        value, units = win_percentage_factor(stats(1, 10, 6), stats(2, 10, 4))
        assert value == pytest.approx(0.6)
        assert units == 2

    def test_win_percentage_clamped(self):
        """Test an undefeated vs winless pairing is capped at 0.8."""
        value, _ = win_percentage_factor(stats(1, 10, 10), stats(2, 10, 0))
        assert value == 0.8

    def test_head_to_head_shrinkage(self):
        """Test small samples are pulled harder toward 0.5."""
        one_game, units_one = head_to_head_factor(
            HeadToHead(player_id=1, opponent_id=2, total_games=1, wins=1, losses=0)
        )
        ten_games, units_ten = head_to_head_factor(
            HeadToHead(player_id=1, opponent_id=2, total_games=10, wins=9, losses=1)
        )
        assert 0.5 < one_game < 1.0
        assert one_game == pytest.approx(0.55)
        assert ten_games == pytest.approx(0.9)
        assert abs(one_game - 0.5) < abs(ten_games - 0.5)
        assert (units_one, units_ten) == (1, 10)

    def test_head_to_head_missing(self):
        """Test no record or an empty record is neutral."""
        assert head_to_head_factor(None) == (0.5, 0)
        assert head_to_head_factor(HeadToHead(player_id=1, opponent_id=2)) == (0.5, 0)

    def test_recent_form_hot_player(self):
        """Test a player beating their season rate recently gets a capped boost."""
        value, units = recent_form_factor(
            stats(1, 10, 5), None, [stats(1, 4, 3)], None
        )
        assert value == 0.7
        assert units == 1

    def test_recent_form_needs_player_data(self):
        """Test opponent-only recent data contributes nothing."""
        assert recent_form_factor(None, None, None, [stats(2, 4, 4)]) == (0.5, 0)
        assert recent_form_factor(None, None, [], [stats(2, 4, 4)]) == (0.5, 0)

    def test_recent_form_units_follow_array_length(self):
        """Test evidence units equal the number of recent periods."""
        recent = [stats(1, 4, 2), stats(1, 4, 2), stats(1, 4, 2)]
        value, units = recent_form_factor(stats(1, 10, 5), stats(2, 10, 5), recent, recent)
        assert value == pytest.approx(0.5)
        assert units == 3

    def test_ppm_efficiency(self):
        """Test PPM is compared against each skill level's expectation."""
        a = Player(id=1, name="A", skill_level=3)
        b = Player(id=2, name="B", skill_level=7)
        value, units = ppm_efficiency_factor(a, stats(1, 10, 6, 20.0), b, stats(2, 10, 4, 50.0))
        assert value == pytest.approx(0.5 + (20 / 19 - 50 / 45) * 0.25)
        assert units == 2

    def test_ppm_efficiency_clamped(self):
        """Test extreme PPM gaps are capped at 0.7."""
        a = Player(id=1, name="A", skill_level=5)
        b = Player(id=2, name="B", skill_level=5)
        value, _ = ppm_efficiency_factor(a, stats(1, 10, 6, 500.0), b, stats(2, 10, 4, 0.0))
        assert value == 0.7


class TestCalculateWinProbability:
    """Tests for calculate_win_probability."""

    def test_no_data_equal_skill_is_neutral(self, even_players):
        """Test no optional data yields an even matchup with low confidence."""
        a, b = even_players
        result = calculate_win_probability(a, None, b, None)
        assert blend_factors(result.factors) == pytest.approx(0.5)
        assert result.probability == pytest.approx(0.5)
        assert result.factors == WinProbabilityFactors()
        assert result.data_points == 1
        assert result.confidence == pytest.approx(1 / 50)

    def test_identical_players(self, even_players):
        """Test identical stats give exactly even odds."""
        a, b = even_players
        result = calculate_win_probability(a, stats(1, 10, 5, 30.0), b, stats(2, 10, 5, 30.0))
        assert result.probability == pytest.approx(0.5)
        assert result.data_points == 5
        assert result.confidence == pytest.approx(0.1)

    def test_handicap_and_win_rate_beat_raw_output(self):
        """Test an SL3 with the better record is favored over a high-PPM SL7."""
        a = Player(id=1, name="A", skill_level=3, matches_played=10, matches_won=6, ppm=20.0)
        b = Player(id=2, name="B", skill_level=7, matches_played=10, matches_won=4, ppm=50.0)
        result = calculate_win_probability(a, a.current_stats(), b, b.current_stats())

        # Skill edge and longer race for B cancel out at this pairing
        assert result.factors.skill_level_advantage == pytest.approx(0.5)
        assert result.factors.win_percentage_delta == pytest.approx(0.6)
        assert result.factors.ppm_efficiency < 0.5
        assert result.probability > 0.5
        assert result.probability == pytest.approx(0.5243, abs=1e-3)

    def test_confidence_saturates(self, even_players):
        """Test confidence tops out at 1.0 with lots of evidence."""
        a, b = even_players
        h2h = HeadToHead(player_id=1, opponent_id=2, total_games=60, wins=30, losses=30)
        result = calculate_win_probability(a, None, b, None, h2h)
        assert result.data_points == 61
        assert result.confidence == 1

    @pytest.mark.parametrize("won_a,won_b,ppm_a,ppm_b,h2h_wins", [
        (20, 0, 1000.0, 0.0, 50),
        (0, 20, 0.0, 1000.0, 0),
        (20, 20, 0.0, 0.0, 25),
        (0, 0, 1e6, 1e-6, 50),
    ])
    def test_output_always_in_range(self, won_a, won_b, ppm_a, ppm_b, h2h_wins):
        """Test boundary stats never escape [0.15, 0.85]."""
        for sl_a, sl_b in ((1, 9), (9, 1), (5, 5)):
            a = Player(id=1, name="A", skill_level=sl_a)
            b = Player(id=2, name="B", skill_level=sl_b)
            h2h = HeadToHead(
                player_id=1, opponent_id=2, total_games=50,
                wins=h2h_wins, losses=50 - h2h_wins
            )
            recent = [stats(1, 20, won_a)] * 4
            result = calculate_win_probability(
                a, stats(1, 20, won_a, ppm_a), b, stats(2, 20, won_b, ppm_b),
                h2h, recent, [stats(2, 20, won_b)]
            )
            assert 0.15 <= result.probability <= 0.85

    def test_hard_clamp_applies(self, even_players):
        """Test the output clamp holds even when one factor carries all the weight."""
        a, b = even_players
        policy = MatchupPolicy(weights=FactorWeights(
            skill_level_advantage=0.0, win_percentage_delta=0.0,
            head_to_head_record=1.0, recent_form_trend=0.0, ppm_efficiency=0.0
        ))
        sweep = HeadToHead(player_id=1, opponent_id=2, total_games=20, wins=20, losses=0)
        swept = HeadToHead(player_id=1, opponent_id=2, total_games=20, wins=0, losses=20)
        assert calculate_win_probability(a, None, b, None, sweep, policy=policy).probability == 0.85
        assert calculate_win_probability(a, None, b, None, swept, policy=policy).probability == 0.15

    def test_deterministic(self, even_players):
        """Test repeated calls give identical results."""
        a, b = even_players
        args = (a, stats(1, 10, 7, 33.0), b, stats(2, 8, 3, 28.0))
        assert calculate_win_probability(*args) == calculate_win_probability(*args)


class TestAssessMatchupRisk:
    """Tests for assess_matchup_risk."""

    def test_ahead(self):
        """Test being ahead tolerates lower probabilities."""
        assert assess_matchup_risk(0.4, 2, 1, 4) == RiskLevel.LOW
        assert assess_matchup_risk(0.3, 2, 1, 4) == RiskLevel.MEDIUM
        assert assess_matchup_risk(0.2, 2, 1, 4) == RiskLevel.HIGH

    def test_must_win(self):
        """Test a must-win spot demands a real edge."""
        assert assess_matchup_risk(0.55, 0, 2, 4) == RiskLevel.LOW
        assert assess_matchup_risk(0.45, 0, 2, 4) == RiskLevel.MEDIUM
        assert assess_matchup_risk(0.38, 0, 2, 4) == RiskLevel.HIGH

    def test_close_match(self):
        """Test the default thresholds for a level match."""
        assert assess_matchup_risk(0.5, 1, 1, 3) == RiskLevel.LOW
        assert assess_matchup_risk(0.4, 1, 1, 3) == RiskLevel.MEDIUM
        assert assess_matchup_risk(0.3, 1, 1, 3) == RiskLevel.HIGH


class TestGenerateReasoning:
    """Tests for generate_reasoning."""

    def test_favorable_handicap_and_h2h(self):
        """Test reasons cover handicap, win rate, head-to-head and form."""
        a = Player(id=1, name="Alice", skill_level=3)
        b = Player(id=2, name="Bob", skill_level=6)
        factors = WinProbabilityFactors(win_percentage_delta=0.6, recent_form_trend=0.4)
        h2h = HeadToHead(player_id=1, opponent_id=2, total_games=4, wins=3, losses=1)

        reasons = generate_reasoning(a, b, factors, h2h)
        assert reasons == [
            "Alice gets favorable handicap (SL3 vs SL6)",
            "Alice has a higher win percentage this season",
            "Alice is 3-1 against Bob",
            "Alice may be in a slump lately",
        ]

    def test_even_matchup(self, even_players):
        """Test neutral factors only produce the skill level line."""
        a, b = even_players
        assert generate_reasoning(a, b, WinProbabilityFactors()) == [
            "Even skill level matchup (both SL5)"
        ]

    def test_losing_head_to_head(self):
        """Test a losing record is phrased from the opponent's side."""
        a = Player(id=1, name="Alice", skill_level=7)
        b = Player(id=2, name="Bob", skill_level=5)
        factors = WinProbabilityFactors(win_percentage_delta=0.4, recent_form_trend=0.6)
        h2h = HeadToHead(player_id=1, opponent_id=2, total_games=3, wins=1, losses=2)

        reasons = generate_reasoning(a, b, factors, h2h)
        assert reasons[0] == "Alice is a higher skill level (SL7 vs SL5)"
        assert "Bob has been winning more consistently" in reasons
        assert "Bob has won most of their matchups (2-1)" in reasons
        assert reasons[-1] == "Alice has been performing well recently"

    def test_even_head_to_head(self, even_players):
        """Test a split record is called even."""
        a, b = even_players
        h2h = HeadToHead(player_id=1, opponent_id=2, total_games=2, wins=1, losses=1)
        assert "Even head-to-head history (1-1)" in generate_reasoning(
            a, b, WinProbabilityFactors(), h2h
        )


class TestPolicy:
    """Tests for policy validation."""

    def test_default_weights_sum_to_one(self):
        """Test the shipped weights are a proper blend."""
        assert DEFAULT_POLICY.weights.total == pytest.approx(1.0)

    def test_bad_weights_rejected(self):
        """Test weights that do not sum to 1 raise ValueError."""
        with pytest.raises(ValueError):
            MatchupPolicy(weights=FactorWeights(skill_level_advantage=0.5))
