"""
Unit tests for the Elo rating model.

Checks that:
- Every match is exactly zero-sum
- Favorites winning gain less than underdogs winning
- The swing is rounded half away from zero
- Extreme rating gaps do not raise
"""

import pytest

from clubrank.elo import (
    DEFAULT_ELO,
    EloCalculator,
    compute_rating_change,
    expected_score,
    round_half_away_from_zero,
)


class TestComputeRatingChange:

    def test_equal_ratings_swing_half_k(self):
        change = compute_rating_change(1500, 1500)

        assert change.winner_delta == 16
        assert change.loser_delta == -16
        assert change.expected_winner == pytest.approx(0.5)
        assert change.winner_after == 1516
        assert change.loser_after == 1484

    @pytest.mark.parametrize(
        "winner_rating, loser_rating",
        [(1500, 1500), (1600, 1400), (1400, 1600), (2210, 987), (0, -300)],
    )
    def test_zero_sum(self, winner_rating, loser_rating):
        change = compute_rating_change(winner_rating, loser_rating)
        assert change.winner_delta + change.loser_delta == 0
        assert change.winner_delta >= 0

    def test_favorite_wins_gains_less(self):
        change = compute_rating_change(1600, 1400)

        # K * (1 - 0.7597) = 7.69
        assert change.winner_delta == 8
        assert change.winner_delta < 16
        assert not change.was_upset

    def test_upset_swings_more(self):
        favorite = compute_rating_change(1600, 1400)
        upset = compute_rating_change(1400, 1600)

        assert upset.winner_delta == 24
        assert upset.winner_delta > favorite.winner_delta
        assert upset.was_upset

    def test_k_factor_scales_swing(self):
        assert compute_rating_change(1500, 1500, k_factor=16).winner_delta == 8
        assert compute_rating_change(1500, 1500, k_factor=40).winner_delta == 20

    def test_deterministic(self):
        assert compute_rating_change(1733, 1519) == compute_rating_change(1733, 1519)

    def test_huge_gap_does_not_raise(self):
        # 10^(1_000_000 / 400) is outside float range
        certain = compute_rating_change(1_000_000, 0)
        impossible = compute_rating_change(0, 1_000_000)

        assert certain.winner_delta == 0
        assert impossible.winner_delta == 32


class TestHelpers:

    def test_expected_scores_sum_to_one(self):
        assert expected_score(1650, 1500) + expected_score(1500, 1650) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "value, expected",
        [(2.5, 3), (-2.5, -3), (2.4999, 2), (7.5, 8), (0.0, 0), (15.99, 16)],
    )
    def test_round_half_away_from_zero(self, value, expected):
        assert round_half_away_from_zero(value) == expected

    def test_default_rating(self):
        assert DEFAULT_ELO == 1500


class TestEloCalculator:

    def test_uses_configured_k(self):
        calculator = EloCalculator(k_factor=24)
        change = calculator.calculate(1500, 1500)

        assert change.winner_delta == 12
        assert change.k_factor == 24

    def test_rejects_non_positive_k(self):
        with pytest.raises(ValueError):
            EloCalculator(k_factor=0)
