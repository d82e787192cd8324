"""
ELO rating module.

Pure rating computation for two-player club matches: logistic expectation,
fixed K-factor, whole-point zero-sum swings.
"""

from clubrank.elo.calculator import (
    EloCalculator,
    RatingChange,
    compute_rating_change,
    expected_score,
    round_half_away_from_zero,
)
from clubrank.elo.constants import DEFAULT_ELO, DEFAULT_K_FACTOR, ELO_SCALE

__all__ = [
    "EloCalculator",
    "RatingChange",
    "compute_rating_change",
    "expected_score",
    "round_half_away_from_zero",
    "DEFAULT_ELO",
    "DEFAULT_K_FACTOR",
    "ELO_SCALE",
]
