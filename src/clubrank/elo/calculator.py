"""
Elo rating model for club matches.

Pure functions, no I/O. The standard logistic expectation is used:

  Expected score: E_W = 1 / (1 + 10^((R_L - R_W) / S))
  Rating swing:   D   = round(K * (1 - E_W))

Where:
  R_W, R_L = Ratings of the winner and the loser before the match
  K = Maximum points exchanged in one match
  S = Spread factor (how rating difference maps to win probability)

The swing is rounded half away from zero to a whole point, then handed to
the winner as +D and to the loser as -D, so every match is exactly zero-sum.
There are no draws.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from clubrank.elo.constants import DEFAULT_K_FACTOR, ELO_SCALE


@dataclass(frozen=True)
class RatingChange:
    """
    Result of rating one finished match.

    Lives only between computation and commit; it is never stored as
    its own row.
    """
    # Ratings before the match
    winner_rating: int
    loser_rating: int

    # Signed deltas, always exact negatives of each other
    winner_delta: int
    loser_delta: int

    # Pre-match probability that the winner would win
    expected_winner: float

    k_factor: float

    @property
    def winner_after(self) -> int:
        return self.winner_rating + self.winner_delta

    @property
    def loser_after(self) -> int:
        return self.loser_rating + self.loser_delta

    @property
    def was_upset(self) -> bool:
        """Whether the lower-rated player won."""
        return self.winner_rating < self.loser_rating

    def __repr__(self) -> str:
        return (
            f"<RatingChange(winner: {self.winner_rating} -> {self.winner_after}, "
            f"loser: {self.loser_rating} -> {self.loser_after})>"
        )


def expected_score(rating: float, opponent_rating: float, scale: float = ELO_SCALE) -> float:
    """Probability that a player rated ``rating`` beats ``opponent_rating``."""
    try:
        return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale))
    except OverflowError:
        # Gap so large that 10^x leaves float range: the outcome is certain
        return 0.0


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties going away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_rating_change(
    winner_rating: int,
    loser_rating: int,
    k_factor: float = DEFAULT_K_FACTOR,
    scale: float = ELO_SCALE,
) -> RatingChange:
    """
    Compute the rating swing for a decided match.

    Total over its numeric domain: odd inputs such as negative ratings are
    not rejected here.

    Args:
        winner_rating: Winner's rating before the match
        loser_rating: Loser's rating before the match
        k_factor: Maximum points exchanged
        scale: Spread factor

    Returns:
        RatingChange with winner_delta == -loser_delta

    Example:
        change = compute_rating_change(1500, 1500)
        # change.winner_delta == 16, change.loser_delta == -16
    """
    expected_winner = expected_score(winner_rating, loser_rating, scale)
    magnitude = round_half_away_from_zero(k_factor * (1.0 - expected_winner))

    return RatingChange(
        winner_rating=winner_rating,
        loser_rating=loser_rating,
        winner_delta=magnitude,
        loser_delta=-magnitude,
        expected_winner=expected_winner,
        k_factor=k_factor,
    )


class EloCalculator:
    """
    Rating calculator bound to one K-factor and spread.

    Usage:
        calculator = EloCalculator(k_factor=24)
        change = calculator.calculate(winner_rating=1620, loser_rating=1480)
        print(f"Winner: {change.winner_rating} -> {change.winner_after}")
        print(f"Expected win prob: {change.expected_winner:.1%}")
    """

    def __init__(self, k_factor: float = DEFAULT_K_FACTOR, scale: float = ELO_SCALE):
        if k_factor <= 0:
            raise ValueError(f"k_factor must be positive, got {k_factor}")
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.k_factor = k_factor
        self.scale = scale

    def calculate(self, winner_rating: int, loser_rating: int) -> RatingChange:
        return compute_rating_change(winner_rating, loser_rating, self.k_factor, self.scale)
