"""
Error taxonomy for Club Ranking.

Finalize failures derive from FinalizeError and are raised before anything
is written, except ConcurrentUpdateConflict which is raised when the commit
loses a race (the losing attempt is rolled back in full).

NotificationDeliveryFailed is never raised out of a finalize: it is carried
as a warning next to an otherwise successful result.
"""

from __future__ import annotations

from collections.abc import Iterable


class ClubRankError(Exception):
    """Base class for all Club Ranking errors."""


# =============================================================================
# Finalize failures
# =============================================================================

class FinalizeError(ClubRankError):
    """A finalize request was rejected or could not be committed."""


class InvalidWinner(FinalizeError):
    """The declared winner is unknown, or is not one of the match's players."""

    def __init__(self, winner_id: int, match_id: int | None = None) -> None:
        self.winner_id = winner_id
        self.match_id = match_id
        if match_id is None:
            message = f"winner_id={winner_id} is not a known user"
        else:
            message = f"winner_id={winner_id} is not a participant of match_id={match_id}"
        super().__init__(message)


class MatchNotFound(FinalizeError):
    def __init__(self, match_id: int) -> None:
        self.match_id = match_id
        super().__init__(f"match_id={match_id} does not exist")


class MissingScore(FinalizeError):
    """One or more participants have no score entry."""

    def __init__(self, match_id: int, player_ids: Iterable[int]) -> None:
        self.match_id = match_id
        self.player_ids = sorted(player_ids)
        super().__init__(
            f"match_id={match_id} is missing scores for player_ids={self.player_ids}"
        )


class InvalidScores(FinalizeError):
    """Score entries are present but unusable (duplicated or negative)."""

    def __init__(self, match_id: int, reason: str) -> None:
        self.match_id = match_id
        self.reason = reason
        super().__init__(f"match_id={match_id} has invalid scores: {reason}")


class RatingAlreadyApplied(FinalizeError):
    """The match's rating effect was applied by an earlier finalize."""

    def __init__(self, match_id: int) -> None:
        self.match_id = match_id
        super().__init__(f"match_id={match_id} has already had its rating applied")


class ConcurrentUpdateConflict(FinalizeError):
    """The commit lost a race against another write to the same rows."""

    def __init__(self, match_id: int, reason: str = "concurrent update") -> None:
        self.match_id = match_id
        self.reason = reason
        super().__init__(f"match_id={match_id} could not be finalized: {reason}")


# =============================================================================
# Non-fatal delivery failures
# =============================================================================

class NotificationDeliveryFailed(ClubRankError):
    """A view-change event could not be delivered (or its payload built)."""

    def __init__(self, channel: str, reason: str) -> None:
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} notification failed: {reason}")


# =============================================================================
# CRUD errors
# =============================================================================

class UserNotFound(ClubRankError):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"user_id={user_id} does not exist")


class UserInUse(ClubRankError):
    """A user cannot be deleted while matches reference them."""

    def __init__(self, user_id: int, match_count: int) -> None:
        self.user_id = user_id
        self.match_count = match_count
        super().__init__(f"user_id={user_id} is referenced by {match_count} match(es)")


class InvalidMatch(ClubRankError):
    """A match creation request was malformed."""
