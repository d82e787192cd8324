"""
Match finalization: record the result of a match and, optionally, its
rating effect, as one atomic unit of work.

Flow of one finalize:
1. Validate the request against the stored match (nothing is written yet)
2. Lock both players and compute the rating change (if requested)
3. Write the match, its two participant rows and both ratings
4. Commit once
5. Refresh the derived views (ranking, news) outside the transaction

A finalize that loses a race against another write to the same match or
players is rolled back in full and raises ConcurrentUpdateConflict.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clubrank.config import settings
from clubrank.db.models import Match
from clubrank.elo.calculator import EloCalculator, RatingChange
from clubrank.errors import (
    ConcurrentUpdateConflict,
    InvalidScores,
    InvalidWinner,
    MatchNotFound,
    MissingScore,
    NotificationDeliveryFailed,
    RatingAlreadyApplied,
)
from clubrank.matches.projection import MatchView
from clubrank.matches.views import NewsItem, ViewRefreshCoordinator
from clubrank.repositories.matches import MatchRepository
from clubrank.repositories.users import UserRepository

logger = logging.getLogger(__name__)

# PostgreSQL: lock_not_available, raised by FOR UPDATE NOWAIT
LOCK_NOT_AVAILABLE = "55P03"


@dataclass(frozen=True)
class ScoreEntry:
    player_id: int
    score: int


@dataclass
class FinalizeResult:
    """
    Outcome of a committed finalize.

    A non-empty ``warnings`` list means the result is stored but some view
    subscribers were not told about it.
    """
    match: MatchView
    rating_change: Optional[RatingChange]
    ranking_changed: bool
    news: Optional[list[NewsItem]]
    warnings: list[NotificationDeliveryFailed] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


def is_lock_conflict(exc: OperationalError) -> bool:
    """Whether a driver error means another transaction holds the rows."""
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == LOCK_NOT_AVAILABLE:
        return True
    return "database is locked" in str(exc.orig).lower()


class MatchFinalizer:
    """
    Finalizes matches.

    Each call to finalize() opens its own session from ``session_factory``,
    so one finalizer can be shared across request threads.

    Usage:
        finalizer = MatchFinalizer(SessionLocal, coordinator)
        result = finalizer.finalize(
            match_id=7,
            winner_id=3,
            scores=[ScoreEntry(3, 2), ScoreEntry(5, 1)],
            news="Anna takes the derby",
            apply_rating_update=True,
        )
        print(result.rating_change)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        coordinator: ViewRefreshCoordinator,
        *,
        k_factor: Optional[float] = None,
        guard_rating_reapply: Optional[bool] = None,
    ):
        self.session_factory = session_factory
        self.coordinator = coordinator
        self.calculator = EloCalculator(
            k_factor=k_factor if k_factor is not None else settings.elo_k_factor,
            scale=settings.elo_scale,
        )
        self.guard_rating_reapply = (
            guard_rating_reapply
            if guard_rating_reapply is not None
            else settings.guard_rating_reapply
        )

    def finalize(
        self,
        match_id: int,
        winner_id: int,
        scores: Iterable[ScoreEntry],
        *,
        news: Optional[str] = None,
        extra_info_1: Optional[str] = None,
        extra_info_2: Optional[str] = None,
        apply_rating_update: bool = False,
        expected_version: Optional[int] = None,
    ) -> FinalizeResult:
        """
        Record the result of a match.

        Args:
            match_id: Match to finalize
            winner_id: User who won; must be one of the match's two players
            scores: One entry per participant
            news: Text for the news feed (blank text keeps it out of the feed)
            extra_info_1: Free-form extra information
            extra_info_2: Free-form extra information
            apply_rating_update: Move both players' ratings by the Elo swing
            expected_version: Reject the finalize if the match changed since
                the caller read this version

        Returns:
            FinalizeResult; check ``warnings`` for undelivered notifications.

        Raises:
            InvalidWinner: Winner unknown or not a participant
            MatchNotFound: No such match
            MissingScore: A participant has no score entry
            InvalidScores: Duplicate or negative score entries
            RatingAlreadyApplied: Rating effect already applied earlier
            ConcurrentUpdateConflict: Lost a race; nothing was written
        """
        entries = list(scores)

        with self.session_factory() as session:
            try:
                match_view, change = self._finalize_in_session(
                    session,
                    match_id,
                    winner_id,
                    entries,
                    news=news,
                    extra_info_1=extra_info_1,
                    extra_info_2=extra_info_2,
                    apply_rating_update=apply_rating_update,
                    expected_version=expected_version,
                )
                session.commit()
            except StaleDataError as exc:
                session.rollback()
                logger.warning("Finalize of match_id=%s lost a race: %s", match_id, exc)
                raise ConcurrentUpdateConflict(match_id, "stale version at write") from exc
            except OperationalError as exc:
                session.rollback()
                if is_lock_conflict(exc):
                    logger.warning("Finalize of match_id=%s found rows locked", match_id)
                    raise ConcurrentUpdateConflict(match_id, "rows locked by another update") from exc
                raise
            except Exception:
                session.rollback()
                raise

        if change is not None:
            logger.info(
                "Finalized match_id=%s winner_id=%s rating %+d/%+d",
                match_id, winner_id, change.winner_delta, change.loser_delta,
            )
        else:
            logger.info("Finalized match_id=%s winner_id=%s (no rating update)", match_id, winner_id)

        refresh = self.coordinator.refresh(rating_applied=change is not None)
        return FinalizeResult(
            match=match_view,
            rating_change=change,
            ranking_changed=refresh.ranking_changed,
            news=refresh.news,
            warnings=refresh.warnings,
        )

    def _finalize_in_session(
        self,
        session: Session,
        match_id: int,
        winner_id: int,
        entries: list[ScoreEntry],
        *,
        news: Optional[str],
        extra_info_1: Optional[str],
        extra_info_2: Optional[str],
        apply_rating_update: bool,
        expected_version: Optional[int],
    ) -> tuple[MatchView, Optional[RatingChange]]:
        users = UserRepository(session)
        matches = MatchRepository(session)

        # --- Validation: every check runs before the first write ---
        if users.get(winner_id) is None:
            logger.info("Rejected finalize of match_id=%s: unknown winner_id=%s", match_id, winner_id)
            raise InvalidWinner(winner_id)

        match = matches.get_for_update(match_id)
        if match is None:
            logger.info("Rejected finalize: match_id=%s not found", match_id)
            raise MatchNotFound(match_id)

        if winner_id not in match.participant_ids:
            logger.info(
                "Rejected finalize of match_id=%s: winner_id=%s is not a participant",
                match_id, winner_id,
            )
            raise InvalidWinner(winner_id, match_id)

        score_by_player = self._validate_scores(match, entries)

        if expected_version is not None and match.version_id != expected_version:
            logger.info(
                "Rejected finalize of match_id=%s: version %s, caller expected %s",
                match_id, match.version_id, expected_version,
            )
            raise ConcurrentUpdateConflict(
                match_id,
                f"match is at version {match.version_id}, expected {expected_version}",
            )

        if apply_rating_update and self.guard_rating_reapply and match.rating_applied_at is not None:
            logger.info("Rejected finalize of match_id=%s: rating already applied", match_id)
            raise RatingAlreadyApplied(match_id)

        # --- Rating: read current ratings under lock ---
        change: Optional[RatingChange] = None
        if apply_rating_update:
            loser_id = next(pid for pid in match.participant_ids if pid != winner_id)
            locked = users.lock_for_rating([winner_id, loser_id])
            winner, loser = locked[winner_id], locked[loser_id]
            change = self.calculator.calculate(winner.elo, loser.elo)

        # --- Writes ---
        now = datetime.utcnow()
        match.news = news
        match.extra_info_1 = extra_info_1
        match.extra_info_2 = extra_info_2
        match.is_finished = True
        if match.date is None:
            match.date = now
        # Always dirty the match row so its version is checked at flush
        match.updated_at = now
        if change is not None:
            match.rating_applied_at = now

        for player in match.players:
            player.is_winner = player.user_id == winner_id
            player.score = score_by_player[player.user_id]

        matches.persist(match)

        if change is not None:
            users.persist_rating(winner, change.winner_after)
            users.persist_rating(loser, change.loser_after)

        return MatchView.from_model(match), change

    @staticmethod
    def _validate_scores(match: Match, entries: list[ScoreEntry]) -> dict[int, int]:
        participants = set(match.participant_ids)
        score_by_player: dict[int, int] = {}

        for entry in entries:
            if entry.player_id not in participants:
                logger.info(
                    "Ignoring score for player_id=%s: not in match_id=%s",
                    entry.player_id, match.id,
                )
                continue
            if entry.player_id in score_by_player:
                raise InvalidScores(match.id, f"duplicate score for player_id={entry.player_id}")
            if entry.score < 0:
                raise InvalidScores(
                    match.id, f"negative score {entry.score} for player_id={entry.player_id}"
                )
            score_by_player[entry.player_id] = entry.score

        missing = participants - score_by_player.keys()
        if missing:
            logger.info("Rejected finalize of match_id=%s: missing scores %s", match.id, sorted(missing))
            raise MissingScore(match.id, missing)

        return score_by_player
