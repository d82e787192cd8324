"""Persistence helpers for matches and the news query."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubrank.db.models import Match, MatchPlayer, NumberOfSets, User
from clubrank.errors import InvalidMatch

logger = logging.getLogger(__name__)


class MatchRepository:
    """Match lookups and writes bound to one session. Callers commit."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, match_id: int) -> Match | None:
        return self.session.get(Match, match_id)

    def list_all(self) -> list[Match]:
        """All matches, newest first."""
        return list(self.session.scalars(select(Match).order_by(Match.id.desc())))

    def create(
        self,
        player1_id: int,
        player2_id: int,
        number_of_sets: int = NumberOfSets.BEST_OF_THREE,
    ) -> Match:
        """
        Create an unfinished match with two unscored participants.

        Raises:
            InvalidMatch: if the players are the same, unknown, or the set
                count is not a supported best-of format.
        """
        if player1_id == player2_id:
            raise InvalidMatch(f"a match needs two distinct players, got {player1_id} twice")

        try:
            sets = NumberOfSets(number_of_sets)
        except ValueError:
            valid = [int(option) for option in NumberOfSets]
            raise InvalidMatch(f"number_of_sets must be one of {valid}, got {number_of_sets}") from None

        found = set(
            self.session.scalars(select(User.id).where(User.id.in_((player1_id, player2_id))))
        )
        missing = sorted({player1_id, player2_id} - found)
        if missing:
            raise InvalidMatch(f"unknown player ids {missing}")

        match = Match(
            number_of_sets=int(sets),
            players=[
                MatchPlayer(user_id=player1_id),
                MatchPlayer(user_id=player2_id),
            ],
        )
        self.session.add(match)
        self.session.flush()
        logger.info(
            "Created match id=%s players=%s/%s best_of=%s",
            match.id, player1_id, player2_id, int(sets),
        )
        return match

    def delete(self, match_id: int) -> Match | None:
        """Delete a match and its participant rows; returns the deleted match."""
        match = self.get(match_id)
        if match is None:
            return None
        self.session.delete(match)
        self.session.flush()
        logger.info("Deleted match id=%s", match_id)
        return match

    def get_for_update(self, match_id: int) -> Match | None:
        """
        Load a match with a row lock for finalization.

        The lock is taken NOWAIT: a finalize racing another on the same
        match fails immediately instead of blocking.
        """
        statement = (
            select(Match)
            .where(Match.id == match_id)
            .with_for_update(nowait=True)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(statement).first()

    def persist(self, match: Match) -> Match:
        """Flush a match together with its participant rows."""
        self.session.add(match)
        self.session.flush()
        return match

    def latest_with_news(self, limit: int) -> list[Match]:
        """
        Most recent finished matches that carry news text.

        Ordered by completion date descending (undated last), ties broken by
        id descending so the result is deterministic.
        """
        statement = (
            select(Match)
            .where(
                Match.is_finished.is_(True),
                Match.news.is_not(None),
                func.trim(Match.news) != "",
            )
            .order_by(Match.date.desc().nulls_last(), Match.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement))
