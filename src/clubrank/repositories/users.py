"""Persistence helpers for users (players) and their ratings."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubrank.db.models import MatchPlayer, User
from clubrank.elo.constants import DEFAULT_ELO
from clubrank.errors import UserInUse

logger = logging.getLogger(__name__)


def default_initials(name: str) -> str:
    """First two letters of the name, upper-cased."""
    return name.strip()[:2].upper()


class UserRepository:
    """User lookups and writes bound to one session. Callers commit."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def list_all(self) -> list[User]:
        return list(self.session.scalars(select(User).order_by(User.id)))

    def ranking(self) -> list[User]:
        """All users, best rating first; ties by name then id for a stable order."""
        statement = select(User).order_by(User.elo.desc(), User.name.asc(), User.id.asc())
        return list(self.session.scalars(statement))

    def create(
        self,
        name: str,
        initials: str | None = None,
        elo: int = DEFAULT_ELO,
    ) -> User:
        """Create a player; initials default to the first two letters of the name."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("User name cannot be empty")

        user = User(
            name=cleaned,
            initials=(initials or "").strip().upper() or default_initials(cleaned),
            elo=elo,
        )
        self.session.add(user)
        self.session.flush()
        logger.info("Created user id=%s name=%s elo=%s", user.id, user.name, user.elo)
        return user

    def delete(self, user_id: int) -> bool:
        """
        Delete a user that no match references.

        Returns:
            False if the user does not exist.

        Raises:
            UserInUse: if any match still references the user.
        """
        user = self.get(user_id)
        if user is None:
            return False

        match_count = self.session.scalar(
            select(func.count(MatchPlayer.id)).where(MatchPlayer.user_id == user_id)
        )
        if match_count:
            raise UserInUse(user_id, int(match_count))

        self.session.delete(user)
        self.session.flush()
        logger.info("Deleted user id=%s", user_id)
        return True

    def lock_for_rating(self, user_ids: Iterable[int]) -> dict[int, User]:
        """
        Re-read users with a row lock, in ascending id order.

        NOWAIT makes a competing finalize fail at once rather than queue
        behind the lock. SQLite ignores FOR UPDATE; the version counter
        catches the race there at flush time.
        """
        ids = sorted(set(user_ids))
        statement = (
            select(User)
            .where(User.id.in_(ids))
            .order_by(User.id)
            .with_for_update(nowait=True)
            .execution_options(populate_existing=True)
        )
        return {user.id: user for user in self.session.scalars(statement)}

    def persist_rating(self, user: User, new_rating: int) -> User:
        """Write a user's new rating (always bumps the row version)."""
        user.elo = new_rating
        user.updated_at = datetime.utcnow()
        self.session.flush()
        return user
