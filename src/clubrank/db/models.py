"""
SQLAlchemy ORM models for Club Ranking.

Tables:
- users: Players and their current rating
- matches: Two-player matches, from creation to finalization
- match_players: The two participant rows of each match (score, winner flag)

Key design decisions:
- A match owns exactly two MatchPlayer rows; they are deleted with it
- Users are referenced by MatchPlayer but never owned by a match
- users and matches carry a SQLAlchemy version counter, so a write based on
  a stale read fails at flush instead of silently overwriting
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from clubrank.elo.constants import DEFAULT_ELO


class NumberOfSets(enum.IntEnum):
    """Best-of format of a match."""

    BEST_OF_ONE = 1
    BEST_OF_THREE = 3
    BEST_OF_FIVE = 5


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Users
# =============================================================================

class User(Base):
    """
    A club player.

    The elo column is only ever changed by the match finalization workflow.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    initials: Mapped[str] = mapped_column(String(10), nullable=False)
    elo: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_ELO)

    # Optimistic concurrency counter, managed by SQLAlchemy
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}', elo={self.elo})>"


# =============================================================================
# Matches
# =============================================================================

class Match(Base):
    """
    A match between two players.

    Lifecycle: created unfinished with two unscored MatchPlayer rows, then
    finalized exactly once (is_finished false -> true). rating_applied_at
    records when a finalize applied the match's rating effect.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    number_of_sets: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(NumberOfSets.BEST_OF_THREE)
    )
    is_finished: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Free text shown in the news feed, plus two extra info fields
    news: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    extra_info_1: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    extra_info_2: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Completion date, set when the match is finalized
    date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    rating_applied_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    players: Mapped[list["MatchPlayer"]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchPlayer.id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index("idx_matches_finished_date", "is_finished", "date"),
    )

    @property
    def participant_ids(self) -> list[int]:
        return [player.user_id for player in self.players]

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, players={self.participant_ids}, "
            f"finished={self.is_finished})>"
        )


class MatchPlayer(Base):
    """One participant of a match: score and whether they won."""

    __tablename__ = "match_players"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    # Unset until the match is finalized
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_winner: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    match: Mapped["Match"] = relationship(back_populates="players")
    user: Mapped["User"] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("match_id", "user_id", name="uq_match_players_match_user"),
        Index("idx_match_players_user", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<MatchPlayer(match_id={self.match_id}, user_id={self.user_id}, "
            f"score={self.score}, winner={self.is_winner})>"
        )
