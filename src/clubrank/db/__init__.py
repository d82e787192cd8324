"""
Database module for Club Ranking.

Provides SQLAlchemy ORM models and session management.

Usage:
    from clubrank.db import get_session, User, Match

    with get_session() as session:
        users = session.query(User).all()
"""

from clubrank.db.models import (
    Base,
    Match,
    MatchPlayer,
    NumberOfSets,
    User,
)
from clubrank.db.session import (
    SessionLocal,
    create_db_engine,
    get_db,
    get_engine,
    get_session,
)

__all__ = [
    # Base
    "Base",
    # Models
    "User",
    "Match",
    "MatchPlayer",
    "NumberOfSets",
    # Session
    "get_session",
    "get_db",
    "get_engine",
    "create_db_engine",
    "SessionLocal",
]
