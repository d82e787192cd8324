"""
Database session management for Club Ranking.

Provides SQLAlchemy engine and session factory with connection pooling
configured from config.py.

Usage:
    # As a context manager (recommended for scripts)
    from clubrank.db import get_session

    with get_session() as session:
        users = session.query(User).all()
        session.add(new_user)
        # Commits automatically on exit, rolls back on exception

    # As a factory handed to long-lived services (finalizer, web app)
    from clubrank.db import SessionLocal

    finalizer = MatchFinalizer(SessionLocal, coordinator)
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from clubrank.config import settings


def create_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine for the given URL.

    The engine is configured with:
    - Connection pool sizes from settings (server databases only)
    - Pre-ping to verify connections before use (handles stale connections)
    - Foreign key enforcement switched on for SQLite connections
    """
    is_sqlite = database_url.startswith("sqlite")
    pool_options = {}
    if not is_sqlite:
        pool_options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
        }

    engine = create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connection is alive before using
        echo=echo,
        **pool_options,
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            """SQLite leaves foreign keys off unless asked per connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine for the configured database (SQL echo in DEBUG)."""
    return create_db_engine(
        database_url or settings.database_url,
        echo=settings.log_level == "DEBUG",  # Log SQL only in debug mode
    )


# Create the engine (singleton pattern via module-level variable)
_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - creates new sessions bound to our engine
SessionLocal = sessionmaker(
    autocommit=False,  # We'll handle commits explicitly
    autoflush=False,  # Don't auto-flush before queries (more control)
    bind=_get_engine(),
)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    This is the recommended way to use sessions in scripts.

    Example:
        with get_session() as session:
            user = session.get(User, 1)
            user.name = "Renamed"
            # Commits automatically when exiting the block

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Use this with FastAPI's Depends() for request-scoped sessions.

    Example:
        @router.get("/users/")
        def list_users(db: Session = Depends(get_db)):
            return UserRepository(db).list_all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
