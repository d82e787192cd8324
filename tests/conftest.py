"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from clubrank.db.models import Base, Match, User
from clubrank.db.session import create_db_engine
from clubrank.errors import NotificationDeliveryFailed
from clubrank.matches import MatchFinalizer, ViewRefreshCoordinator
from clubrank.notify import Notifier
from clubrank.repositories import MatchRepository, UserRepository


class RecordingNotifier(Notifier):
    """Keeps every published event in order."""

    def __init__(self):
        self.events = []

    def publish_ranking_changed(self):
        self.events.append(("ranking_changed", None))

    def publish_news_updated(self, news):
        self.events.append(("news_updated", list(news)))

    @property
    def names(self):
        return [name for name, _ in self.events]


class FailingNotifier(Notifier):
    """Fails every publish, the way an unreachable transport would."""

    def publish_ranking_changed(self):
        raise NotificationDeliveryFailed("ranking", "transport down")

    def publish_news_updated(self, news):
        raise RuntimeError("socket closed")


@pytest.fixture
def test_engine(tmp_path):
    """
    Create a test database engine.

    A file-backed SQLite database (not :memory:) so that several sessions,
    as used by concurrent finalizes, see each other's commits.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'clubrank.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def coordinator(session_factory, notifier):
    return ViewRefreshCoordinator(session_factory, notifier, news_limit=5)


@pytest.fixture
def finalizer(session_factory, coordinator):
    return MatchFinalizer(session_factory, coordinator, k_factor=32, guard_rating_reapply=True)


@pytest.fixture
def make_user(session_factory):
    """Commit a user and return its id."""
    def _make(name, elo=1500, initials=None):
        with session_factory() as session:
            user = UserRepository(session).create(name, initials, elo=elo)
            session.commit()
            return user.id

    return _make


@pytest.fixture
def make_match(session_factory):
    """Commit an unfinished match between two users and return its id."""
    def _make(player1_id, player2_id, number_of_sets=3):
        with session_factory() as session:
            match = MatchRepository(session).create(player1_id, player2_id, number_of_sets)
            session.commit()
            return match.id

    return _make


@pytest.fixture
def rating_of(session_factory):
    def _rating(user_id):
        with session_factory() as session:
            return session.get(User, user_id).elo

    return _rating


@pytest.fixture
def load_match(session_factory):
    """Fresh read of a match: (is_finished, news, {user_id: (score, is_winner)})."""
    def _load(match_id):
        with session_factory() as session:
            match = session.get(Match, match_id)
            players = {p.user_id: (p.score, p.is_winner) for p in match.players}
            return match.is_finished, match.news, players

    return _load


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
