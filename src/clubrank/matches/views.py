"""
View refresh after a committed finalize.

Two derived views exist: the ranking (all users by rating, pulled by
clients on demand) and the news feed (the latest finished matches that carry
news text). The coordinator tells subscribers the ranking moved, rebuilds
the news feed from scratch, and pushes it.

Nothing here can undo a finalize. Every failure is turned into a
NotificationDeliveryFailed warning and handed back to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clubrank.config import settings
from clubrank.errors import NotificationDeliveryFailed
from clubrank.notify.base import NEWS_UPDATED_EVENT, RANKING_CHANGED_EVENT, Notifier
from clubrank.repositories.matches import MatchRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewsItem:
    """One entry of the news feed."""
    news: str
    date: Optional[datetime]

    def to_dict(self) -> dict[str, Any]:
        return {
            "news": self.news,
            "date": self.date.isoformat() if self.date is not None else None,
        }


@dataclass
class ViewRefresh:
    """Outcome of one refresh pass."""
    ranking_changed: bool
    # None when the news feed could not be rebuilt
    news: Optional[list[NewsItem]]
    warnings: list[NotificationDeliveryFailed] = field(default_factory=list)


class ViewRefreshCoordinator:
    """
    Recomputes and publishes the derived views.

    Usage:
        coordinator = ViewRefreshCoordinator(SessionLocal, LogNotifier())
        refresh = coordinator.refresh(rating_applied=True)
        for warning in refresh.warnings:
            print(warning)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Notifier,
        news_limit: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.news_limit = news_limit if news_limit is not None else settings.news_limit
        if self.news_limit < 1:
            raise ValueError(f"news_limit must be at least 1, got {self.news_limit}")

    def build_news(self) -> list[NewsItem]:
        """Read the news feed fresh from the database."""
        with self.session_factory() as session:
            matches = MatchRepository(session).latest_with_news(self.news_limit)
            return [NewsItem(news=match.news, date=match.date) for match in matches]

    def refresh(self, rating_applied: bool) -> ViewRefresh:
        """
        Publish view changes for a committed finalize.

        Args:
            rating_applied: Whether the finalize changed any rating. Only then
                is a ranking-changed event published, and it goes out first.

        Returns:
            ViewRefresh with the news snapshot that was published and any
            delivery warnings.
        """
        warnings: list[NotificationDeliveryFailed] = []

        if rating_applied:
            try:
                self.notifier.publish_ranking_changed()
            except NotificationDeliveryFailed as exc:
                warnings.append(exc)
            except Exception as exc:
                warnings.append(NotificationDeliveryFailed(RANKING_CHANGED_EVENT, str(exc)))

        news: Optional[list[NewsItem]] = None
        try:
            news = self.build_news()
        except SQLAlchemyError as exc:
            warnings.append(
                NotificationDeliveryFailed(NEWS_UPDATED_EVENT, f"news rebuild failed: {exc}")
            )

        if news is not None:
            try:
                self.notifier.publish_news_updated(news)
            except NotificationDeliveryFailed as exc:
                warnings.append(exc)
            except Exception as exc:
                warnings.append(NotificationDeliveryFailed(NEWS_UPDATED_EVENT, str(exc)))

        for warning in warnings:
            logger.warning("View refresh degraded: %s", warning)

        return ViewRefresh(ranking_changed=rating_applied, news=news, warnings=warnings)
