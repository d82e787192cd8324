"""Notification sinks for the ranking and news views."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from clubrank.notify.hub import WebSocketHub

if TYPE_CHECKING:
    from clubrank.matches.views import NewsItem

logger = logging.getLogger(__name__)

RANKING_CHANGED_EVENT = "ranking_changed"
NEWS_UPDATED_EVENT = "news_updated"


class Notifier:
    """
    Sink for view-change events.

    Both calls are best-effort and must not block on client delivery.
    Subscribers of ranking_changed get no payload and are expected to
    re-pull the full ranking; news subscribers always get the full snapshot.
    """

    def publish_ranking_changed(self) -> None:
        raise NotImplementedError

    def publish_news_updated(self, news: Sequence["NewsItem"]) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Writes events to the log; for scripts running outside the web process."""

    def publish_ranking_changed(self) -> None:
        logger.info("event=%s", RANKING_CHANGED_EVENT)

    def publish_news_updated(self, news: Sequence["NewsItem"]) -> None:
        logger.info("event=%s items=%s", NEWS_UPDATED_EVENT, len(news))


class HubNotifier(Notifier):
    """Pushes events to connected WebSocket clients."""

    def __init__(self, ranking_hub: WebSocketHub, news_hub: WebSocketHub) -> None:
        self.ranking_hub = ranking_hub
        self.news_hub = news_hub

    def publish_ranking_changed(self) -> None:
        delivered = self.ranking_hub.publish({"event": RANKING_CHANGED_EVENT})
        logger.debug("Ranking change pushed to %s subscriber(s)", delivered)

    def publish_news_updated(self, news: Sequence["NewsItem"]) -> None:
        delivered = self.news_hub.publish(
            {"event": NEWS_UPDATED_EVENT, "news": [item.to_dict() for item in news]}
        )
        logger.debug("News snapshot (%s items) pushed to %s subscriber(s)", len(news), delivered)
