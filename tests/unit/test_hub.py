"""Unit tests for the WebSocket hub and notifiers."""

import asyncio
from datetime import datetime

import pytest

from clubrank.errors import NotificationDeliveryFailed
from clubrank.matches import NewsItem
from clubrank.notify import HubNotifier, WebSocketHub


def test_publish_reaches_every_subscriber():
    hub = WebSocketHub("news")

    async def scenario():
        async with hub.subscribe() as first, hub.subscribe() as second:
            delivered = hub.publish({"event": "news_updated"})
            received = [
                await asyncio.wait_for(first.get(), timeout=1),
                await asyncio.wait_for(second.get(), timeout=1),
            ]
            return delivered, received

    delivered, received = asyncio.run(scenario())

    assert delivered == 2
    assert received == [{"event": "news_updated"}] * 2


def test_subscriber_removed_on_exit():
    hub = WebSocketHub("ranking")

    async def scenario():
        async with hub.subscribe():
            assert hub.subscriber_count == 1

    asyncio.run(scenario())

    assert hub.subscriber_count == 0
    assert hub.publish({"event": "ranking_changed"}) == 0


def test_closed_loop_raises_delivery_failure():
    hub = WebSocketHub("ranking")
    loop = asyncio.new_event_loop()
    loop.close()
    hub._subscribers[1] = (loop, asyncio.Queue())

    with pytest.raises(NotificationDeliveryFailed) as exc_info:
        hub.publish({"event": "ranking_changed"})

    assert exc_info.value.channel == "ranking"


def test_hub_notifier_payloads():
    ranking_hub, news_hub = WebSocketHub("ranking"), WebSocketHub("news")
    notifier = HubNotifier(ranking_hub, news_hub)

    async def scenario():
        async with ranking_hub.subscribe() as ranking, news_hub.subscribe() as news:
            notifier.publish_ranking_changed()
            notifier.publish_news_updated([NewsItem("Anna wins", datetime(2026, 5, 1))])
            return (
                await asyncio.wait_for(ranking.get(), timeout=1),
                await asyncio.wait_for(news.get(), timeout=1),
            )

    ranking_message, news_message = asyncio.run(scenario())

    assert ranking_message == {"event": "ranking_changed"}
    assert news_message == {
        "event": "news_updated",
        "news": [{"news": "Anna wins", "date": "2026-05-01T00:00:00"}],
    }
