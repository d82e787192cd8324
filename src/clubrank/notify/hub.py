"""
In-process publish/subscribe hub for live WebSocket clients.

Each connected client owns an asyncio.Queue on the event loop that serves
it. publish() may be called from any thread (the finalize runs in a worker
thread under FastAPI) and hands the message to every queue through
``loop.call_soon_threadsafe``; it never waits for delivery.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from clubrank.errors import NotificationDeliveryFailed

logger = logging.getLogger(__name__)


class WebSocketHub:
    """Fan-out of JSON messages to the subscribers of one channel."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: dict[int, tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = {}
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue]:
        """Register a queue for the lifetime of the context."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        key = id(queue)
        with self._lock:
            self._subscribers[key] = (loop, queue)
        logger.debug("hub=%s subscriber joined (total=%s)", self.name, self.subscriber_count)
        try:
            yield queue
        finally:
            with self._lock:
                self._subscribers.pop(key, None)
            logger.debug("hub=%s subscriber left (total=%s)", self.name, self.subscriber_count)

    def publish(self, message: dict[str, Any]) -> int:
        """
        Queue a message for every subscriber.

        Returns:
            Number of subscribers the message was handed to.

        Raises:
            NotificationDeliveryFailed: if any subscriber's event loop is
                closed; the others still receive the message.
        """
        with self._lock:
            targets = list(self._subscribers.values())

        failed = 0
        for loop, queue in targets:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, message)
            except RuntimeError:
                failed += 1

        if failed:
            raise NotificationDeliveryFailed(
                self.name, f"{failed} of {len(targets)} subscribers unreachable"
            )
        return len(targets)
