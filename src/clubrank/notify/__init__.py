"""
Notification transport: sinks the view refresh coordinator publishes to,
and the WebSocket hub that fans events out to live clients.
"""

from clubrank.notify.base import (
    NEWS_UPDATED_EVENT,
    RANKING_CHANGED_EVENT,
    HubNotifier,
    LogNotifier,
    Notifier,
)
from clubrank.notify.hub import WebSocketHub

__all__ = [
    "Notifier",
    "LogNotifier",
    "HubNotifier",
    "WebSocketHub",
    "RANKING_CHANGED_EVENT",
    "NEWS_UPDATED_EVENT",
]
