"""
Match finalization engine and derived-view refresh.

Usage:
    from clubrank.matches import MatchFinalizer, ScoreEntry, ViewRefreshCoordinator
"""

from clubrank.matches.finalize import (
    FinalizeResult,
    MatchFinalizer,
    ScoreEntry,
    is_lock_conflict,
)
from clubrank.matches.projection import MatchPlayerView, MatchView
from clubrank.matches.views import NewsItem, ViewRefresh, ViewRefreshCoordinator

__all__ = [
    "MatchFinalizer",
    "FinalizeResult",
    "ScoreEntry",
    "is_lock_conflict",
    "MatchView",
    "MatchPlayerView",
    "NewsItem",
    "ViewRefresh",
    "ViewRefreshCoordinator",
]
