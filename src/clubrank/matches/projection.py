"""Detached read-only projections of a match, safe to use after the session closes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from clubrank.db.models import Match, MatchPlayer


@dataclass(frozen=True)
class MatchPlayerView:
    user_id: int
    name: str
    initials: str
    elo: int
    score: Optional[int]
    is_winner: bool

    @classmethod
    def from_model(cls, player: MatchPlayer) -> "MatchPlayerView":
        return cls(
            user_id=player.user_id,
            name=player.user.name,
            initials=player.user.initials,
            elo=player.user.elo,
            score=player.score,
            is_winner=player.is_winner,
        )


@dataclass(frozen=True)
class MatchView:
    """
    A match as it stood when the projection was taken.

    ``version`` is the optimistic concurrency counter; clients echo it back
    as ``expected_version`` to finalize against exactly what they saw.
    """
    id: int
    number_of_sets: int
    is_finished: bool
    news: Optional[str]
    extra_info_1: Optional[str]
    extra_info_2: Optional[str]
    date: Optional[datetime]
    version: int
    players: list[MatchPlayerView] = field(default_factory=list)

    @classmethod
    def from_model(cls, match: Match) -> "MatchView":
        return cls(
            id=match.id,
            number_of_sets=match.number_of_sets,
            is_finished=match.is_finished,
            news=match.news,
            extra_info_1=match.extra_info_1,
            extra_info_2=match.extra_info_2,
            date=match.date,
            version=match.version_id,
            players=[MatchPlayerView.from_model(player) for player in match.players],
        )

    @property
    def winner(self) -> Optional[MatchPlayerView]:
        for player in self.players:
            if player.is_winner:
                return player
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
