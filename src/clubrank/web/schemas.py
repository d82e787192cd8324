"""Request and response bodies for the HTTP API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    initials: Optional[str] = Field(default=None, max_length=10)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    initials: str
    elo: int


class RankingEntry(UserOut):
    rank: int


class MatchCreate(BaseModel):
    player1_id: int
    player2_id: int
    number_of_sets: int = 3


class MatchPlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    name: str
    initials: str
    elo: int
    score: Optional[int] = None
    is_winner: bool


class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number_of_sets: int
    is_finished: bool
    news: Optional[str] = None
    extra_info_1: Optional[str] = None
    extra_info_2: Optional[str] = None
    date: Optional[datetime] = None
    version: int
    players: list[MatchPlayerOut]


class ScoreIn(BaseModel):
    player_id: int
    score: int


class UpdateMatch(BaseModel):
    """Finalize request for PUT /matches/{id}."""

    winner_id: int
    scores: list[ScoreIn]
    news: Optional[str] = None
    extra_info_1: Optional[str] = None
    extra_info_2: Optional[str] = None
    # Whether the result moves both players' ratings
    update_winner: bool = False
    expected_version: Optional[int] = None


class NewsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    news: str
    date: Optional[datetime] = None


class RatingChangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    winner_rating: int
    loser_rating: int
    winner_delta: int
    loser_delta: int
    expected_winner: float
    k_factor: float


class FinalizeOut(BaseModel):
    match: MatchOut
    rating_change: Optional[RatingChangeOut] = None
    ranking_changed: bool
    warnings: list[str] = Field(default_factory=list)


class ErrorOut(BaseModel):
    error: str
    detail: str
