"""
FastAPI application for Club Ranking.

REST endpoints for users and matches, the ranking and news views, and two
WebSocket hubs that push view changes to connected clients.

Run with:
    clubrank-web
or:
    uvicorn clubrank.web.main:app --reload
"""

import asyncio
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from clubrank.config import Settings, settings
from clubrank.db.session import SessionLocal, get_db
from clubrank.errors import (
    ClubRankError,
    ConcurrentUpdateConflict,
    InvalidMatch,
    InvalidScores,
    InvalidWinner,
    MatchNotFound,
    MissingScore,
    RatingAlreadyApplied,
    UserInUse,
    UserNotFound,
)
from clubrank.matches import MatchFinalizer, MatchView, ScoreEntry, ViewRefreshCoordinator
from clubrank.notify import HubNotifier, WebSocketHub
from clubrank.repositories import MatchRepository, UserRepository
from clubrank.web.schemas import (
    FinalizeOut,
    MatchCreate,
    MatchOut,
    NewsOut,
    RankingEntry,
    RatingChangeOut,
    UpdateMatch,
    UserCreate,
    UserOut,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidWinner: 400,
    MissingScore: 400,
    InvalidScores: 400,
    InvalidMatch: 400,
    MatchNotFound: 404,
    UserNotFound: 404,
    ConcurrentUpdateConflict: 409,
    RatingAlreadyApplied: 409,
    UserInUse: 409,
}

router = APIRouter()


def _finalizer(request: Request) -> MatchFinalizer:
    return request.app.state.finalizer


def _coordinator(request: Request) -> ViewRefreshCoordinator:
    return request.app.state.coordinator


# =============================================================================
# Users
# =============================================================================

@router.get("/users/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    return UserRepository(db).list_all()


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserRepository(db).get(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


@router.post("/users/", response_model=UserOut, status_code=201)
def create_user(body: UserCreate, request: Request, db: Session = Depends(get_db)):
    try:
        user = UserRepository(db).create(
            body.name, body.initials, elo=request.app.state.settings.elo_default_rating
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return user


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    if not UserRepository(db).delete(user_id):
        raise UserNotFound(user_id)
    db.commit()


# =============================================================================
# Matches
# =============================================================================

@router.get("/matches/", response_model=list[MatchOut])
def list_matches(db: Session = Depends(get_db)):
    return [MatchView.from_model(match) for match in MatchRepository(db).list_all()]


@router.get("/matches/{match_id}", response_model=MatchOut)
def get_match(match_id: int, db: Session = Depends(get_db)):
    match = MatchRepository(db).get(match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return MatchView.from_model(match)


@router.post("/matches/", response_model=MatchOut, status_code=201)
def create_match(body: MatchCreate, db: Session = Depends(get_db)):
    match = MatchRepository(db).create(body.player1_id, body.player2_id, body.number_of_sets)
    view = MatchView.from_model(match)
    db.commit()
    return view


@router.put("/matches/{match_id}", response_model=FinalizeOut)
def finalize_match(
    match_id: int,
    body: UpdateMatch,
    finalizer: MatchFinalizer = Depends(_finalizer),
):
    result = finalizer.finalize(
        match_id,
        body.winner_id,
        [ScoreEntry(entry.player_id, entry.score) for entry in body.scores],
        news=body.news,
        extra_info_1=body.extra_info_1,
        extra_info_2=body.extra_info_2,
        apply_rating_update=body.update_winner,
        expected_version=body.expected_version,
    )
    return FinalizeOut(
        match=MatchOut.model_validate(result.match),
        rating_change=(
            RatingChangeOut.model_validate(result.rating_change)
            if result.rating_change is not None
            else None
        ),
        ranking_changed=result.ranking_changed,
        warnings=[str(warning) for warning in result.warnings],
    )


@router.delete("/matches/{match_id}", status_code=204)
def delete_match(
    match_id: int,
    db: Session = Depends(get_db),
    coordinator: ViewRefreshCoordinator = Depends(_coordinator),
):
    match = MatchRepository(db).delete(match_id)
    if match is None:
        raise MatchNotFound(match_id)
    in_news = match.is_finished and bool((match.news or "").strip())
    db.commit()
    if in_news:
        coordinator.refresh(rating_applied=False)


# =============================================================================
# Views
# =============================================================================

@router.get("/ranking", response_model=list[RankingEntry])
def ranking(db: Session = Depends(get_db)):
    return [
        RankingEntry(rank=position, id=user.id, name=user.name, initials=user.initials, elo=user.elo)
        for position, user in enumerate(UserRepository(db).ranking(), start=1)
    ]


@router.get("/news", response_model=list[NewsOut])
def news(coordinator: ViewRefreshCoordinator = Depends(_coordinator)):
    return coordinator.build_news()


# =============================================================================
# Live hubs
# =============================================================================

async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    # Clients only listen; incoming frames are read to notice the disconnect
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


async def serve_hub(websocket: WebSocket, hub: WebSocketHub) -> None:
    """Stream a hub's messages to one client until it disconnects."""
    async with hub.subscribe() as queue:
        await websocket.accept()
        pump = asyncio.create_task(_pump(websocket, queue))
        drain = asyncio.create_task(_drain(websocket))
        try:
            done, _ = await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pump.cancel()
            drain.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("hub=%s client dropped: %s", hub.name, exc)


@router.websocket("/hubs/ranking")
async def ranking_hub(websocket: WebSocket):
    await serve_hub(websocket, websocket.app.state.ranking_hub)


@router.websocket("/hubs/news")
async def news_hub(websocket: WebSocket):
    await serve_hub(websocket, websocket.app.state.news_hub)


# =============================================================================
# App factory
# =============================================================================

async def club_rank_error_handler(request: Request, exc: ClubRankError) -> JSONResponse:
    status_code = 500
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            status_code = ERROR_STATUS[cls]
            break
    if status_code >= 500:
        logger.error("Unmapped error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(
    session_factory: Optional[Callable[[], Session]] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        session_factory: Session factory for every request and finalize;
            defaults to SessionLocal on the configured database
        app_settings: Settings to use instead of the process-wide ones
    """
    app_settings = app_settings or settings
    factory = session_factory or SessionLocal

    app = FastAPI(title="Club Ranking")

    ranking_hub_ = WebSocketHub("ranking")
    news_hub_ = WebSocketHub("news")
    coordinator = ViewRefreshCoordinator(
        factory,
        HubNotifier(ranking_hub_, news_hub_),
        news_limit=app_settings.news_limit,
    )

    app.state.settings = app_settings
    app.state.ranking_hub = ranking_hub_
    app.state.news_hub = news_hub_
    app.state.coordinator = coordinator
    app.state.finalizer = MatchFinalizer(
        factory,
        coordinator,
        k_factor=app_settings.elo_k_factor,
        guard_rating_reapply=app_settings.guard_rating_reapply,
    )

    if session_factory is not None:
        def get_db_override():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = get_db_override

    app.add_exception_handler(ClubRankError, club_rank_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    from clubrank.logging_config import setup_logging

    setup_logging()
    uvicorn.run(
        "clubrank.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
