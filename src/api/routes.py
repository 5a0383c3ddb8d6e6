"""HTTP routes. Thin: parse the request, hand it to the SessionService, return its response."""

from typing import Generator, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from src.api.models import (
    AppendMoveRequest,
    CompleteSessionRequest,
    CreateSessionResponse,
    GetSessionRequest,
    ReplayRequest,
    ReplayResponse,
    SessionResponse,
    SessionSummaryResponse,
    SessionUpdateRequest,
    StatsResponse,
)
from src.db.sql_repository import SQLSessionRepository
from src.services.session_service import SessionService

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


# --- DEPENDENCIES ---
def get_db(request: Request) -> Generator[Session, None, None]:
    """One database session per request, from the Database the app was started with."""
    yield from request.app.state.database.get_db()


def get_service(db: Session = Depends(get_db)) -> SessionService:
    return SessionService(SQLSessionRepository(db))


# --- ROUTES ---
@router.post("", response_model=CreateSessionResponse, status_code=201)
def create_session(service: SessionService = Depends(get_service)) -> CreateSessionResponse:
    return service.create_session()


@router.get("", response_model=list[SessionSummaryResponse])
def list_sessions(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1),
    service: SessionService = Depends(get_service),
) -> list[SessionSummaryResponse]:
    """Most recent first. Never more than the configured maximum."""
    max_limit = request.app.state.settings.session_list_limit
    return service.list_sessions(min(limit or max_limit, max_limit))


# NOTE: declared before /{session_id}, otherwise "stats" would be read as a session ID
@router.get("/stats", response_model=StatsResponse)
def get_stats(service: SessionService = Depends(get_service)) -> StatsResponse:
    return service.get_stats()


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: UUID, service: SessionService = Depends(get_service)
) -> SessionResponse:
    return service.get_session(GetSessionRequest(session_id=session_id))


@router.patch("/{session_id}", response_model=SessionResponse)
def update_session(
    session_id: UUID,
    update: SessionUpdateRequest,
    service: SessionService = Depends(get_service),
) -> SessionResponse:
    """Append a move, or complete the session (won / abandoned)."""
    if update.move is not None:
        return service.append_move(
            AppendMoveRequest(session_id=session_id, move=update.move)
        )

    # for the type checker: the request model already made sure these are set for a completion
    assert update.is_won is not None and update.duration_seconds is not None
    return service.complete_session(
        CompleteSessionRequest(
            session_id=session_id,
            is_won=update.is_won,
            duration_seconds=update.duration_seconds,
        )
    )


@router.get("/{session_id}/replay", response_model=ReplayResponse)
def replay_session(
    session_id: UUID,
    index: int = -1,
    service: SessionService = Depends(get_service),
) -> ReplayResponse:
    return service.replay_session(ReplayRequest(session_id=session_id, index=index))
