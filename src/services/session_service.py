"""Orchestration of communication from API router to puzzle logic and persistence layers (and the reverse direction)."""

import logging
from uuid import UUID

from src.api.models import (
    AppendMoveRequest,
    CompleteSessionRequest,
    CreateSessionResponse,
    GetSessionRequest,
    MovePayload,
    ReplayRequest,
    ReplayResponse,
    SessionResponse,
    SessionSummaryResponse,
    StatsResponse,
)
from src.core.config import DEFAULT_SESSION_LIST_LIMIT
from src.core.exceptions import GameStateError, IllegalMoveError, SessionNotFoundError
from src.core.models import SessionModel
from src.core.shared_types import SessionStatus
from src.db.repository import SessionRepository
from src.puzzle.board import is_won
from src.puzzle.game import format_duration
from src.puzzle.moves import Move, is_legal_move
from src.puzzle.replay import board_at_index, clamp_index, parse_move_log

logger = logging.getLogger(__name__)


class SessionService:
    """Orchestration of layers for puzzle sessions."""

    def __init__(self, repository: SessionRepository) -> None:
        self.repo = repository

    # -- API routes logic ---
    def create_session(self) -> CreateSessionResponse:
        """Called lazily, on the first move of a fresh game."""
        stored = self.repo.create_session()
        logger.info("Created session %s", stored.id)
        return CreateSessionResponse(session_id=stored.id)

    def append_move(self, request: AppendMoveRequest) -> SessionResponse:
        """
        Record one move.
        ----

        1. The session must exist and still be running
        2. Replay the stored log to get the current board
        3. The move must be a legal knight jump on that board, and not go back in time
        4. Append
        """
        stored = self._fetch_session(request.session_id)
        if stored.status != SessionStatus.IN_PROGRESS:
            raise GameStateError(
                f"Session {request.session_id} is already finished. status: {stored.status}"
            )

        history = parse_move_log(stored.moves)
        move = Move.from_record(request.move.to_record())
        if history and move.timestamp < history[-1].timestamp:
            raise IllegalMoveError(
                f"Move timestamp {move.timestamp} is earlier than the previous move ({history[-1].timestamp})."
            )

        board = board_at_index(history, len(history) - 1)
        if not is_legal_move(board, move):
            raise IllegalMoveError(f"Move not allowed: {request.move.to_record()}")

        updated = self.repo.append_move(request.session_id, move.to_record())
        if updated is None:
            raise SessionNotFoundError(f"Session with {request.session_id=} not found.")
        return self._create_session_response(updated)

    def complete_session(self, request: CompleteSessionRequest) -> SessionResponse:
        """
        Won or abandoned. Happens once per session.
        ----

        A win is only accepted when the stored move log replays to the winning layout.
        """
        stored = self._fetch_session(request.session_id)
        if stored.status != SessionStatus.IN_PROGRESS:
            raise GameStateError(
                f"Session {request.session_id} was already completed. status: {stored.status}"
            )

        if request.is_won:
            history = parse_move_log(stored.moves)
            final_board = board_at_index(history, len(history) - 1)
            if not is_won(final_board):
                raise GameStateError(
                    f"Session {request.session_id} cannot be completed as won: "
                    f"its {len(history)} recorded moves end on\n{final_board}"
                )

        updated = self.repo.complete_session(
            request.session_id, request.is_won, request.duration_seconds
        )
        if updated is None:
            raise SessionNotFoundError(f"Session with {request.session_id=} not found.")
        logger.info(
            "Session %s completed (won=%s, moves=%d, %ss)",
            updated.id,
            updated.is_won,
            updated.total_moves,
            updated.duration_seconds,
        )
        return self._create_session_response(updated)

    def get_session(self, request: GetSessionRequest) -> SessionResponse:
        """Full session, including the ordered move log."""
        stored = self._fetch_session(request.session_id)
        return self._create_session_response(stored)

    def list_sessions(
        self, limit: int = DEFAULT_SESSION_LIST_LIMIT
    ) -> list[SessionSummaryResponse]:
        """Summaries (no move logs), most recent first."""
        return [
            self._create_summary_response(stored)
            for stored in self.repo.list_sessions(limit)
        ]

    def get_stats(self) -> StatsResponse:
        stats = self.repo.get_stats()
        return StatsResponse(
            total_games=stats.total_games,
            wins=stats.wins,
            avg_moves_to_win=stats.avg_moves_to_win,
            avg_time_to_win=stats.avg_time_to_win,
            best_moves=stats.best_moves,
            best_time=stats.best_time,
        )

    def replay_session(self, request: ReplayRequest) -> ReplayResponse:
        """Board at a point of the history. Out of range indices clamp to the nearest end."""
        stored = self._fetch_session(request.session_id)
        history = parse_move_log(stored.moves)
        index = clamp_index(history, request.index)
        board = board_at_index(history, index)
        move = history[index] if index >= 0 else None
        return ReplayResponse(
            session_id=stored.id,
            index=index,
            total_moves=len(history),
            board=board.to_rows(),
            move=MovePayload.model_validate(move.to_record()) if move else None,
        )

    # -- Internal helpers --
    def _create_summary_response(self, model: SessionModel) -> SessionSummaryResponse:
        return SessionSummaryResponse(
            session_id=model.id,
            status=model.status,
            started_at=model.started_at,
            completed_at=model.completed_at,
            is_won=model.is_won,
            total_moves=model.total_moves,
            duration_seconds=model.duration_seconds,
            duration=(
                format_duration(model.duration_seconds)
                if model.duration_seconds is not None
                else None
            ),
        )

    def _create_session_response(self, model: SessionModel) -> SessionResponse:
        """Moves go through the replay parser first, so a corrupt log surfaces as such and not as a bad request."""
        moves = parse_move_log(model.moves)
        summary = self._create_summary_response(model)
        return SessionResponse(
            **summary.model_dump(),
            moves=[MovePayload.model_validate(move.to_record()) for move in moves],
        )

    def _fetch_session(self, session_id: UUID) -> SessionModel:
        """Attempt to find the session in the repository and raise error if it fails."""
        session_model = self.repo.get_session(session_id)
        if session_model is None:
            raise SessionNotFoundError(f"Session with {session_id=} not found.")
        return session_model
