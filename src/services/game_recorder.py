"""
Bridge between a live PuzzleGame and the Session Store.

The game applies moves locally first. Persisting them is fire-and-forget on a background worker: a failing write gets
logged and kept in `persistence_errors` for the caller to show, but the local game goes on as if nothing happened.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Protocol
from uuid import UUID

from src.api.models import (
    AppendMoveRequest,
    CompleteSessionRequest,
    MovePayload,
)
from src.core.exceptions import GameError
from src.puzzle.game import Event, MoveRecorded, PuzzleGame, SessionCompleted
from src.puzzle.moves import Move
from src.puzzle.position import Position
from src.services.session_service import SessionService

logger = logging.getLogger(__name__)


class SessionGateway(Protocol):
    """What the recorder needs from the transport. Failures are raised as GameError subclasses."""

    def create_session(self) -> UUID: ...

    def append_move(self, session_id: UUID, move: Move) -> None: ...

    def complete_session(
        self, session_id: UUID, is_won: bool, duration_seconds: int
    ) -> None: ...


class LocalSessionGateway:
    """In-process transport: talks to the SessionService directly instead of over HTTP."""

    def __init__(self, service: SessionService) -> None:
        self.service = service

    def create_session(self) -> UUID:
        return self.service.create_session().session_id

    def append_move(self, session_id: UUID, move: Move) -> None:
        self.service.append_move(
            AppendMoveRequest(
                session_id=session_id,
                move=MovePayload.model_validate(move.to_record()),
            )
        )

    def complete_session(
        self, session_id: UUID, is_won: bool, duration_seconds: int
    ) -> None:
        self.service.complete_session(
            CompleteSessionRequest(
                session_id=session_id,
                is_won=is_won,
                duration_seconds=duration_seconds,
            )
        )


class GameRecorder:
    """
    One interactive game (and the games after it when reset) plus its persistence.

    Writes go to a single background worker, in the order the game produced them. `select` and `reset` return
    as soon as the local board is updated. Call `flush` to wait for pending writes, `close` when done.
    """

    def __init__(self, gateway: SessionGateway, game: Optional[PuzzleGame] = None) -> None:
        self.gateway = gateway
        self.game = game if game is not None else PuzzleGame()
        self.session_id: Optional[UUID] = None
        self.persistence_errors: list[GameError] = []
        self._unrecorded = False
        # One worker only: a move must never overtake the one before it
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="game-recorder"
        )

    def __enter__(self) -> "GameRecorder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def select(self, position: Position) -> list[Event]:
        events = self.game.select(position)
        if events:
            self._submit(self._publish, events)
        return events

    def reset(self) -> list[Event]:
        """Abandon a running game (recorded as such) and prepare a fresh one. The next move opens a new session."""
        events = self.game.reset()
        self._submit(self._publish_and_start_over, events)
        return events

    def flush(self) -> None:
        """Block until every write handed over so far has been attempted."""
        self._submit(lambda: None).result()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -- PRIVATE HELPERS ---
    def _submit(self, fn: Callable[..., None], *args: Any) -> Future:
        if self._executor is None:
            raise RuntimeError("GameRecorder is closed")
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_crash)
        return future

    # Everything below runs on the worker thread
    def _publish(self, events: list[Event]) -> None:
        for event in events:
            if isinstance(event, MoveRecorded):
                self._record_move(event.move)
            elif isinstance(event, SessionCompleted):
                self._record_completion(event)

    def _publish_and_start_over(self, events: list[Event]) -> None:
        self._publish(events)
        self.session_id = None
        self._unrecorded = False

    def _ensure_session(self) -> Optional[UUID]:
        """Sessions are created lazily, on the first move."""
        if self.session_id is None:
            try:
                self.session_id = self.gateway.create_session()
            except GameError as e:
                self._stop_recording("create session", e)
        return self.session_id

    def _record_move(self, move: Move) -> None:
        if self._unrecorded:
            return
        session_id = self._ensure_session()
        if session_id is None:
            return
        try:
            self.gateway.append_move(session_id, move)
        except GameError as e:
            self._stop_recording(f"save move {move.to_record()}", e)

    def _record_completion(self, event: SessionCompleted) -> None:
        if self._unrecorded or self.session_id is None:
            return
        try:
            self.gateway.complete_session(
                self.session_id, event.is_won, event.duration_seconds
            )
        except GameError as e:
            self._report("complete session", e)

    def _stop_recording(self, action: str, error: GameError) -> None:
        """
        The stored log can no longer follow the local game: every later move would be checked against a board that
        misses a move. The rest of this game stays local, the next one (after reset) is recorded again.
        """
        self._report(action, error)
        self._unrecorded = True
        logger.warning(
            "Recording of session %s stopped, the rest of this game stays local",
            self.session_id,
        )

    def _report(self, action: str, error: GameError) -> None:
        logger.warning(
            "Failed to %s for session %s: %s", action, self.session_id, error
        )
        self.persistence_errors.append(error)


def _log_crash(future: Future) -> None:
    error = future.exception()
    if error is not None:
        logger.error("Recording task crashed", exc_info=error)
