"""Unit tests for src/services/game_recorder.py"""

import threading
from typing import Generator, Optional
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from src.api.models import GetSessionRequest
from src.core.exceptions import PersistenceError
from src.core.shared_types import SessionStatus
from src.db.sql_repository import SQLSessionRepository
from src.puzzle.board import Board, initial_board, win_board
from src.puzzle.game import GameStatus, MoveRecorded, PuzzleGame, SessionCompleted
from src.puzzle.moves import Move
from src.puzzle.position import Position
from src.puzzle.replay import board_at_index, parse_move_log
from src.services.game_recorder import GameRecorder, LocalSessionGateway
from src.services.session_service import SessionService

FOUR_MOVES_FROM_WIN = [[None, "black", None], ["white", None, "black"], [None, "white", None]]


# --- MOCK DEPENDENCIES ----
class RecordingGateway:
    """Remembers every call. Can be told to fail, always or for one specific append."""

    def __init__(self) -> None:
        self.created: list[UUID] = []
        self.moves: dict[UUID, list[Move]] = {}
        self.completions: dict[UUID, tuple[bool, int]] = {}
        self.fail_create = False
        self.fail_append = False
        self.fail_complete = False
        self.fail_append_number: Optional[int] = None  # 1-based
        self._appends = 0

    def create_session(self) -> UUID:
        if self.fail_create:
            raise PersistenceError("store unreachable")
        session_id = uuid4()
        self.created.append(session_id)
        self.moves[session_id] = []
        return session_id

    def append_move(self, session_id: UUID, move: Move) -> None:
        self._appends += 1
        if self.fail_append or self._appends == self.fail_append_number:
            raise PersistenceError("write rejected")
        self.moves[session_id].append(move)

    def complete_session(self, session_id: UUID, is_won: bool, duration_seconds: int) -> None:
        if self.fail_complete:
            raise PersistenceError("write rejected")
        self.completions[session_id] = (is_won, duration_seconds)


class SlowGateway(RecordingGateway):
    """The store only answers once `answer` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.answer = threading.Event()

    def create_session(self) -> UUID:
        self.answer.wait(timeout=5)
        return super().create_session()


class FlakyLocalGateway(LocalSessionGateway):
    """Real service behind it, but the given append (1-based) is lost on the way."""

    def __init__(self, service: SessionService, fail_append_number: int) -> None:
        super().__init__(service)
        self.fail_append_number = fail_append_number
        self._appends = 0

    def append_move(self, session_id: UUID, move: Move) -> None:
        self._appends += 1
        if self._appends == self.fail_append_number:
            raise PersistenceError("connection reset")
        super().append_move(session_id, move)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def recorder(gateway: RecordingGateway) -> Generator[GameRecorder, None, None]:
    with GameRecorder(gateway, PuzzleGame(clock=FakeClock())) as recorder:
        yield recorder


def play(recorder: GameRecorder, move: Move) -> list:
    recorder.select(move.from_position)
    return recorder.select(move.to_position)


# --- LAZY SESSION CREATION ---
def test_no_session_before_first_move(recorder: GameRecorder, gateway: RecordingGateway) -> None:
    recorder.select(Position(2, 0))
    recorder.select(Position(1, 1))
    recorder.flush()
    assert recorder.session_id is None
    assert gateway.created == []


def test_first_move_creates_session(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    events = play(recorder, solution_moves[0])
    recorder.flush()

    assert isinstance(events[0], MoveRecorded)
    assert gateway.created == [recorder.session_id]
    assert gateway.moves[recorder.session_id] == [recorder.game.moves[0]]


def test_moves_are_recorded_in_order(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    for move in solution_moves[:6]:
        play(recorder, move)
    recorder.flush()
    assert len(gateway.created) == 1
    assert gateway.moves[recorder.session_id] == recorder.game.moves


# --- BACKGROUND WRITES ---
def test_local_board_does_not_wait_for_the_store(solution_moves: list[Move]) -> None:
    gateway = SlowGateway()
    with GameRecorder(gateway, PuzzleGame(clock=FakeClock())) as recorder:
        first = solution_moves[0]
        events = play(recorder, first)

        # the store has not answered yet, the game already moved on
        assert events == [MoveRecorded(recorder.game.moves[0])]
        assert recorder.game.board.piece(first.to_position) == first.piece
        assert recorder.game.board.piece(first.from_position).is_empty
        assert gateway.created == []

        play(recorder, solution_moves[1])
        assert recorder.game.move_count == 2

        gateway.answer.set()
        recorder.flush()
        assert gateway.moves[recorder.session_id] == recorder.game.moves


def test_close_waits_for_pending_writes(gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    recorder = GameRecorder(gateway, PuzzleGame(clock=FakeClock()))
    for move in solution_moves[:3]:
        play(recorder, move)
    recorder.close()

    assert len(gateway.created) == 1
    assert gateway.moves[gateway.created[0]] == recorder.game.moves


def test_closed_recorder_refuses_work(gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    recorder = GameRecorder(gateway, PuzzleGame(clock=FakeClock()))
    recorder.close()
    recorder.close()  # closing twice is fine
    with pytest.raises(RuntimeError):
        play(recorder, solution_moves[0])


# --- COMPLETION ---
def test_win_completes_session(gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    with GameRecorder(gateway, PuzzleGame(board=Board.from_rows(FOUR_MOVES_FROM_WIN), clock=FakeClock())) as recorder:
        events = []
        for move in solution_moves[12:]:
            events.extend(play(recorder, move))
        recorder.flush()

        assert SessionCompleted(is_won=True, total_moves=4, duration_seconds=0) in events
        assert gateway.completions == {recorder.session_id: (True, 0)}


def test_abandon_completes_session_and_starts_fresh(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    play(recorder, solution_moves[0])
    play(recorder, solution_moves[1])
    recorder.flush()
    first_session = recorder.session_id

    events = recorder.reset()
    recorder.flush()

    assert events == [SessionCompleted(is_won=False, total_moves=2, duration_seconds=0)]
    assert gateway.completions == {first_session: (False, 0)}
    assert recorder.session_id is None

    # the next game gets its own session
    play(recorder, solution_moves[0])
    recorder.flush()
    assert recorder.session_id not in (None, first_session)
    assert len(gateway.created) == 2


# --- PERSISTENCE FAILURES ---
def test_failed_append_keeps_local_move(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    gateway.fail_append = True
    events = play(recorder, solution_moves[0])

    assert events == [MoveRecorded(recorder.game.moves[0])]
    assert recorder.game.move_count == 1
    assert recorder.game.board.piece(solution_moves[0].to_position) == solution_moves[0].piece

    recorder.flush()
    assert len(recorder.persistence_errors) == 1
    assert isinstance(recorder.persistence_errors[0], PersistenceError)


def test_one_lost_append_stops_recording_the_game(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    gateway.fail_append_number = 3
    for move in solution_moves:
        play(recorder, move)
    recorder.flush()

    # the game itself is unaffected
    assert recorder.game.status == GameStatus.WON
    assert recorder.game.board == win_board()

    # one error, no appends after the hole, and no win claimed for the truncated log
    assert len(recorder.persistence_errors) == 1
    assert gateway.moves[recorder.session_id] == recorder.game.moves[:2]
    assert gateway.completions == {}


def test_recording_resumes_after_reset(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    gateway.fail_append_number = 1
    play(recorder, solution_moves[0])
    play(recorder, solution_moves[1])
    recorder.reset()

    play(recorder, solution_moves[0])
    recorder.flush()

    assert len(gateway.created) == 2
    assert gateway.moves[gateway.created[0]] == []
    assert gateway.moves[gateway.created[1]] == [recorder.game.moves[0]]
    assert gateway.completions == {}
    assert len(recorder.persistence_errors) == 1


def test_failed_create_keeps_game_local(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    gateway.fail_create = True
    for move in solution_moves[:3]:
        play(recorder, move)
    recorder.flush()

    assert recorder.session_id is None
    assert recorder.game.move_count == 3
    # reported once, not retried for every following move of this game
    assert len(recorder.persistence_errors) == 1


def test_failed_completion_is_reported(gateway: RecordingGateway, solution_moves: list[Move]) -> None:
    with GameRecorder(gateway, PuzzleGame(board=Board.from_rows(FOUR_MOVES_FROM_WIN), clock=FakeClock())) as recorder:
        gateway.fail_complete = True
        for move in solution_moves[12:]:
            play(recorder, move)
        recorder.flush()

        assert recorder.game.status == GameStatus.WON
        assert len(recorder.persistence_errors) == 1


def test_failures_are_logged(recorder: GameRecorder, gateway: RecordingGateway, solution_moves: list[Move], caplog: pytest.LogCaptureFixture) -> None:
    gateway.fail_append = True
    with caplog.at_level("WARNING", logger="src.services.game_recorder"):
        play(recorder, solution_moves[0])
        recorder.flush()
    assert "write rejected" in caplog.text
    assert "stays local" in caplog.text


# --- END TO END (in-process transport, real database) ---
def test_full_game_round_trip(db_session_repo: Session, solution_moves: list[Move]) -> None:
    """Play the whole puzzle, then replay the stored log: it must end on the board that won."""
    service = SessionService(SQLSessionRepository(db_session_repo))
    with GameRecorder(LocalSessionGateway(service)) as recorder:
        for move in solution_moves:
            play(recorder, move)
        recorder.flush()

        assert recorder.persistence_errors == []
        assert recorder.session_id is not None
        stored = service.get_session(GetSessionRequest(session_id=recorder.session_id))
        assert stored.status == SessionStatus.WON
        assert stored.total_moves == 16

        history = parse_move_log([m.to_record() for m in stored.moves])
        assert board_at_index(history, -1) == initial_board()
        assert board_at_index(history, len(history) - 1) == win_board() == recorder.game.board


def test_lost_append_never_stores_a_false_win(db_session_repo: Session, solution_moves: list[Move]) -> None:
    service = SessionService(SQLSessionRepository(db_session_repo))
    with GameRecorder(FlakyLocalGateway(service, fail_append_number=3)) as recorder:
        for move in solution_moves:
            play(recorder, move)
        recorder.flush()

        assert recorder.game.status == GameStatus.WON
        assert [type(e) for e in recorder.persistence_errors] == [PersistenceError]
        assert recorder.session_id is not None
        stored = service.get_session(GetSessionRequest(session_id=recorder.session_id))

    assert stored.status == SessionStatus.IN_PROGRESS
    assert stored.is_won is False
    assert stored.total_moves == 2
    assert service.get_stats().wins == 0


def test_abandoned_game_is_stored(db_session_repo: Session, solution_moves: list[Move]) -> None:
    service = SessionService(SQLSessionRepository(db_session_repo))
    with GameRecorder(LocalSessionGateway(service)) as recorder:
        play(recorder, solution_moves[0])
        play(recorder, solution_moves[1])
        recorder.flush()
        session_id = recorder.session_id
        assert session_id is not None

        recorder.reset()
        recorder.flush()

    stored = service.get_session(GetSessionRequest(session_id=session_id))
    assert stored.status == SessionStatus.ABANDONED
    assert stored.is_won is False
    assert stored.total_moves == 2
