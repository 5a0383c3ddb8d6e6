"""
The PuzzleGame is the in-memory authority for one interactive game.

It turns cell interactions into selections and moves, keeps the move log of the running game, and reports
what happened as events. It does not know how (or whether) those events get persisted: see src/services/game_recorder.py.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

from src.puzzle.board import Board, apply_move, initial_board, is_won
from src.puzzle.moves import Move, legal_destinations
from src.puzzle.position import Position

Clock = Callable[[], float]


class GameStatus(Enum):
    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    WON = auto()
    ABANDONED = auto()


# --- EVENTS ---
@dataclass(frozen=True)
class MoveRecorded:
    move: Move


@dataclass(frozen=True)
class SessionCompleted:
    is_won: bool
    total_moves: int
    duration_seconds: int


Event = MoveRecorded | SessionCompleted


@dataclass
class PuzzleGame:
    # --- DOMAIN LAYER API ---

    board: Board = field(default_factory=initial_board)
    moves: list[Move] = field(default_factory=list)
    selected: Optional[Position] = None
    status: GameStatus = GameStatus.NOT_STARTED
    clock: Clock = time.monotonic
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def move_count(self) -> int:
        return len(self.moves)

    @property
    def highlighted(self) -> list[Position]:
        """Legal destinations of the selected piece (what the UI marks as reachable)."""
        if self.selected is None:
            return []
        return legal_destinations(self.board, self.selected)

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds on the game clock. The clock stops once the puzzle is solved."""
        if self.started_at is None:
            return 0
        end = self.finished_at if self.finished_at is not None else self.clock()
        return math.floor(end - self.started_at)

    def select(self, position: Position) -> list[Event]:
        """
        Handle a click on a cell.
        ----

        * Nothing selected: select the cell if a knight stands on it.
        * Something selected:
            1. legal destination -> jump, record the move, check for the win
            2. another knight -> select that one instead
            3. anything else -> deselect
        """
        if self.status == GameStatus.WON:
            return []

        if self.selected is None:
            if self._holds_piece(position):
                self.selected = position
            return []

        if position in legal_destinations(self.board, self.selected):
            return self._make_move(self.selected, position)

        self.selected = position if self._holds_piece(position) else None
        return []

    def reset(self) -> list[Event]:
        """
        Start over. A game that was still running counts as abandoned.
        ---
        A finished (won) game or one without any move does not produce another completion.
        """
        events: list[Event] = []
        if self.status == GameStatus.IN_PROGRESS:
            self.status = GameStatus.ABANDONED
            events.append(
                SessionCompleted(
                    is_won=False,
                    total_moves=self.move_count,
                    duration_seconds=self.elapsed_seconds,
                )
            )

        self.board = initial_board()
        self.moves = []
        self.selected = None
        self.started_at = None
        self.finished_at = None
        self.status = GameStatus.NOT_STARTED
        return events

    def abandon(self) -> list[Event]:
        """Same transition as reset (the player walks away from the board)."""
        return self.reset()

    # -- PRIVATE HELPERS ---
    def _holds_piece(self, position: Position) -> bool:
        return position.is_within_bounds() and not self.board.piece(position).is_empty

    def _elapsed_ms(self) -> int:
        assert self.started_at is not None
        return max(0, math.floor((self.clock() - self.started_at) * 1000))

    def _make_move(self, origin: Position, target: Position) -> list[Event]:
        # The game clock starts with the first move, not when the board is shown
        if self.status == GameStatus.NOT_STARTED:
            self.started_at = self.clock()
            self.status = GameStatus.IN_PROGRESS

        move = Move(
            from_position=origin,
            to_position=target,
            piece=self.board.piece(origin),
            timestamp=self._elapsed_ms(),
        )
        self.board = apply_move(self.board, move)
        self.moves.append(move)
        self.selected = None

        events: list[Event] = [MoveRecorded(move)]
        if is_won(self.board):
            self.finished_at = self.clock()
            self.status = GameStatus.WON
            events.append(
                SessionCompleted(
                    is_won=True,
                    total_moves=self.move_count,
                    duration_seconds=self.elapsed_seconds,
                )
            )
        return events


def format_duration(seconds: int) -> str:
    """m:ss, the way the timer is shown to the player"""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"
