"""
Replay of a recorded game.

The board at any point of the history is recomputed from the initial layout and the move log. Nothing here keeps a
mutable board around, so the functions are safe to call repeatedly / concurrently for different sessions.
"""

import time
from typing import Any, Callable, Iterator, Optional, Sequence

from src.core.exceptions import (
    CorruptMoveLogError,
    InvalidRequestError,
    MovePreconditionError,
)
from src.puzzle.board import Board, apply_move, initial_board
from src.puzzle.moves import Move

# Autoplay speed of the history viewer
AUTOPLAY_INTERVAL_SECONDS = 0.8


def parse_move_log(records: Sequence[dict[str, Any]]) -> list[Move]:
    """Stored move records -> Moves. A record that cannot be parsed is a corrupt log, not a bad request."""
    moves: list[Move] = []
    for index, record in enumerate(records):
        try:
            move = Move.from_record(record)
        except InvalidRequestError as e:
            raise CorruptMoveLogError(
                f"Move #{index} of the log is malformed: {e}", move_index=index
            ) from e
        if not (move.from_position.is_within_bounds() and move.to_position.is_within_bounds()):
            raise CorruptMoveLogError(
                f"Move #{index} of the log leaves the board: {record!r}", move_index=index
            )
        moves.append(move)
    return moves


def clamp_index(moves: Sequence[Move], index: int) -> int:
    """Scrubbing past either end stops at that end. -1 is the position before the first move."""
    return max(-1, min(index, len(moves) - 1))


def board_at_index(moves: Sequence[Move], index: int) -> Board:
    """
    Fold the moves up to and including `index` over the initial layout.
    ---
    index -1 gives the initial layout, whatever the log contains.
    """
    board = initial_board()
    for move_index in range(clamp_index(moves, index) + 1):
        board = _replay_move(board, moves[move_index], move_index)
    return board


def replay_boards(moves: Sequence[Move]) -> list[Board]:
    """Every frame of the game: the initial layout followed by the board after each move."""
    boards = [initial_board()]
    for move_index, move in enumerate(moves):
        boards.append(_replay_move(boards[-1], move, move_index))
    return boards


def _replay_move(board: Board, move: Move, move_index: int) -> Board:
    try:
        return apply_move(board, move)
    except MovePreconditionError as e:
        raise CorruptMoveLogError(
            f"Move #{move_index} does not replay from the recorded history: {e}",
            move_index=move_index,
        ) from e


class ReplayCursor:
    """
    Playback position within one move log (the history viewer).

    Only the index is state. The board is recomputed by board_at_index on every access.
    """

    def __init__(self, moves: Sequence[Move], index: int = -1) -> None:
        self.moves = list(moves)
        # Validate the whole log upfront: a corrupt log should not play halfway and then fail
        replay_boards(self.moves)
        self.index = clamp_index(self.moves, index)

    @property
    def board(self) -> Board:
        return board_at_index(self.moves, self.index)

    @property
    def current_move(self) -> Optional[Move]:
        """The move that led to the current board (None before the first move)."""
        if self.index < 0:
            return None
        return self.moves[self.index]

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.moves) - 1

    def go_to(self, index: int) -> Board:
        self.index = clamp_index(self.moves, index)
        return self.board

    def step_forward(self) -> Board:
        return self.go_to(self.index + 1)

    def step_back(self) -> Board:
        return self.go_to(self.index - 1)

    def rewind(self) -> Board:
        return self.go_to(-1)

    def to_end(self) -> Board:
        return self.go_to(len(self.moves) - 1)

    def autoplay(
        self,
        interval_seconds: float = AUTOPLAY_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Iterator[Board]:
        """
        Step forward on a fixed interval until the end of the log, yielding each board.
        Stop early by simply no longer iterating; the cursor stays where playback got to.
        """
        while not self.at_end:
            sleep(interval_seconds)
            yield self.step_forward()
