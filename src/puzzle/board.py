"""The board: a 3x3 grid of pieces. Immutable, every move produces a new Board."""

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Self

from src.core.exceptions import MovePreconditionError
from src.puzzle.moves import Move
from src.puzzle.pieces import PIECE_SYMBOLS, Piece
from src.puzzle.position import BOARD_DIMENSIONS, Position

Grid = tuple[tuple[Piece, ...], ...]


@dataclass(frozen=True)
class Board:
    cells: Grid

    @classmethod
    def from_rows(cls, rows: list[list[Optional[str]]]) -> Self:
        """Construct a board from the JSON-compatible grid: [["black", None, "black"], [None, None, None], ...]"""
        return cls(tuple(tuple(Piece.from_tag(tag) for tag in row) for row in rows))

    def to_rows(self) -> list[list[Optional[str]]]:
        return [[piece.to_tag() for piece in row] for row in self.cells]

    def piece(self, position: Position) -> Piece:
        return self.cells[position.row][position.col]

    def count_pieces(self) -> Counter[Piece]:
        """Tally how many cells hold each piece (EMPTY included)"""
        return Counter(piece for row in self.cells for piece in row)

    def __str__(self) -> str:
        return "\n".join(
            " ".join(PIECE_SYMBOLS[piece] for piece in row) for row in self.cells
        )


def _build(layout: dict[Position, Piece]) -> Board:
    return Board(
        tuple(
            tuple(
                layout.get(Position(row, col), Piece.EMPTY)
                for col in range(BOARD_DIMENSIONS[1])
            )
            for row in range(BOARD_DIMENSIONS[0])
        )
    )


# Black knights start at the top corners, white knights at the bottom corners.
INITIAL_LAYOUT: dict[Position, Piece] = {
    Position(0, 0): Piece.BLACK,
    Position(0, 2): Piece.BLACK,
    Position(2, 0): Piece.WHITE,
    Position(2, 2): Piece.WHITE,
}

# The puzzle is solved once both colours have swapped corners.
WIN_LAYOUT: dict[Position, Piece] = {
    Position(0, 0): Piece.WHITE,
    Position(0, 2): Piece.WHITE,
    Position(2, 0): Piece.BLACK,
    Position(2, 2): Piece.BLACK,
}


def initial_board() -> Board:
    return _build(INITIAL_LAYOUT)


def win_board() -> Board:
    return _build(WIN_LAYOUT)


def apply_move(board: Board, move: Move) -> Board:
    """
    Return the board after the move. The original board is left untouched.
    ---
    Legality must be checked before calling this. A move that cannot physically happen raises MovePreconditionError.
    """
    if not (move.from_position.is_within_bounds() and move.to_position.is_within_bounds()):
        raise MovePreconditionError(f"Move leaves the board: {move}.")

    moving_piece = board.piece(move.from_position)
    if moving_piece.is_empty:
        raise MovePreconditionError(
            f"No piece to move on {move.from_position}."
        )
    if moving_piece != move.piece:
        raise MovePreconditionError(
            f"Expected {move.piece.name} on {move.from_position}, found {moving_piece.name}."
        )
    if not board.piece(move.to_position).is_empty:
        raise MovePreconditionError(f"Target cell {move.to_position} is occupied.")

    rows = [list(row) for row in board.cells]
    rows[move.to_position.row][move.to_position.col] = moving_piece
    rows[move.from_position.row][move.from_position.col] = Piece.EMPTY
    return Board(tuple(tuple(row) for row in rows))


def is_won(board: Board) -> bool:
    """Exactly the swapped corners. The middle column / row do not matter (they are empty anyway)."""
    return all(board.piece(position) == piece for position, piece in WIN_LAYOUT.items())
