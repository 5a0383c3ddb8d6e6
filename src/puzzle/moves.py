"""
Geometry of the knight jump, and the definition of a single move.

Only one kind of piece exists in this puzzle, so the movement rule is a single function instead of one strategy per piece type.
The Game class decides when it gets called.
"""

from dataclasses import dataclass
from typing import Any, Protocol, Self

from src.core.exceptions import InvalidRequestError
from src.puzzle.pieces import Piece
from src.puzzle.position import Position, is_whole_number


class Board(Protocol):
    """Just the parts the movement rule needs"""

    def piece(self, position: Position) -> Piece: ...


Vector = tuple[int, int]

# Knights always move such that |delta_row| + |delta_col| = 3.
# NOTE the order matters: legal destinations are returned in this order, so highlighting stays reproducible.
KNIGHT_OFFSETS: tuple[Vector, ...] = (
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
)


@dataclass(frozen=True)
class Move:
    """A knight that jumped. Timestamp is in milliseconds since the game clock started."""

    from_position: Position
    to_position: Position
    piece: Piece
    timestamp: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        """
        Parse a move as it is stored in the move log:
        {"from": {"row": 2, "col": 0}, "to": {"row": 0, "col": 1}, "piece": "white", "timestamp": 0}
        """
        try:
            from_position = Position.from_record(record["from"])
            to_position = Position.from_record(record["to"])
            piece = Piece.from_tag(record["piece"])
            timestamp = record.get("timestamp", 0)
        except (KeyError, TypeError) as e:
            raise InvalidRequestError(f"Cannot interpret {record!r} as a move.") from e

        if piece.is_empty:
            raise InvalidRequestError(f"A move must carry a piece: {record!r}")
        if not is_whole_number(timestamp) or timestamp < 0:
            raise InvalidRequestError(
                f"Timestamp must be a non-negative number of milliseconds: {record!r}"
            )
        return cls(from_position, to_position, piece, timestamp)

    def to_record(self) -> dict[str, Any]:
        return {
            "from": self.from_position.to_record(),
            "to": self.to_position.to_record(),
            "piece": self.piece.to_tag(),
            "timestamp": self.timestamp,
        }


# --- MOVEMENT RULE ---
def legal_destinations(board: Board, origin: Position) -> list[Position]:
    """
    Cells the piece on `origin` can jump to: one of the knight offsets, inside the board, and empty.
    ---
    Selecting an empty cell is not an error, there is simply nothing to move.
    """
    if not origin.is_within_bounds() or board.piece(origin).is_empty:
        return []

    destinations: list[Position] = []
    for d_row, d_col in KNIGHT_OFFSETS:
        target = origin.offset(d_row, d_col)
        if not target.is_within_bounds():
            continue
        if board.piece(target).is_empty:
            destinations.append(target)
    return destinations


def is_legal_move(board: Board, move: Move) -> bool:
    """The origin holds the piece that claims to move, and the target is one of its legal destinations."""
    if not move.from_position.is_within_bounds():
        return False
    if board.piece(move.from_position) != move.piece:
        return False
    return move.to_position in legal_destinations(board, move.from_position)
