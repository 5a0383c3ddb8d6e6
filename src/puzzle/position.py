"""
A cell on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.core.exceptions import InvalidRequestError

# The puzzle is played on a 3x3 grid. (rows, cols)
BOARD_DIMENSIONS = (3, 3)


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Position:
        """Wire format: {"row": 2, "col": 0}"""
        try:
            row, col = record["row"], record["col"]
        except (KeyError, TypeError) as e:
            raise InvalidRequestError(
                f"Cannot interpret {record!r} as a board position."
            ) from e

        # no coercion: 1.7 or "1" in a stored log is corruption, not cell 1
        if not (is_whole_number(row) and is_whole_number(col)):
            raise InvalidRequestError(
                f"Board coordinates must be whole numbers, got {record!r}."
            )
        return cls(row, col)

    def to_record(self) -> dict[str, int]:
        return {"row": self.row, "col": self.col}

    def offset(self, d_row: int, d_col: int) -> Position:
        return Position(self.row + d_row, self.col + d_col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )


def all_positions() -> list[Position]:
    """Row-major order: (0,0), (0,1), ... (2,2)"""
    return [
        Position(row, col)
        for row in range(BOARD_DIMENSIONS[0])
        for col in range(BOARD_DIMENSIONS[1])
    ]


def is_whole_number(value: Any) -> bool:
    # bool is a subclass of int, but True is not a coordinate
    return isinstance(value, int) and not isinstance(value, bool)
