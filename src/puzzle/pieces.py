"""Defines the pieces that can stand on a cell"""

from enum import Enum, auto
from typing import Optional

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import PieceColor


class Piece(Enum):
    EMPTY = auto()
    WHITE = auto()
    BLACK = auto()

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "Piece":
        """Tags as they are written in the move log / board grid. None means an empty cell."""
        if tag is None:
            return cls.EMPTY
        if tag not in TAG_TO_PIECE:
            raise InvalidRequestError(
                f"Unknown piece {tag!r}. Pick one from {','.join(TAG_TO_PIECE)}"
            )
        return TAG_TO_PIECE[tag]

    def to_tag(self) -> Optional[str]:
        return PIECE_TO_TAG.get(self)

    @property
    def is_empty(self) -> bool:
        return self == Piece.EMPTY


TAG_TO_PIECE: dict[str, Piece] = {
    PieceColor.WHITE.value: Piece.WHITE,
    PieceColor.BLACK.value: Piece.BLACK,
}

PIECE_TO_TAG: dict[Piece, str] = {value: key for key, value in TAG_TO_PIECE.items()}

# Single character rendering for console output / debugging
PIECE_SYMBOLS: dict[Piece, str] = {
    Piece.EMPTY: ".",
    Piece.WHITE: "W",
    Piece.BLACK: "B",
}
