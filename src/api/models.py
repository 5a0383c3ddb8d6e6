"""Requests and Response models"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import PieceColor, SessionStatus
from src.puzzle.position import BOARD_DIMENSIONS

BoardRows = list[list[Optional[PieceColor]]]


# --- SHARED PIECES ---
class PositionPayload(BaseModel):
    row: int
    col: int

    @field_validator("row")
    @classmethod
    def validate_row(cls, value: int) -> int:
        if not 0 <= value < BOARD_DIMENSIONS[0]:
            raise InvalidRequestError(f"Row {value} is outside of the board.")
        return value

    @field_validator("col")
    @classmethod
    def validate_col(cls, value: int) -> int:
        if not 0 <= value < BOARD_DIMENSIONS[1]:
            raise InvalidRequestError(f"Column {value} is outside of the board.")
        return value


class MovePayload(BaseModel):
    """A move as it travels over the wire and gets stored in the move log. 'from' is a Python keyword, hence the alias."""

    model_config = ConfigDict(populate_by_name=True)

    from_position: PositionPayload = Field(alias="from")
    to_position: PositionPayload = Field(alias="to")
    piece: PieceColor
    timestamp: int = 0

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError(
                f"Timestamp must count milliseconds since the game started, got {value}."
            )
        return value

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# --- REQUEST MODELS ---
class AppendMoveRequest(BaseModel):
    session_id: UUID
    move: MovePayload


class CompleteSessionRequest(BaseModel):
    session_id: UUID
    is_won: bool
    duration_seconds: int

    @field_validator("duration_seconds")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError(f"Duration cannot be negative, got {value}.")
        return value


class SessionUpdateRequest(BaseModel):
    """
    Body of PATCH /api/sessions/{id}. Either a move to append, or a completion:
    {"move": {...}}  or  {"complete": true, "is_won": false, "duration_seconds": 42}
    """

    move: Optional[MovePayload] = None
    complete: bool = False
    is_won: Optional[bool] = None
    duration_seconds: Optional[int] = None

    @model_validator(mode="after")
    def validate_update_kind(self) -> "SessionUpdateRequest":
        if self.move is not None and self.complete:
            raise InvalidRequestError("Send either a move or a completion, not both.")
        if self.move is None and not self.complete:
            raise InvalidRequestError("Request must contain a move or a completion.")
        if self.complete and (self.is_won is None or self.duration_seconds is None):
            raise InvalidRequestError(
                "A completion needs both 'is_won' and 'duration_seconds'."
            )
        return self


class GetSessionRequest(BaseModel):
    session_id: UUID


class ReplayRequest(BaseModel):
    session_id: UUID
    index: int = -1


# --- RESPONSE MODELS ---
class CreateSessionResponse(BaseModel):
    session_id: UUID


class SessionSummaryResponse(BaseModel):
    session_id: UUID
    status: SessionStatus
    started_at: datetime
    completed_at: Optional[datetime]
    is_won: bool
    total_moves: int
    duration_seconds: Optional[int]
    # m:ss, as shown in the history list
    duration: Optional[str] = None


class SessionResponse(SessionSummaryResponse):
    moves: list[MovePayload]


class StatsResponse(BaseModel):
    total_games: int
    wins: int
    avg_moves_to_win: Optional[float]
    avg_time_to_win: Optional[float]
    best_moves: Optional[int]
    best_time: Optional[int]


class ReplayResponse(BaseModel):
    session_id: UUID
    index: int
    total_moves: int
    board: BoardRows
    move: Optional[MovePayload]
