"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from src.core.shared_types import SessionStatus

# Type alias to make SessionModel easier to read: {"from": {"row", "col"}, "to": {...}, "piece": "white", "timestamp": 0}
MoveRecord = dict[str, Any]


@dataclass
class SessionModel:
    """Transport-safe representation of a played (or in-progress) puzzle session."""

    id: UUID
    started_at: datetime
    completed_at: Optional[datetime] = None
    is_won: bool = False
    total_moves: int = 0
    duration_seconds: Optional[int] = None
    moves: list[MoveRecord] = field(default_factory=list)

    @property
    def status(self) -> SessionStatus:
        if self.completed_at is None:
            return SessionStatus.IN_PROGRESS
        return SessionStatus.WON if self.is_won else SessionStatus.ABANDONED


@dataclass
class StatsModel:
    """Aggregate over all sessions. Averages and bests only take won sessions into account."""

    total_games: int
    wins: int
    avg_moves_to_win: Optional[float] = None
    avg_time_to_win: Optional[float] = None
    best_moves: Optional[int] = None
    best_time: Optional[int] = None
