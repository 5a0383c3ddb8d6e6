"""Protocol repository: the contract of the Session Store. One implementation lives in sql_repository.py"""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from src.core.models import MoveRecord, SessionModel, StatsModel


class SessionRepository(Protocol):
    """Persistence layer orchestration"""

    def create_session(self, started_at: Optional[datetime] = None) -> SessionModel:
        """Store a new, empty session and return it (including its newly created ID)."""
        ...

    def get_session(self, session_id: UUID) -> SessionModel | None:
        """Get session by ID, if record exists."""
        ...

    def append_move(self, session_id: UUID, move: MoveRecord) -> SessionModel | None:
        """Append one move to the log. total_moves must stay equal to the length of the log."""
        ...

    def complete_session(
        self, session_id: UUID, is_won: bool, duration_seconds: int
    ) -> SessionModel | None:
        """Terminal update: mark the session as won or abandoned."""
        ...

    def list_sessions(self, limit: int) -> list[SessionModel]:
        """Most recently started sessions first."""
        ...

    def get_stats(self) -> StatsModel:
        """Aggregate over all stored sessions."""
        ...
