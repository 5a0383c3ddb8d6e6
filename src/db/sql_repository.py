"""Implementation of SessionRepository using SQLAlchemy"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import PersistenceError
from src.core.models import MoveRecord, SessionModel, StatsModel
from src.db.schema import DBSession, utc_now

logger = logging.getLogger(__name__)


class SQLSessionRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def create_session(self, started_at: Optional[datetime] = None) -> SessionModel:
        """Store a new, empty session and return it (including its newly created ID)."""
        session_db = DBSession(
            id=uuid4(),
            started_at=started_at or utc_now(),
            is_won=False,
            total_moves=0,
            moves=[],
        )
        self._commit(session_db)
        return self._to_model(session_db)

    def get_session(self, session_id: UUID) -> SessionModel | None:
        """Get session by ID, if record exists."""
        session_db = self._fetch_session(session_id)
        if session_db:
            return self._to_model(session_db)
        return None

    def append_move(self, session_id: UUID, move: MoveRecord) -> SessionModel | None:
        """Append one move to the log. total_moves is derived from the log, never incremented separately."""
        session_db = self._fetch_session(session_id)
        if not session_db:
            return None
        # NOTE: assign a new list. In-place mutation of a JSON column is not tracked by SQLAlchemy
        session_db.moves = [*session_db.moves, move]
        session_db.total_moves = len(session_db.moves)
        self._commit(session_db)
        return self._to_model(session_db)

    def complete_session(
        self, session_id: UUID, is_won: bool, duration_seconds: int
    ) -> SessionModel | None:
        """Terminal update: mark the session as won or abandoned."""
        session_db = self._fetch_session(session_id)
        if not session_db:
            return None
        session_db.completed_at = utc_now()
        session_db.is_won = is_won
        session_db.duration_seconds = duration_seconds
        self._commit(session_db)
        return self._to_model(session_db)

    def list_sessions(self, limit: int) -> list[SessionModel]:
        """Most recently started sessions first."""
        query = select(DBSession).order_by(DBSession.started_at.desc()).limit(limit)
        try:
            return [self._to_model(session_db) for session_db in self.db.scalars(query)]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not list sessions: {e}") from e

    def get_stats(self) -> StatsModel:
        """
        Aggregate over all stored sessions.
        ---
        CASE without ELSE yields NULL, which AVG / MIN skip: that restricts those aggregates to won sessions.
        """
        won_moves = case((DBSession.is_won.is_(True), DBSession.total_moves))
        won_duration = case((DBSession.is_won.is_(True), DBSession.duration_seconds))
        query = select(
            func.count(DBSession.id),
            func.coalesce(func.sum(case((DBSession.is_won.is_(True), 1), else_=0)), 0),
            func.avg(won_moves),
            func.avg(won_duration),
            func.min(won_moves),
            func.min(won_duration),
        )
        try:
            row = self.db.execute(query).one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not compute statistics: {e}") from e

        total_games, wins, avg_moves, avg_time, best_moves, best_time = row
        return StatsModel(
            total_games=int(total_games),
            wins=int(wins),
            avg_moves_to_win=float(avg_moves) if avg_moves is not None else None,
            avg_time_to_win=float(avg_time) if avg_time is not None else None,
            best_moves=int(best_moves) if best_moves is not None else None,
            best_time=int(best_time) if best_time is not None else None,
        )

    def _fetch_session(self, session_id: UUID) -> DBSession | None:
        query = select(DBSession).where(DBSession.id == session_id)
        try:
            return self.db.scalar(query)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read session {session_id}: {e}") from e

    def _commit(self, session_db: DBSession) -> None:
        try:
            self.db.add(session_db)
            self.db.commit()
            self.db.refresh(session_db)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Write for session %s failed: %s", session_db.id, e)
            raise PersistenceError(f"Could not store session {session_db.id}: {e}") from e

    def _to_model(self, session_db: DBSession) -> SessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionModel(
            id=session_db.id,
            started_at=session_db.started_at,
            completed_at=session_db.completed_at,
            is_won=session_db.is_won,
            total_moves=session_db.total_moves,
            duration_seconds=session_db.duration_seconds,
            moves=list(session_db.moves or []),
        )
