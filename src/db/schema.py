"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBSession(Base):
    __tablename__ = "game_sessions"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    started_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)
    completed_at: Mapped[Optional[datetime]]
    is_won: Mapped[bool] = mapped_column(default=False)
    total_moves: Mapped[int] = mapped_column(default=0)
    duration_seconds: Mapped[Optional[int]]
    # Ordered move log. Order of the list == order in which the moves were played.
    moves: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
