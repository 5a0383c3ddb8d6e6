"""Engine / session factory with an explicit lifecycle: created on start-up, disposed on shutdown."""

import logging
from typing import Generator

from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the SQLAlchemy engine. Constructed once and handed to whoever needs a session."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.url = database_url
        self.engine = create_engine(database_url, echo=echo, **_engine_options(database_url))
        self.session_factory = sessionmaker(autoflush=False, bind=self.engine)

    def init(self) -> None:
        """Ensure all tables are created"""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")

    def get_db(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()


def _engine_options(database_url: str) -> dict:
    """SQLite needs extra care: connections get shared across threads, and in-memory DBs must reuse one connection."""
    if not database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
        options["poolclass"] = StaticPool
    return options
