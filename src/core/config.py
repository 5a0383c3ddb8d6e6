"""Runtime configuration, read from environment variables."""

import os
from dataclasses import dataclass, field
from typing import Self

DEFAULT_DATABASE_URL = "sqlite:///./knight_swap.db"
DEFAULT_SESSION_LIST_LIMIT = 100


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    sql_echo: bool = False
    log_level: str = "INFO"
    session_list_limit: int = DEFAULT_SESSION_LIST_LIMIT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    port: int = 8000

    @classmethod
    def from_env(cls) -> Self:
        """KNIGHTS_* variables win over the generic ones (DATABASE_URL is what most hosting platforms inject)."""
        database_url = os.getenv(
            "KNIGHTS_DATABASE_URL", os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        )
        return cls(
            database_url=database_url,
            sql_echo=_env_flag("KNIGHTS_SQL_ECHO"),
            log_level=os.getenv("KNIGHTS_LOG_LEVEL", "INFO").upper(),
            session_list_limit=_env_int(
                "KNIGHTS_SESSION_LIST_LIMIT", DEFAULT_SESSION_LIST_LIMIT
            ),
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
            port=_env_int("KNIGHTS_PORT", 8000),
        )
