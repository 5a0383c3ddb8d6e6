"""
Application entrypoint: builds the FastAPI app, wires the Database into it and maps domain errors onto HTTP responses.

Run with `uvicorn --factory src.main:create_app` or `python -m src.main`.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.core.config import Settings
from src.core.exceptions import (
    CorruptMoveLogError,
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    PersistenceError,
    SessionNotFoundError,
)
from src.db.database import Database

logger = logging.getLogger(__name__)

# Most specific class wins (looked up along the MRO of the raised error)
ERROR_STATUS_CODES: dict[type[GameError], int] = {
    InvalidRequestError: 400,
    IllegalMoveError: 400,
    SessionNotFoundError: 404,
    GameStateError: 409,
    CorruptMoveLogError: 422,
    PersistenceError: 503,
    GameError: 500,
}


def status_code_for(error: GameError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


async def handle_game_error(request: Request, error: GameError) -> JSONResponse:
    status_code = status_code_for(error)
    if status_code >= 500:
        logger.error(
            "Error handling %s %s: %s", request.method, request.url.path, error,
            exc_info=error,
        )
    else:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, error)
    return JSONResponse(
        status_code=status_code, content={"detail": str(error), "code": error.code}
    )


def create_app(
    settings: Optional[Settings] = None, database: Optional[Database] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    database = database or Database(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database.init()
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(
        title="Knight Swap",
        description="Sessions, replays and statistics of the 3x3 knight swap puzzle",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GameError, handle_game_error)
    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
