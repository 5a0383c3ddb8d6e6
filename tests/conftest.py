"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.database import Database
from src.db.schema import Base
from src.main import create_app
from src.puzzle.moves import Move
from src.puzzle.pieces import Piece
from src.puzzle.position import Position

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

MoveFactory = Callable[[tuple[int, int], tuple[int, int], Piece, int], Move]

W = Piece.WHITE
B = Piece.BLACK

# On a 3x3 board the knight jumps connect the 8 outer cells into one ring:
# (0,0) -> (1,2) -> (2,0) -> (0,1) -> (2,2) -> (1,0) -> (0,2) -> (2,1) -> back to (0,0). The centre is unreachable.
# Knights cannot pass each other on the ring, so every knight walks 4 steps in the same direction: 16 moves.
SOLUTION: list[tuple[tuple[int, int], tuple[int, int], Piece]] = [
    # round 1
    ((2, 2), (1, 0), W),
    ((0, 2), (2, 1), B),
    ((0, 0), (1, 2), B),
    ((2, 0), (0, 1), W),
    # round 2
    ((1, 0), (0, 2), W),
    ((2, 1), (0, 0), B),
    ((1, 2), (2, 0), B),
    ((0, 1), (2, 2), W),
    # round 3
    ((0, 2), (2, 1), W),
    ((2, 2), (1, 0), W),
    ((2, 0), (0, 1), B),
    ((0, 0), (1, 2), B),
    # round 4
    ((2, 1), (0, 0), W),
    ((1, 0), (0, 2), W),
    ((0, 1), (2, 2), B),
    ((1, 2), (2, 0), B),
]


def _knight_move(
    from_rc: tuple[int, int], to_rc: tuple[int, int], piece: Piece, timestamp: int = 0
) -> Move:
    return Move(Position(*from_rc), Position(*to_rc), piece, timestamp)


@pytest.fixture
def make_move() -> MoveFactory:
    """Write moves in tests as make_move((row, col), (row, col), piece, timestamp)"""
    return _knight_move


@pytest.fixture
def solution_moves() -> list[Move]:
    """The full 16 move solution, one second apart."""
    return [
        _knight_move(from_rc, to_rc, piece, index * 1_000)
        for index, (from_rc, to_rc, piece) in enumerate(SOLUTION)
    ]


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """The full application on top of a fresh in-memory database. Entering the client runs the start-up / shutdown hooks."""
    settings = Settings(database_url="sqlite://", session_list_limit=100)
    app = create_app(settings=settings, database=Database(settings.database_url))
    with TestClient(app) as test_client:
        yield test_client
