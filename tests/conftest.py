"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from itertools import count
from typing import Callable, Generator
from uuid import UUID

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.amazons.board import Board
from src.amazons.match import Match
from src.amazons.players import PlayerRegistry
from src.core.shared_types import SeatType, TimeoutPolicy
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# 4x4 board: seat 0 in the corner (0, 0), seat 1 in the opposite corner (3, 3)
CORNERS_4X4 = "a3/4/4/3b"


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


class FixedIdGenerator:
    """Predictable identifiers, so tests can refer to them."""

    def __init__(self) -> None:
        self._counter = count(1)

    def new_match_id(self) -> UUID:
        return UUID(int=next(self._counter))

    def new_bot_id(self, label: str) -> str:
        return f"{label}_{next(self._counter)}"

    def new_user_id(self) -> str:
        return f"user_{next(self._counter)}"


@pytest.fixture
def id_generator() -> FixedIdGenerator:
    return FixedIdGenerator()


@pytest.fixture
def active_match() -> Callable[..., Match]:
    """Call the inner function with a board notation to get a match that has begun, with one human per seat (p0, p1, ...)."""

    def _create_match(
        notation: str = CORNERS_4X4,
        seats: int | None = None,
        allow_origin_burn: bool = True,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.FORFEIT_MATCH,
    ) -> Match:
        board = Board.from_notation(notation)
        seat_count = board.seat_count if seats is None else seats
        players = PlayerRegistry.from_participants(
            (f"p{index}", SeatType.HUMAN) for index in range(seat_count)
        )
        match = Match(
            match_id=UUID(int=42),
            allow_origin_burn=allow_origin_burn,
            timeout_policy=timeout_policy,
        )
        match.begin(players, board)
        return match

    return _create_match
