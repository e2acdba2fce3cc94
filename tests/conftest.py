"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from dataclasses import replace
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError, WriteConflictError
from src.core.models import RoomModel
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def anyio_backend() -> str:
    """Async tests run on asyncio only."""
    return "asyncio"


class MockRepository:
    """Mock the RoomRepository using a dictionary of room models."""

    def __init__(self) -> None:
        self._rooms: dict[str, RoomModel] = {}

    def get_room(self, room_id: str) -> RoomModel | None:
        return self._rooms.get(room_id)

    def room_exists(self, room_id: str) -> bool:
        return room_id in self._rooms

    def create_room(self, room: RoomModel) -> RoomModel:
        if room.room_id in self._rooms:
            raise RepositoryError(f"Room {room.room_id} already exists.")
        self._rooms[room.room_id] = replace(room)
        return room

    def update_room(
        self, room: RoomModel, expected_version: int | None = None
    ) -> RoomModel | None:
        stored = self._rooms.get(room.room_id)
        if stored is None:
            return None
        if expected_version is not None and stored.version != expected_version:
            raise WriteConflictError(
                f"Room {room.room_id} is at version {stored.version}, write expected {expected_version}."
            )
        self._rooms[room.room_id] = replace(room)
        return room

    def delete_room(self, room_id: str) -> RoomModel | None:
        return self._rooms.pop(room_id, None)

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._rooms.clear()


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()
