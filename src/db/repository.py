"""Protocol repository (implemented with SQLAlchemy, could also be a document store / key-value cache)"""

from typing import Protocol

from src.core.models import RoomModel


class RoomRepository(Protocol):
    """Persistence layer orchestration"""

    def get_room(self, room_id: str) -> RoomModel | None:
        """Get room by ID, if record exists."""
        ...

    def room_exists(self, room_id: str) -> bool:
        ...

    def create_room(self, room: RoomModel) -> RoomModel:
        """Store a new room under room.room_id. RepositoryError if the id is taken."""
        ...

    def update_room(
        self, room: RoomModel, expected_version: int | None = None
    ) -> RoomModel | None:
        """
        Overwrite an existing record. None if there is no such room.

        With expected_version: only overwrite if the stored version still equals it (WriteConflictError otherwise).
        """
        ...

    def delete_room(self, room_id: str) -> RoomModel | None:
        """Remove a room's record."""
        ...
