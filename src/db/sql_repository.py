"""Implementation of (Room)Repository using SQLAlchemy"""

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError, WriteConflictError
from src.core.models import MessageModel, RoomModel
from src.db.schema import DBRoom


class SQLRoomRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_room(self, room_id: str) -> RoomModel | None:
        """Get room by ID, if record exists."""
        room_db = self._fetch_room(room_id)
        if room_db:
            return self._to_model(room_db)
        return None

    def room_exists(self, room_id: str) -> bool:
        return self._fetch_room(room_id) is not None

    def create_room(self, room: RoomModel) -> RoomModel:
        """Store a new room under room.room_id."""
        if self.room_exists(room.room_id):
            raise RepositoryError(f"Room {room.room_id} already exists.")
        room_db = DBRoom(id=room.room_id, **self._column_values(room))
        self.db.add(room_db)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise RepositoryError(f"Room {room.room_id} already exists.") from exc
        self.db.refresh(room_db)
        return self._to_model(room_db)

    def update_room(
        self, room: RoomModel, expected_version: int | None = None
    ) -> RoomModel | None:
        """
        Overwrite an existing record.

        NOTE the version check is part of the UPDATE statement itself, so two writers racing on the same
        snapshot cannot both succeed.
        """
        query = update(DBRoom).where(DBRoom.id == room.room_id)
        if expected_version is not None:
            query = query.where(DBRoom.version == expected_version)
        result = self.db.execute(query.values(**self._column_values(room)))
        self.db.commit()

        if result.rowcount == 0:
            stored = self.get_room(room.room_id)
            if stored is None:
                return None
            raise WriteConflictError(
                f"Room {room.room_id} is at version {stored.version}, write expected {expected_version}."
            )
        return self.get_room(room.room_id)

    def delete_room(self, room_id: str) -> RoomModel | None:
        """Remove a room's record."""
        room_db = self._fetch_room(room_id)
        if not room_db:
            return None
        room_model = self._to_model(room_db)
        self.db.delete(room_db)
        self.db.commit()
        return room_model

    def _fetch_room(self, room_id: str) -> DBRoom | None:
        query = select(DBRoom).where(DBRoom.id == room_id)
        return self.db.scalar(query)

    def _column_values(self, room: RoomModel) -> dict[str, Any]:
        """Columns shared by inserts and updates."""
        return {
            "board": list(room.board),
            "turn": room.turn,
            "player_x": room.player_x,
            "player_o": room.player_o,
            "status": room.status,
            "winner": room.winner,
            "winning_line": list(room.winning_line) if room.winning_line else None,
            "messages": [{"author": m.author, "text": m.text} for m in room.messages],
            "version": room.version,
        }

    def _to_model(self, room_db: DBRoom) -> RoomModel:
        """Convert SQLAlchemy model to data transfer model."""
        return RoomModel(
            room_id=room_db.id,
            board=list(room_db.board),
            turn=room_db.turn,
            player_x=room_db.player_x,
            player_o=room_db.player_o,
            status=room_db.status,
            winner=room_db.winner,
            winning_line=list(room_db.winning_line) if room_db.winning_line else None,
            messages=[MessageModel(**m) for m in room_db.messages or []],
            version=room_db.version,
        )
