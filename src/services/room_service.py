"""
Orchestration of communication from API router / in-process channel to the domain and persistence layers.

The service is the passive room store: it hands out room ids and stores documents. It never decides whose
turn it is. The only check on a plain overwrite is the version compare-and-set.
"""

import logging
import random
from dataclasses import replace
from typing import Optional

from src.core.config import settings
from src.core.exceptions import (
    InvalidRequestError,
    RepositoryError,
    RoomFullError,
    RoomNotFoundError,
)
from src.core.models import RoomModel
from src.core.shared_types import Identity
from src.db.repository import RoomRepository
from src.tictactoe.room import RoomState, generate_room_id, normalize_room_id

logger = logging.getLogger(__name__)


class RoomService:
    """Room store operations on top of a RoomRepository."""

    def __init__(
        self,
        repository: RoomRepository,
        *,
        room_id_length: Optional[int] = None,
        id_attempts: Optional[int] = None,
        allow_spectators: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repo = repository
        self.room_id_length = room_id_length or settings.ROOM_ID_LENGTH
        self.id_attempts = id_attempts or settings.ROOM_ID_ATTEMPTS
        self.allow_spectators = (
            settings.ALLOW_SPECTATORS if allow_spectators is None else allow_spectators
        )
        self.rng = rng

    # -- ROOM STORE OPERATIONS ---
    def create_room(self, player_name: str) -> RoomState:
        """First player requested a new room. They get the X seat."""
        name = _require_name(player_name)
        room_id = self._allocate_room_id()
        room = RoomState.new_room(room_id, name)
        stored = self.repo.create_room(room.to_model())
        logger.info("Room %s created by %s", room_id, name)
        return RoomState.from_model(stored)

    def join_room(
        self, room_id: str, player_name: str, is_spectator: bool = False
    ) -> tuple[RoomState, Identity]:
        """
        Server-side seat claim for clients that do not read-then-write themselves.
        Same rules as the client: free O seat first, then spectators (if allowed).
        """
        room = self.get_room(room_id)
        name = _require_name(player_name)

        if is_spectator or room.player_o is not None:
            if not self.allow_spectators:
                raise RoomFullError(f"Room {room.room_id} is not accepting new players.")
            logger.info("%s is spectating room %s", name, room.room_id)
            return room, Identity.SPECTATOR

        joined = self.update_room(room.with_player_o(name))
        logger.info("%s joined room %s as O", name, room.room_id)
        return joined, Identity.O

    def leave_room(self, room_id: str, player: str) -> None:
        """
        A participant leaves.
        ----

        The creator leaving a room nobody joined removes the room. In every other case the document is
        left as-is: the remaining player keeps a coherent board, no forfeit is declared.
        """
        room = self.get_room(room_id)
        if room.player_o is None and room.player_x == player:
            self.repo.delete_room(room.room_id)
            logger.info("Room %s removed, creator %s left before anyone joined", room.room_id, player)
            return
        logger.info("%s left room %s", player, room.room_id)

    def get_room(self, room_id: str) -> RoomState:
        """
        Retrieve current room state.
        ----
        Used in "polling" loop by clients to check when it is their turn for instance.
        """
        return RoomState.from_model(self._fetch_room(room_id))

    def update_room(self, state: RoomState, *, check_version: bool = True) -> RoomState:
        """
        Store a client-computed document.
        ----

        check_version: only accept it if it was derived from the stored version (WriteConflictError otherwise).
        Without the check the write replaces the stored document (last writer wins) and takes the next version.
        """
        room_id = normalize_room_id(state.room_id, self.room_id_length)
        expected_version: Optional[int] = state.version - 1
        if not check_version:
            current = self._fetch_room(room_id)
            state = replace(state, room_id=room_id, version=current.version + 1)
            expected_version = None
        stored = self.repo.update_room(state.to_model(), expected_version=expected_version)
        if stored is None:
            raise RoomNotFoundError(f"Room {room_id} not found.")
        return RoomState.from_model(stored)

    def restart_room(self, room_id: str) -> RoomState:
        room = self.get_room(room_id)
        restarted = self.update_room(room.restarted())
        logger.info("Room %s restarted", room.room_id)
        return restarted

    def send_message(self, room_id: str, player_name: str, message: str) -> RoomState:
        room = self.get_room(room_id)
        return self.update_room(room.with_message(_require_name(player_name), message))

    # -- Internal helpers --
    def _allocate_room_id(self) -> str:
        for _ in range(self.id_attempts):
            room_id = generate_room_id(self.room_id_length, self.rng)
            if not self.repo.room_exists(room_id):
                return room_id
        raise RepositoryError(
            f"Could not find a free room id after {self.id_attempts} attempts."
        )

    def _fetch_room(self, room_id: str) -> RoomModel:
        """Attempt to find the room in the repository and raise error if it fails."""
        normalized = normalize_room_id(room_id, self.room_id_length)
        room_model = self.repo.get_room(normalized)
        if room_model is None:
            raise RoomNotFoundError(f"Room {normalized} not found.")
        return room_model


def _require_name(player_name: str) -> str:
    name = player_name.strip()
    if not name:
        raise InvalidRequestError("Player name must not be empty.")
    return name
