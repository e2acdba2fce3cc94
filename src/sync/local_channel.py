"""
In-process SyncChannel.

Talks to a RoomService directly (no HTTP) and pushes every accepted write to the subscribers of that room,
the way a document database notifies its listeners.
"""

import asyncio
import logging
from collections import defaultdict
from typing import AsyncIterator, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import StoreUnavailableError
from src.services.room_service import RoomService
from src.tictactoe.room import RoomState, normalize_room_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalChannel:
    def __init__(self, service: RoomService) -> None:
        self.service = service
        self._listeners: defaultdict[str, set[asyncio.Queue[RoomState]]] = defaultdict(set)

    async def create_room(self, player_name: str) -> RoomState:
        return self._call(self.service.create_room, player_name)

    async def read(self, room_id: str) -> RoomState:
        return self._call(self.service.get_room, room_id)

    async def write(self, state: RoomState) -> RoomState:
        stored = self._call(self.service.update_room, state)
        self._notify(stored)
        return stored

    async def subscribe(self, room_id: str) -> AsyncIterator[RoomState]:
        """
        Current snapshot first, then the latest accepted write, until the consumer stops.

        A slow consumer only ever sees the newest snapshot; older ones waiting in its queue are dropped.
        """
        room_id = normalize_room_id(room_id, self.service.room_id_length)
        queue: asyncio.Queue[RoomState] = asyncio.Queue(maxsize=1)
        self._listeners[room_id].add(queue)
        try:
            yield await self.read(room_id)
            while True:
                yield await queue.get()
        finally:
            self._listeners[room_id].discard(queue)
            if not self._listeners[room_id]:
                del self._listeners[room_id]

    def subscriber_count(self, room_id: str) -> int:
        return len(self._listeners.get(room_id, ()))

    def _notify(self, state: RoomState) -> None:
        for queue in self._listeners.get(state.room_id, ()):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(state)

    def _call(self, operation: Callable[..., T], *args) -> T:
        try:
            return operation(*args)
        except SQLAlchemyError as exc:
            logger.warning("Room store failure in %s: %s", operation.__name__, exc)
            raise StoreUnavailableError("Room store is unavailable.") from exc
