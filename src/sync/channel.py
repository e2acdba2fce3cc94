"""Protocol for reaching the shared room document (can implement for REST polling / in-process push / document DB etc.)"""

import asyncio
import logging
from typing import AsyncIterator, Protocol

from src.core.config import settings
from src.core.exceptions import RoomNotFoundError, StoreUnavailableError
from src.tictactoe.room import RoomState

logger = logging.getLogger(__name__)


class SyncChannel(Protocol):
    """Read / write / subscribe access to room documents. The store behind it makes no game decisions."""

    async def create_room(self, player_name: str) -> RoomState:
        """Allocate a room id and store a new room with the player in the X seat."""
        ...

    async def read(self, room_id: str) -> RoomState:
        """Latest stored document. Raises RoomNotFoundError."""
        ...

    async def write(self, state: RoomState) -> RoomState:
        """
        Replace the stored document with `state`.

        `state.version` must be exactly one above the stored version, otherwise WriteConflictError.
        """
        ...

    def subscribe(self, room_id: str) -> AsyncIterator[RoomState]:
        """Lazy sequence of snapshots of the room, starting with the current one."""
        ...


async def poll_room(
    channel: SyncChannel,
    room_id: str,
    interval: float | None = None,
) -> AsyncIterator[RoomState]:
    """
    Pull-based subscription.
    ----

    Read the room right away, then every `interval` seconds, and yield each snapshot as-is (no diffing).
    A store outage is logged and the next tick tries again. The stream ends when the room disappears.
    Cancelling the consuming task stops the loop.
    """
    interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
    while True:
        try:
            yield await channel.read(room_id)
        except RoomNotFoundError:
            logger.info("Room %s no longer exists, polling stopped", room_id)
            return
        except StoreUnavailableError as exc:
            logger.warning("Polling room %s failed: %s", room_id, exc)
        await asyncio.sleep(interval)
