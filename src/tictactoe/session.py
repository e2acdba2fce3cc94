"""
Per-client view of a room.

The Session is owned by one client and never shared. The SessionController is the only place a client
decides anything about the game: it checks every move against the latest room document before writing,
hands out identities on create / join and keeps the local view in step with the store.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Callable, Optional, Self

from src.core.config import settings
from src.core.exceptions import (
    GameError,
    InvalidRequestError,
    RoomFullError,
    SessionStateError,
    WriteConflictError,
)
from src.core.shared_types import Identity, Mark
from src.sync.channel import SyncChannel
from src.tictactoe.room import RoomState, normalize_room_id

logger = logging.getLogger(__name__)


class SessionStatus(StrEnum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    SPECTATING = "spectating"


@dataclass(frozen=True)
class Session:
    identity: Identity = Identity.UNASSIGNED
    player_name: Optional[str] = None
    room_id: Optional[str] = None
    view: Optional[RoomState] = None

    @classmethod
    def unjoined(cls) -> Self:
        return cls()

    @property
    def status(self) -> SessionStatus:
        match self.identity:
            case Identity.X | Identity.O:
                return SessionStatus.JOINED
            case Identity.SPECTATOR:
                return SessionStatus.SPECTATING
            case _:
                return SessionStatus.UNJOINED

    @property
    def mark(self) -> Optional[Mark]:
        return self.identity.mark

    @property
    def opponent_name(self) -> Optional[str]:
        """Name in the other seat. None while waiting for an opponent (or when not seated)."""
        if self.view is None or self.mark is None:
            return None
        return self.view.player_name(self.mark.opponent)

    @property
    def is_my_turn(self) -> bool:
        return (
            self.view is not None
            and self.mark == self.view.turn
            and not self.view.is_terminal
        )


UpdateCallback = Callable[[Session], None]


class SessionController:
    """State machine for one client: Unjoined -> Joined / Spectating -> Unjoined."""

    def __init__(
        self,
        channel: SyncChannel,
        session: Optional[Session] = None,
        *,
        allow_spectators: Optional[bool] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self.channel = channel
        self.session = session or Session.unjoined()
        self.allow_spectators = (
            settings.ALLOW_SPECTATORS if allow_spectators is None else allow_spectators
        )
        self.on_update = on_update
        self._sync_task: Optional[asyncio.Task] = None

    # -- ROOM LIFECYCLE ---
    async def create_room(self, player_name: str) -> Session:
        """The creator always plays X."""
        self._assert_status(SessionStatus.UNJOINED)
        name = _clean_name(player_name)

        state = await self.channel.create_room(name)

        self._set_session(
            Session(
                identity=Identity.X, player_name=name, room_id=state.room_id, view=state
            )
        )
        logger.info("Room %s created by %s (X)", state.room_id, name)
        return self.session

    async def join_room(
        self, room_id: str, player_name: str, *, as_spectator: bool = False
    ) -> Session:
        """
        Join an existing room.
        ----

        1. Read the room (RoomNotFoundError if it does not exist)
        2. O seat free and not asking to watch? --> claim it with a write
        3. Otherwise --> spectate, if spectators are allowed (RoomFullError if not)

        NOTE a claim that loses a race for the O seat re-reads the room once and decides again.
        """
        self._assert_status(SessionStatus.UNJOINED)
        room_id = normalize_room_id(room_id)
        name = _clean_name(player_name)

        try:
            identity, view = await self._take_seat(room_id, name, as_spectator)
        except WriteConflictError:
            logger.info("Seat claim in room %s by %s lost a race, retrying", room_id, name)
            identity, view = await self._take_seat(room_id, name, as_spectator)

        self._set_session(
            Session(identity=identity, player_name=name, room_id=room_id, view=view)
        )
        logger.info("%s joined room %s as %s", name, room_id, identity)
        return self.session

    async def _take_seat(
        self, room_id: str, name: str, as_spectator: bool
    ) -> tuple[Identity, RoomState]:
        state = await self.channel.read(room_id)
        if as_spectator or state.player_o is not None:
            if not self.allow_spectators:
                raise RoomFullError(f"Room {room_id} is not accepting new players.")
            return Identity.SPECTATOR, state
        return Identity.O, await self.channel.write(state.with_player_o(name))

    async def leave_room(self) -> Session:
        """Stop syncing and forget the room. The shared document is left untouched."""
        room_id = self.session.room_id
        await self.stop_sync()
        self._set_session(Session.unjoined())
        if room_id:
            logger.info("Left room %s", room_id)
        return self.session

    # -- GAME ACTIONS ---
    async def attempt_move(self, cell_index: int) -> bool:
        """
        Try to play a cell.
        ----

        The move is checked against a fresh read of the room, not the local view.
        Illegal moves (not your turn, occupied cell, game over, spectating ...) are logged and ignored:
        nothing is written and the session does not change. Returns whether the move was written.
        """
        self._assert_status(SessionStatus.JOINED, SessionStatus.SPECTATING)
        latest = await self.channel.read(self._room_id)

        mark = self.session.mark
        if not latest.is_legal_move(cell_index, mark):
            logger.info(
                "Ignored illegal move by %s (%s) on cell %s in room %s",
                self.session.player_name,
                self.session.identity,
                cell_index,
                self._room_id,
            )
            return False

        # for the type checker: a legal move always has a mark
        assert mark is not None
        stored = await self.channel.write(latest.apply_move(cell_index, mark))
        self._set_view(stored)
        return True

    async def restart(self) -> Session:
        """Players (not spectators) can reset the board at any time."""
        self._assert_status(SessionStatus.JOINED)
        latest = await self.channel.read(self._room_id)
        stored = await self.channel.write(latest.restarted())
        self._set_view(stored)
        logger.info("Room %s restarted by %s", self._room_id, self.session.player_name)
        return self.session

    async def send_message(self, text: str) -> Session:
        self._assert_status(SessionStatus.JOINED, SessionStatus.SPECTATING)
        assert self.session.player_name is not None
        latest = await self.channel.read(self._room_id)
        stored = await self.channel.write(
            latest.with_message(self.session.player_name, text)
        )
        self._set_view(stored)
        return self.session

    # -- SYNCHRONIZATION ---
    async def refresh(self) -> Session:
        """One-off pull of the latest room document."""
        self._assert_status(SessionStatus.JOINED, SessionStatus.SPECTATING)
        self._set_view(await self.channel.read(self._room_id))
        return self.session

    def start_sync(self) -> asyncio.Task:
        """Keep the local view in step with the store until leave_room (or stop_sync) is called."""
        self._assert_status(SessionStatus.JOINED, SessionStatus.SPECTATING)
        if self._sync_task is None or self._sync_task.done():
            self._sync_task = asyncio.create_task(
                self._follow(self._room_id), name=f"sync-{self._room_id}"
            )
        return self._sync_task

    async def stop_sync(self) -> None:
        task, self._sync_task = self._sync_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            # the loop had already died; leaving must still reset the session
            logger.warning("Sync task %s ended with an error", task.get_name(), exc_info=True)

    async def _follow(self, room_id: str) -> None:
        try:
            async for state in self.channel.subscribe(room_id):
                if self.session.room_id != room_id:
                    return
                self._set_view(state)
        except GameError as exc:
            logger.warning("Stopped syncing room %s: %r", room_id, exc)

    # -- PRIVATE HELPERS ---
    @property
    def _room_id(self) -> str:
        # for the type checker: only called after _assert_status
        assert self.session.room_id is not None
        return self.session.room_id

    def _assert_status(self, *allowed: SessionStatus) -> None:
        if self.session.status not in allowed:
            raise SessionStateError(
                f"Not allowed while {self.session.status}. Expected one of: {', '.join(allowed)}"
            )

    def _set_view(self, state: RoomState) -> None:
        """Replace the view wholesale, unless the snapshot is older than the one already held."""
        current = self.session.view
        if current is not None and state.version < current.version:
            return
        self._set_session(replace(self.session, view=state))

    def _set_session(self, session: Session) -> None:
        self.session = session
        if self.on_update is not None:
            self.on_update(session)


def _clean_name(player_name: str) -> str:
    name = player_name.strip()
    if not name:
        raise InvalidRequestError("Please enter your name first.")
    return name
