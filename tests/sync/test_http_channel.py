"""Tests for src/sync/http_channel.py, against the real app (ASGI transport) and against canned responses."""

import asyncio
import json
from typing import AsyncGenerator, Callable

import httpx
import pytest
from sqlalchemy.orm import Session

from src.core.exceptions import (
    InvalidRequestError,
    RoomFullError,
    RoomNotFoundError,
    StoreUnavailableError,
    WriteConflictError,
)
from src.core.shared_types import Identity, Mark, OutcomeStatus
from src.db.database import get_db
from src.main import app
from src.sync.http_channel import HTTPChannel
from src.tictactoe.room import RoomState
from src.tictactoe.session import Session, SessionController

pytestmark = pytest.mark.anyio

BASE_URL = "http://testserver/api"


@pytest.fixture
async def channel(db_session_repo: Session) -> AsyncGenerator[HTTPChannel, None]:
    app.dependency_overrides[get_db] = lambda: db_session_repo
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)
    channel = HTTPChannel(client=client, poll_interval=0.01)
    try:
        yield channel
    finally:
        await channel.aclose()
        app.dependency_overrides.clear()


def canned(handler: Callable[[httpx.Request], httpx.Response]) -> HTTPChannel:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return HTTPChannel(client=client)


# --- AGAINST THE APP ---
async def test_create_read_write(channel: HTTPChannel) -> None:
    room = await channel.create_room("Alice")
    assert room.player_x == "Alice"
    assert await channel.read(room.room_id.lower()) == room

    joined = await channel.write(room.with_player_o("Bob"))
    assert joined.player_o == "Bob"
    assert joined.version == 1


async def test_read_unknown_room(channel: HTTPChannel) -> None:
    with pytest.raises(RoomNotFoundError):
        await channel.read("ZZZZ")


async def test_stale_write(channel: HTTPChannel) -> None:
    room = await channel.create_room("Alice")
    await channel.write(room.with_player_o("Bob"))
    with pytest.raises(WriteConflictError):
        await channel.write(room.with_player_o("Mallory"))


async def test_subscribe_polls(channel: HTTPChannel) -> None:
    room = await channel.create_room("Alice")
    stream = channel.subscribe(room.room_id)
    assert await anext(stream) == room

    joined = await channel.write(room.with_player_o("Bob"))
    assert await anext(stream) == joined
    await stream.aclose()


async def test_two_clients_play_over_http(channel: HTTPChannel) -> None:
    alice = SessionController(channel)
    bob = SessionController(channel)
    session = await alice.create_room("Alice")
    assert (await bob.join_room(session.room_id, "Bob")).identity == Identity.O
    assert await alice.attempt_move(4)
    await bob.refresh()
    assert bob.session.view.board[4] == Mark.X
    assert bob.session.is_my_turn

    assert await alice.attempt_move(0) is False  # not X's turn any more
    for controller, cell in [(bob, 0), (alice, 2), (bob, 1), (alice, 6)]:
        assert await controller.attempt_move(cell)

    await bob.refresh()
    assert bob.session.view.outcome.status == OutcomeStatus.WIN
    assert bob.session.view.outcome.line == (2, 4, 6)
    assert bob.session.view.winner_name == "Alice"

    await bob.leave_room()
    await alice.leave_room()


# --- CANNED RESPONSES ---
async def test_connection_error_is_store_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreUnavailableError):
        await canned(handler).read("AB12")


async def test_server_error_is_store_unavailable() -> None:
    channel = canned(lambda request: httpx.Response(500, text="Internal Server Error"))
    with pytest.raises(StoreUnavailableError):
        await channel.read("AB12")


async def test_error_code_picks_exception() -> None:
    channel = canned(
        lambda request: httpx.Response(
            409, json={"error": "Room AB12 is full", "code": "RoomFullError"}
        )
    )
    with pytest.raises(RoomFullError, match="AB12 is full"):
        await channel.write(RoomState.new_room("AB12", "Alice").with_player_o("Bob"))


async def test_status_code_fallback() -> None:
    channel = canned(lambda request: httpx.Response(422, json={"detail": "bad body"}))
    with pytest.raises(InvalidRequestError):
        await channel.create_room("Alice")


async def test_rejected_poll_ends_sync_and_leave_still_resets() -> None:
    channel = canned(lambda request: httpx.Response(429, json={"error": "slow down"}))
    room = RoomState.new_room("AB12", "Alice").with_player_o("Bob")
    controller = SessionController(channel, session=Session(Identity.O, "Bob", "AB12", room))

    task = controller.start_sync()
    await asyncio.sleep(0.05)
    assert task.done()

    assert await controller.leave_room() == Session.unjoined()
    await channel.aclose()


async def test_requests_use_camel_case_paths_and_bodies() -> None:
    seen: list[httpx.Request] = []
    room = RoomState.new_room("AB12", "Alice")

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"roomId": "AB12", "room": {"roomId": "AB12", "board": [None] * 9, "turn": "X", "playerX": "Alice"}}
        )

    created = await canned(handler).create_room("Alice")
    assert created == room
    assert seen[0].url.path == "/api/create-room"
    assert json.loads(seen[0].content) == {"playerName": "Alice"}
