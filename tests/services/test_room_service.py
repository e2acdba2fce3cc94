"""Unit tests for src/services/room_service.py"""

import random

import pytest
from conftest import MockRepository

from src.core.exceptions import (
    InvalidRequestError,
    InvalidRoomIdError,
    RepositoryError,
    RoomFullError,
    RoomNotFoundError,
    WriteConflictError,
)
from src.core.shared_types import Identity, Mark, OutcomeStatus
from src.services.room_service import RoomService
from src.tictactoe.board import empty_board


@pytest.fixture
def service(mock_repository: MockRepository) -> RoomService:
    return RoomService(mock_repository, rng=random.Random(1234))


# --- CREATE ---
def test_create_room(service: RoomService, mock_repository: MockRepository) -> None:
    """New room is stored, creator holds X, board empty."""
    room = service.create_room("Alice")

    assert len(room.room_id) == 4
    assert room.room_id.isupper() or room.room_id.isdigit()
    assert room.player_x == "Alice"
    assert room.player_o is None
    assert room.turn == Mark.X
    assert room.board == empty_board()
    assert mock_repository.room_exists(room.room_id)


def test_create_room_skips_taken_ids(mock_repository: MockRepository) -> None:
    first = RoomService(mock_repository, rng=random.Random(99)).create_room("Alice")
    second = RoomService(mock_repository, rng=random.Random(99)).create_room("Bob")
    assert first.room_id != second.room_id


def test_create_room_gives_up(mock_repository: MockRepository) -> None:
    RoomService(mock_repository, rng=random.Random(5)).create_room("Alice")
    service = RoomService(mock_repository, rng=random.Random(5), id_attempts=1)
    with pytest.raises(RepositoryError):
        service.create_room("Bob")


def test_create_room_requires_name(service: RoomService) -> None:
    with pytest.raises(InvalidRequestError):
        service.create_room("  ")


# --- JOIN ---
def test_join_room(service: RoomService) -> None:
    room = service.create_room("Alice")
    joined, identity = service.join_room(room.room_id.lower(), "Bob")
    assert identity == Identity.O
    assert joined.player_o == "Bob"
    assert service.get_room(room.room_id).player_o == "Bob"


def test_join_unknown_room(service: RoomService) -> None:
    with pytest.raises(RoomNotFoundError):
        service.join_room("ZZZZ", "Bob")


def test_join_malformed_room_id(service: RoomService) -> None:
    with pytest.raises(InvalidRoomIdError):
        service.join_room("Z", "Bob")


def test_third_joiner_spectates(service: RoomService) -> None:
    room = service.create_room("Alice")
    service.join_room(room.room_id, "Bob")
    state, identity = service.join_room(room.room_id, "Carol")
    assert identity == Identity.SPECTATOR
    assert state.player_o == "Bob"


def test_third_joiner_rejected(mock_repository: MockRepository) -> None:
    service = RoomService(mock_repository, allow_spectators=False)
    room = service.create_room("Alice")
    service.join_room(room.room_id, "Bob")
    with pytest.raises(RoomFullError):
        service.join_room(room.room_id, "Carol")


def test_explicit_spectator(service: RoomService) -> None:
    room = service.create_room("Alice")
    state, identity = service.join_room(room.room_id, "Watcher", is_spectator=True)
    assert identity == Identity.SPECTATOR
    assert state.player_o is None


# --- LEAVE ---
def test_creator_leaving_empty_room_removes_it(service: RoomService) -> None:
    room = service.create_room("Alice")
    service.leave_room(room.room_id, "Alice")
    with pytest.raises(RoomNotFoundError):
        service.get_room(room.room_id)


def test_leaving_started_room_keeps_it(service: RoomService) -> None:
    room = service.create_room("Alice")
    joined, _ = service.join_room(room.room_id, "Bob")
    service.update_room(joined.apply_move(4, Mark.X))

    service.leave_room(room.room_id, "Bob")
    kept = service.get_room(room.room_id)
    assert kept.player_o == "Bob"
    assert kept.board[4] == Mark.X
    assert kept.outcome.status == OutcomeStatus.IN_PROGRESS


def test_leave_unknown_room(service: RoomService) -> None:
    with pytest.raises(RoomNotFoundError):
        service.leave_room("ZZZZ", "Alice")


# --- UPDATE / RESTART / MESSAGES ---
def test_update_room_with_client_state(service: RoomService) -> None:
    room = service.create_room("Alice")
    joined, _ = service.join_room(room.room_id, "Bob")
    moved = service.update_room(joined.apply_move(0, Mark.X))
    assert service.get_room(room.room_id) == moved
    assert moved.turn == Mark.O


def test_update_room_rejects_stale_state(service: RoomService) -> None:
    room = service.create_room("Alice")
    joined, _ = service.join_room(room.room_id, "Bob")
    service.update_room(joined.apply_move(0, Mark.X))
    with pytest.raises(WriteConflictError):
        service.update_room(joined.apply_move(4, Mark.X))


def test_update_room_without_version_check_overwrites(service: RoomService) -> None:
    room = service.create_room("Alice")
    joined, _ = service.join_room(room.room_id, "Bob")
    service.update_room(joined.apply_move(0, Mark.X))

    # built on an outdated copy, still accepted and numbered after the stored version
    stored = service.update_room(joined.apply_move(4, Mark.X), check_version=False)
    assert stored.board[4] == Mark.X
    assert stored.board[0] is None
    assert stored.version == joined.version + 2
    assert service.get_room(room.room_id) == stored


def test_update_unknown_room(service: RoomService) -> None:
    room = service.create_room("Alice")
    service.leave_room(room.room_id, "Alice")
    with pytest.raises(RoomNotFoundError):
        service.update_room(room.with_player_o("Bob"))


def test_restart_room(service: RoomService) -> None:
    room = service.create_room("Alice")
    state, _ = service.join_room(room.room_id, "Bob")
    for cell in (0, 1, 3, 2, 6):
        state = service.update_room(state.apply_move(cell, state.turn))
    assert state.is_terminal

    restarted = service.restart_room(room.room_id)
    assert restarted.board == empty_board()
    assert restarted.turn == Mark.X
    assert restarted.outcome.status == OutcomeStatus.IN_PROGRESS
    assert restarted.player_o == "Bob"


def test_send_message(service: RoomService) -> None:
    room = service.create_room("Alice")
    service.send_message(room.room_id, "Alice", "anyone?")
    stored = service.get_room(room.room_id)
    assert [(m.author, m.text) for m in stored.messages] == [("Alice", "anyone?")]
