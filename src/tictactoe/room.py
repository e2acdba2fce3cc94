"""
The shared room document and its transitions.

A RoomState is the single record two (or more) clients read and overwrite. It is immutable:
every transition returns a new RoomState with `version` bumped by one, so a store can refuse a
write that was derived from a stale snapshot.
"""

import random
import string
from dataclasses import dataclass, field, replace
from typing import Optional, Self

from src.core.config import settings
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidRoomIdError,
    RoomFullError,
)
from src.core.models import MessageModel, RoomModel
from src.core.shared_types import Mark, OutcomeStatus
from src.tictactoe.board import (
    Board,
    Outcome,
    empty_board,
    evaluate,
    is_legal_move,
    place,
)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_id(
    length: Optional[int] = None, rng: Optional[random.Random] = None
) -> str:
    length = length or settings.ROOM_ID_LENGTH
    rng = rng or random.SystemRandom()
    return "".join(rng.choice(ROOM_ID_ALPHABET) for _ in range(length))


def normalize_room_id(room_id: str, length: Optional[int] = None) -> str:
    """Room codes are typed in by humans: accept any case and surrounding whitespace."""
    length = length or settings.ROOM_ID_LENGTH
    normalized = room_id.strip().upper()
    if len(normalized) != length or not all(c in ROOM_ID_ALPHABET for c in normalized):
        raise InvalidRoomIdError(
            f"Room id {room_id!r} must be {length} letters or digits."
        )
    return normalized


@dataclass(frozen=True)
class Message:
    author: str
    text: str


@dataclass(frozen=True)
class RoomState:
    room_id: str
    board: Board
    turn: Mark
    player_x: Optional[str]
    player_o: Optional[str]
    outcome: Outcome
    messages: tuple[Message, ...] = field(default_factory=tuple)
    version: int = 0

    # --- CONSTRUCTION ---
    @classmethod
    def new_room(cls, room_id: str, player_x: str) -> Self:
        return cls(
            room_id=room_id,
            board=empty_board(),
            turn=Mark.X,
            player_x=player_x,
            player_o=None,
            outcome=Outcome.in_progress(),
        )

    # --- QUERIES ---
    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal

    @property
    def winner_name(self) -> Optional[str]:
        if self.outcome.winner is None:
            return None
        return self.player_name(self.outcome.winner)

    def player_name(self, mark: Mark) -> Optional[str]:
        return self.player_x if mark == Mark.X else self.player_o

    def is_legal_move(self, cell_index: int, mark: Optional[Mark]) -> bool:
        return is_legal_move(self.board, cell_index, mark, self.turn)

    # --- TRANSITIONS ---
    def with_player_o(self, name: str) -> Self:
        """Second participant takes the O seat."""
        if self.player_o is not None:
            raise RoomFullError(
                f"Room {self.room_id} already has two players: {self.player_x} and {self.player_o}."
            )
        return self._next(player_o=name)

    def apply_move(self, cell_index: int, mark: Mark) -> Self:
        """Place the mark, flip the turn and recompute the outcome."""
        if not self.is_legal_move(cell_index, mark):
            raise IllegalMoveError(
                f"Move not allowed: {mark} on cell {cell_index} (turn: {self.turn}, outcome: {self.outcome.status})"
            )
        board = place(self.board, cell_index, mark)
        return self._next(board=board, turn=self.turn.opponent, outcome=evaluate(board))

    def restarted(self) -> Self:
        """Fresh game in the same room. Players and chat log are kept."""
        return self._next(
            board=empty_board(), turn=Mark.X, outcome=Outcome.in_progress()
        )

    def with_message(self, author: str, text: str) -> Self:
        if not text.strip():
            raise GameStateError("Cannot send an empty message.")
        return self._next(messages=self.messages + (Message(author, text),))

    def _next(self, **changes) -> Self:
        return replace(self, version=self.version + 1, **changes)

    # --- BOUNDARY CONVERSION ---
    @classmethod
    def from_model(cls, model: RoomModel) -> Self:
        """Define how to construct a RoomState from the plain document stored / transported."""

        if len(model.board) != 9:
            raise GameStateError(
                f"Invalid board for room {model.room_id}: expected 9 cells, got {len(model.board)}."
            )
        board = tuple(Mark(cell) if cell else None for cell in model.board)
        status = OutcomeStatus(model.status)
        match status:
            case OutcomeStatus.WIN:
                if model.winner is None or model.winning_line is None:
                    raise GameStateError(
                        f"Room {model.room_id} is won but the winner or winning line is missing."
                    )
                outcome = Outcome.win(Mark(model.winner), tuple(model.winning_line))
            case OutcomeStatus.TIE:
                outcome = Outcome.tie()
            case _:
                outcome = Outcome.in_progress()

        return cls(
            room_id=model.room_id,
            board=board,
            turn=Mark(model.turn),
            player_x=model.player_x,
            player_o=model.player_o,
            outcome=outcome,
            messages=tuple(Message(m.author, m.text) for m in model.messages),
            version=model.version,
        )

    def to_model(self) -> RoomModel:
        """Encode back into the plain document format."""

        return RoomModel(
            room_id=self.room_id,
            board=[cell.value if cell else None for cell in self.board],
            turn=self.turn.value,
            player_x=self.player_x,
            player_o=self.player_o,
            status=self.outcome.status.value,
            winner=self.outcome.winner.value if self.outcome.winner else None,
            winning_line=list(self.outcome.line) if self.outcome.line else None,
            winner_name=self.winner_name,
            messages=[MessageModel(m.author, m.text) for m in self.messages],
            version=self.version,
        )
