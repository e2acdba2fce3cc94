"""Requests and Response models (camelCase on the wire: roomId, playerName, ...)"""

from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Identity, Mark, OutcomeStatus
from src.core.models import MessageModel, RoomModel
from src.tictactoe.room import RoomState, normalize_room_id

PlayerName = str


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomIdModel(ApiModel):
    room_id: str

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: str) -> str:
        return normalize_room_id(value)


# --- SHARED DOCUMENT ---
class MessageDocument(ApiModel):
    author: PlayerName
    text: str


class RoomDocument(RoomIdModel):
    """The whole shared room record. Sent back by every read, accepted as-is by update-room."""

    board: list[Optional[Mark]]
    turn: Mark
    player_x: Optional[PlayerName] = None
    player_o: Optional[PlayerName] = None
    status: OutcomeStatus = OutcomeStatus.IN_PROGRESS
    winner: Optional[Mark] = None
    winning_line: Optional[list[int]] = None
    winner_name: Optional[PlayerName] = None
    tie: bool = False
    messages: list[MessageDocument] = Field(default_factory=list)
    # None: client does not track versions, its write overwrites whatever is stored
    version: Optional[int] = Field(default=None, ge=0)

    @field_validator("board")
    @classmethod
    def validate_board(cls, value: list[Optional[Mark]]) -> list[Optional[Mark]]:
        if len(value) != 9:
            raise InvalidRequestError(f"Board must contain 9 cells, got {len(value)}.")
        return value

    @field_validator("winning_line")
    @classmethod
    def validate_winning_line(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is None:
            return value
        if len(value) != 3 or not all(0 <= index < 9 for index in value):
            raise InvalidRequestError(f"Winning line {value} is not 3 cells of the board.")
        return value

    @classmethod
    def from_state(cls, state: RoomState) -> Self:
        model = state.to_model()
        return cls(
            room_id=model.room_id,
            board=model.board,
            turn=model.turn,
            player_x=model.player_x,
            player_o=model.player_o,
            status=model.status,
            winner=model.winner,
            winning_line=model.winning_line,
            winner_name=model.winner_name,
            tie=model.status == OutcomeStatus.TIE,
            messages=[MessageDocument(author=m.author, text=m.text) for m in model.messages],
            version=model.version,
        )

    def to_state(self) -> RoomState:
        """winner_name and tie are derived from the other fields and ignored here. A missing version reads as 0."""
        return RoomState.from_model(
            RoomModel(
                room_id=self.room_id,
                board=[cell.value if cell else None for cell in self.board],
                turn=self.turn.value,
                player_x=self.player_x,
                player_o=self.player_o,
                status=self.status.value,
                winner=self.winner.value if self.winner else None,
                winning_line=self.winning_line,
                messages=[MessageModel(m.author, m.text) for m in self.messages],
                version=self.version or 0,
            )
        )


# --- REQUEST MODELS ---
class CreateRoomRequest(ApiModel):
    player_name: PlayerName = Field(min_length=1)


class JoinRoomRequest(RoomIdModel):
    player_name: Optional[PlayerName] = None
    is_spectator: bool = False

    @model_validator(mode="after")
    def validate_player_name(self) -> Self:
        if not self.is_spectator and not (self.player_name and self.player_name.strip()):
            raise InvalidRequestError("A player name is required to take a seat.")
        return self


class LeaveRoomRequest(RoomIdModel):
    player: PlayerName


class UpdateRoomRequest(RoomDocument):
    pass


class RestartRoomRequest(RoomIdModel):
    pass


class SendMessageRequest(RoomIdModel):
    player_name: PlayerName = Field(min_length=1)
    message: str = Field(min_length=1)


# --- RESPONSE MODELS ---
class CreateRoomResponse(ApiModel):
    room_id: str
    room: RoomDocument


class JoinRoomResponse(ApiModel):
    identity: Identity
    room: RoomDocument


class AckResponse(ApiModel):
    ok: bool = True


class ErrorResponse(ApiModel):
    error: str
    code: str
