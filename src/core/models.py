"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make RoomModel easier to read
CellValue = Optional[str]
PlayerName = str


@dataclass
class MessageModel:
    author: PlayerName
    text: str


@dataclass
class RoomModel:
    """Transport-safe representation of a shared room document, used between API, Service, DB and domain layers."""

    room_id: str
    board: list[CellValue]
    turn: str
    player_x: Optional[PlayerName]
    player_o: Optional[PlayerName]
    status: str
    winner: Optional[str] = None
    winning_line: Optional[list[int]] = None
    winner_name: Optional[PlayerName] = None
    messages: list[MessageModel] = field(default_factory=list)
    version: int = 0
