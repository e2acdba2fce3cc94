"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBRoom(Base):
    __tablename__ = "rooms"
    id: Mapped[str] = mapped_column(String(8), primary_key=True)
    board: Mapped[list[Optional[str]]] = mapped_column(JSON)
    turn: Mapped[str]
    player_x: Mapped[Optional[str]]
    player_o: Mapped[Optional[str]]
    status: Mapped[str]
    winner: Mapped[Optional[str]]
    winning_line: Mapped[Optional[list[int]]] = mapped_column(JSON, nullable=True)
    messages: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
