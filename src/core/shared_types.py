"""
Type definitions used across layers
"""

from enum import StrEnum


class Mark(StrEnum):
    X = "X"
    O = "O"  # noqa: E741

    @property
    def opponent(self) -> "Mark":
        return Mark.O if self == Mark.X else Mark.X


class OutcomeStatus(StrEnum):
    IN_PROGRESS = "in progress"
    WIN = "win"
    TIE = "tie"


# --- NOTE Identity lives on the client only. It is never written into the shared room document.
class Identity(StrEnum):
    UNASSIGNED = "unassigned"
    X = "X"
    O = "O"  # noqa: E741
    SPECTATOR = "spectator"

    @property
    def mark(self) -> Mark | None:
        """Mark this identity plays with (None for spectators / unassigned sessions)."""
        if self in (Identity.X, Identity.O):
            return Mark(self.value)
        return None
