"""
Rules of the 3x3 board.
---

Cells are indexed 0-8, row-major. A board is a tuple of 9 cells, each either None (empty) or a Mark.
Everything here is a pure function on such a tuple.
"""

from dataclasses import dataclass
from typing import Optional, Self

from src.core.shared_types import Mark, OutcomeStatus

BOARD_SIZE = 9

Cell = Optional[Mark]
Board = tuple[Cell, ...]
Line = tuple[int, int, int]

# rows, columns, diagonals. The first matching line is the one reported.
WINNING_LINES: tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    winner: Optional[Mark] = None
    line: Optional[Line] = None

    @classmethod
    def in_progress(cls) -> Self:
        return cls(OutcomeStatus.IN_PROGRESS)

    @classmethod
    def win(cls, mark: Mark, line: Line) -> Self:
        return cls(OutcomeStatus.WIN, winner=mark, line=line)

    @classmethod
    def tie(cls) -> Self:
        return cls(OutcomeStatus.TIE)

    @property
    def is_terminal(self) -> bool:
        return self.status != OutcomeStatus.IN_PROGRESS


def empty_board() -> Board:
    return (None,) * BOARD_SIZE


def is_full(board: Board) -> bool:
    return all(cell is not None for cell in board)


def evaluate(board: Board) -> Outcome:
    """
    Classify the board.
    ----

    1. First winning line (in WINNING_LINES order) with three equal marks --> Win(mark, line)
    2. No winning line and no empty cell left --> Tie
    3. Otherwise --> InProgress
    """
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] is not None and board[a] == board[b] == board[c]:
            return Outcome.win(board[a], line)
    if is_full(board):
        return Outcome.tie()
    return Outcome.in_progress()


def is_legal_move(
    board: Board, cell_index: int, acting_mark: Optional[Mark], turn: Mark
) -> bool:
    """A move is legal for the player whose turn it is, on an empty cell of a board that is still in progress."""
    if acting_mark is None or acting_mark != turn:
        return False
    if not 0 <= cell_index < BOARD_SIZE:
        return False
    if board[cell_index] is not None:
        return False
    return not evaluate(board).is_terminal


def place(board: Board, cell_index: int, mark: Mark) -> Board:
    """New board with the mark placed. Legality is the caller's concern."""
    cells = list(board)
    cells[cell_index] = mark
    return tuple(cells)
