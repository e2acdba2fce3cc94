"""Plain-text view of a session (what a terminal client would print after every update)."""

from src.core.shared_types import OutcomeStatus
from src.tictactoe.board import Board
from src.tictactoe.session import Session, SessionStatus

EMPTY_CELL = "."


def render_board(board: Board) -> str:
    rows = []
    for start in range(0, 9, 3):
        rows.append(
            " ".join(cell.value if cell else EMPTY_CELL for cell in board[start : start + 3])
        )
    return "\n".join(rows)


def render_session(session: Session) -> str:
    """Reads the session only; rendering the same value twice gives the same text."""
    if session.status == SessionStatus.UNJOINED or session.view is None:
        return "Not in a room."

    room = session.view
    lines = [f"Room ID: {room.room_id}"]
    if session.status == SessionStatus.SPECTATING:
        lines.append(f"Spectating: {room.player_x} (X) vs {room.player_o} (O)")
    else:
        lines.append(f"Player: {session.player_name} ({session.identity})")
        lines.append(f"Opponent: {session.opponent_name or 'Waiting for opponent...'}")
    lines.append(render_board(room.board))

    match room.outcome.status:
        case OutcomeStatus.WIN:
            lines.append(f"Winner: {room.winner_name or room.outcome.winner}")
        case OutcomeStatus.TIE:
            lines.append("It's a Tie!")
        case _:
            lines.append("Your turn" if session.is_my_turn else f"{room.turn} to move")

    for message in room.messages:
        lines.append(f"<{message.author}> {message.text}")
    return "\n".join(lines)
