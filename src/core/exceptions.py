"""Errors raised by the domain, persistence and synchronization layers."""


class GameError(Exception):
    """Base class for every error raised on purpose by this package."""


class InvalidRequestError(GameError):
    """Request data could not be interpreted."""


class InvalidRoomIdError(InvalidRequestError):
    """Room code is not a 4 character alphanumeric token."""


class RepositoryError(GameError):
    """Persistence layer could not complete the request."""


class RoomNotFoundError(RepositoryError):
    pass


class RoomFullError(GameError):
    """Both seats (X and O) are taken and spectators are not accepted."""


class GameStateError(GameError):
    """Room document is not a valid game state, or the transition does not apply to it."""


class IllegalMoveError(GameStateError):
    pass


class SessionStateError(GameError):
    """Operation is not valid in the current state of the client session."""


class WriteConflictError(GameError):
    """The room changed since the snapshot the write was derived from."""


class StoreUnavailableError(GameError):
    """Room store could not be reached or answered with a server error."""
