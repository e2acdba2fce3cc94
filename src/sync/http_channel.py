"""SyncChannel over the REST room store, subscribing by polling."""

import logging
from typing import Any, AsyncIterator, Optional

import httpx

from src.api.models import CreateRoomRequest, CreateRoomResponse, RoomDocument
from src.core.config import settings
from src.core.exceptions import (
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    InvalidRoomIdError,
    RoomFullError,
    RoomNotFoundError,
    StoreUnavailableError,
    WriteConflictError,
)
from src.sync.channel import poll_room
from src.tictactoe.room import RoomState, normalize_room_id

logger = logging.getLogger(__name__)

# error "code" sent by the server --> exception raised on the client
ERROR_CODES: dict[str, type[GameError]] = {
    error.__name__: error
    for error in (
        RoomNotFoundError,
        RoomFullError,
        WriteConflictError,
        InvalidRequestError,
        InvalidRoomIdError,
        GameStateError,
        IllegalMoveError,
        StoreUnavailableError,
    )
}

STATUS_ERRORS: dict[int, type[GameError]] = {
    404: RoomNotFoundError,
    409: WriteConflictError,
    422: InvalidRequestError,
}


class HTTPChannel:
    """
    Client for the /api room endpoints.
    ----

    Pass an `httpx.AsyncClient` to control the transport (tests use `httpx.ASGITransport` against the app).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
        self.poll_interval = poll_interval

    async def create_room(self, player_name: str) -> RoomState:
        payload = CreateRoomRequest(player_name=player_name).model_dump(by_alias=True)
        data = await self._request("POST", "/create-room", json=payload)
        return CreateRoomResponse.model_validate(data).room.to_state()

    async def read(self, room_id: str) -> RoomState:
        data = await self._request("GET", f"/room/{normalize_room_id(room_id)}")
        return RoomDocument.model_validate(data).to_state()

    async def write(self, state: RoomState) -> RoomState:
        payload = RoomDocument.from_state(state).model_dump(by_alias=True, mode="json")
        data = await self._request("POST", "/update-room", json=payload)
        return RoomDocument.model_validate(data).to_state()

    def subscribe(self, room_id: str) -> AsyncIterator[RoomState]:
        return poll_room(self, room_id, self.poll_interval)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise StoreUnavailableError(f"Room store unreachable: {exc}") from exc

        if response.is_success:
            return response.json()
        raise self._error_from(response)

    def _error_from(self, response: httpx.Response) -> GameError:
        """Rebuild the server side error from the status code and the error body."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or body.get("detail") or response.text
        if response.status_code >= 500:
            logger.warning("Room store answered %s: %s", response.status_code, message)
            return StoreUnavailableError(str(message))

        error_type = ERROR_CODES.get(body.get("code", "")) or STATUS_ERRORS.get(
            response.status_code, InvalidRequestError
        )
        return error_type(str(message))
