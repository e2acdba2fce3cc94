"""REST room store: the endpoints clients poll and write to."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.models import (
    AckResponse,
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    LeaveRoomRequest,
    RestartRoomRequest,
    RoomDocument,
    SendMessageRequest,
    UpdateRoomRequest,
)
from src.db.database import get_db
from src.db.sql_repository import SQLRoomRepository
from src.services.room_service import RoomService

router = APIRouter(prefix="/api", tags=["rooms"])

SPECTATOR_NAME = "Spectator"


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(SQLRoomRepository(db))


@router.post("/create-room", response_model=CreateRoomResponse)
def create_room(
    request: CreateRoomRequest, service: RoomService = Depends(get_room_service)
) -> CreateRoomResponse:
    room = service.create_room(request.player_name)
    return CreateRoomResponse(room_id=room.room_id, room=RoomDocument.from_state(room))


@router.post("/join-room", response_model=JoinRoomResponse)
def join_room(
    request: JoinRoomRequest, service: RoomService = Depends(get_room_service)
) -> JoinRoomResponse:
    room, identity = service.join_room(
        request.room_id,
        request.player_name or SPECTATOR_NAME,
        is_spectator=request.is_spectator,
    )
    return JoinRoomResponse(identity=identity, room=RoomDocument.from_state(room))


@router.post("/leave-room", response_model=AckResponse)
def leave_room(
    request: LeaveRoomRequest, service: RoomService = Depends(get_room_service)
) -> AckResponse:
    service.leave_room(request.room_id, request.player)
    return AckResponse()


@router.get("/room/{room_id}", response_model=RoomDocument)
def get_room(
    room_id: str, service: RoomService = Depends(get_room_service)
) -> RoomDocument:
    return RoomDocument.from_state(service.get_room(room_id))


@router.post("/update-room", response_model=RoomDocument)
def update_room(
    request: UpdateRoomRequest, service: RoomService = Depends(get_room_service)
) -> RoomDocument:
    return RoomDocument.from_state(
        service.update_room(request.to_state(), check_version=request.version is not None)
    )


@router.post("/restart-room", response_model=RoomDocument)
def restart_room(
    request: RestartRoomRequest, service: RoomService = Depends(get_room_service)
) -> RoomDocument:
    return RoomDocument.from_state(service.restart_room(request.room_id))


@router.post("/send-message", response_model=RoomDocument)
def send_message(
    request: SendMessageRequest, service: RoomService = Depends(get_room_service)
) -> RoomDocument:
    return RoomDocument.from_state(
        service.send_message(request.room_id, request.player_name, request.message)
    )
