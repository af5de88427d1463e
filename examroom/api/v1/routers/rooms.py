from fastapi import APIRouter, Depends, Request

from examroom.api.v1.schemas.base import ApiOut
from examroom.domain.rooms.room_domain import IncidentListResponse, RoomService, RoomStatusResponse

router = APIRouter(prefix="/rooms")


def get_room_service(request: Request) -> RoomService:
    """RoomService bound to the coordinator shared with the socket gateway."""
    return RoomService(request.app.state.coordinator)


@router.get("/{room_code}")
async def get_room(
    room_code: str,
    service: RoomService = Depends(get_room_service),
) -> ApiOut[RoomStatusResponse]:
    """Get a live room's status. Returns 404 once the room is closed."""
    result = await service.get_room(room_code)
    return ApiOut[RoomStatusResponse](results=result)


@router.get("/{room_code}/incidents")
async def list_incidents(
    room_code: str,
    service: RoomService = Depends(get_room_service),
) -> ApiOut[IncidentListResponse]:
    """List incidents recorded for a room, oldest first."""
    result = await service.list_incidents(room_code)
    return ApiOut[IncidentListResponse](results=result)
