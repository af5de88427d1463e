"""Room domain service - wiring and read-side queries."""

from datetime import datetime

from pydantic import BaseModel

from examroom.schemas import RoomState
from examroom.services.transport import ChannelTransport
from examroom.utils.app_errors import RoomNotFoundError

from .coordinator import SessionCoordinator
from .incident_logger import IncidentLogger, MongoIncidentStore
from .memory_store import MemoryIncidentStore, MemoryRoomStore
from .registry import ConnectionRegistry
from .room_models import IncidentRecord
from .room_store import MongoRoomStore


class RoomStatusResponse(BaseModel):
    room_code: str
    host_endpoint_id: str
    host_connected: bool
    member_count: int
    state: RoomState
    created_at: datetime


class IncidentListResponse(BaseModel):
    room_code: str
    incidents: list[IncidentRecord]


def build_coordinator(
    transport: ChannelTransport,
    use_memory_store: bool = False,
    registry: ConnectionRegistry | None = None,
) -> SessionCoordinator:
    """Assemble a coordinator on the Mongo (default) or process-local stores."""
    if use_memory_store:
        store, incident_store = MemoryRoomStore(), MemoryIncidentStore()
    else:
        store, incident_store = MongoRoomStore(), MongoIncidentStore()

    return SessionCoordinator(
        store=store,
        incidents=IncidentLogger(incident_store),
        registry=registry or ConnectionRegistry(),
        transport=transport,
    )


class RoomService:
    """Host-side read queries over the coordinator's store and logger."""

    def __init__(self, coordinator: SessionCoordinator):
        self._coordinator = coordinator

    async def get_room(self, room_code: str) -> RoomStatusResponse:
        """Raises RoomNotFoundError if the room does not currently exist."""
        room = await self._coordinator.store.find_room(room_code)
        if room is None:
            raise RoomNotFoundError(room_code)

        host = self._coordinator.registry.resolve_host(room_code)
        state = self._coordinator.room_state(room_code)
        return RoomStatusResponse(
            room_code=room.room_code,
            host_endpoint_id=room.host_endpoint_id,
            host_connected=host is not None,
            member_count=len(room.members),
            # Rooms persisted before this process started are active in the store
            state=RoomState.ACTIVE if state == RoomState.NONE else state,
            created_at=room.created_at,
        )

    async def list_incidents(self, room_code: str) -> IncidentListResponse:
        """Incidents are retained after the room closes."""
        incidents = await self._coordinator.incidents.list_incidents(room_code)
        return IncidentListResponse(room_code=room_code, incidents=incidents)
