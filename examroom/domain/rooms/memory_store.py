"""Process-local stores, selected with ROOM_STORE_BACKEND=memory.

Records live only as long as the process. No await happens between a precondition
check and the mutation it guards, so each call is atomic on the event loop.
"""

from examroom.domain.utils.idgen import new_participant_id, utc_now
from examroom.utils.app_errors import DuplicateRoomError, RoomNotFoundError

from .incident_logger import IncidentStore
from .room_models import IncidentRecord, ParticipantRecord, RoomRecord
from .room_store import RoomStore


class MemoryRoomStore(RoomStore):
    def __init__(self):
        self._rooms: dict[str, RoomRecord] = {}
        self._participants: dict[str, ParticipantRecord] = {}

    async def create_room(self, room_code: str, host_endpoint_id: str) -> RoomRecord:
        if room_code in self._rooms:
            raise DuplicateRoomError(room_code)

        now = utc_now()
        room = RoomRecord(
            room_code=room_code,
            host_endpoint_id=host_endpoint_id,
            created_at=now,
            updated_at=now,
        )
        self._rooms[room_code] = room
        return room.model_copy(deep=True)

    async def find_room(self, room_code: str) -> RoomRecord | None:
        room = self._rooms.get(room_code)
        return room.model_copy(deep=True) if room else None

    async def add_member(self, room_code: str, participant: ParticipantRecord) -> RoomRecord:
        room = self._rooms.get(room_code)
        if room is None:
            raise RoomNotFoundError(room_code)

        room.members.append(participant.participant_id)
        room.updated_at = utc_now()
        return room.model_copy(deep=True)

    async def delete_room(self, room_code: str) -> bool:
        return self._rooms.pop(room_code, None) is not None

    async def create_participant(
        self, name: str, endpoint_id: str, room_code: str
    ) -> ParticipantRecord:
        participant = ParticipantRecord(
            participant_id=new_participant_id(),
            name=name,
            endpoint_id=endpoint_id,
            room_code=room_code,
            joined_at=utc_now(),
        )
        self._participants[participant.participant_id] = participant
        return participant

    async def find_participant(self, name: str, room_code: str) -> ParticipantRecord | None:
        found = None
        # Insertion order is join order, so the last match is the most recent join
        for participant in self._participants.values():
            if participant.room_code == room_code and participant.name == name:
                found = participant
        return found

    async def get_participant(self, participant_id: str) -> ParticipantRecord | None:
        return self._participants.get(participant_id)

    async def delete_participant(self, participant_id: str) -> bool:
        return self._participants.pop(participant_id, None) is not None


class MemoryIncidentStore(IncidentStore):
    def __init__(self):
        self._incidents: list[IncidentRecord] = []

    async def insert(self, incident: IncidentRecord) -> IncidentRecord:
        self._incidents.append(incident)
        return incident

    async def list_for_room(self, room_code: str) -> list[IncidentRecord]:
        return [x for x in self._incidents if x.room_code == room_code]
