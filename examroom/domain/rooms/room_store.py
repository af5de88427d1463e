"""Room store: durable Room and Participant records."""

from abc import ABC, abstractmethod

from beanie import UpdateResponse
from beanie.operators import Push, Set
from loguru import logger
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from examroom.domain.utils.idgen import new_participant_id, utc_now
from examroom.schemas import Participant, Room
from examroom.utils.app_errors import DuplicateRoomError, RoomNotFoundError

from .room_models import ParticipantRecord, RoomRecord


class RoomStore(ABC):
    """Repository interface the session coordinator persists rooms through.

    Each mutating call is atomic with respect to its own precondition check. Nothing
    is atomic across calls.
    """

    @abstractmethod
    async def create_room(self, room_code: str, host_endpoint_id: str) -> RoomRecord:
        """Persist a new room. Raises DuplicateRoomError if the code exists."""

    @abstractmethod
    async def find_room(self, room_code: str) -> RoomRecord | None: ...

    @abstractmethod
    async def add_member(self, room_code: str, participant: ParticipantRecord) -> RoomRecord:
        """Append the participant to the room. Raises RoomNotFoundError if absent."""

    @abstractmethod
    async def delete_room(self, room_code: str) -> bool:
        """Delete the room. Idempotent; returns False if it did not exist."""

    @abstractmethod
    async def create_participant(
        self, name: str, endpoint_id: str, room_code: str
    ) -> ParticipantRecord: ...

    @abstractmethod
    async def find_participant(self, name: str, room_code: str) -> ParticipantRecord | None:
        """Look up by (name, room_code). The most recently joined participant wins."""

    @abstractmethod
    async def get_participant(self, participant_id: str) -> ParticipantRecord | None: ...

    @abstractmethod
    async def delete_participant(self, participant_id: str) -> bool:
        """Remove a participant whose join did not complete. Returns False if absent."""


def _room_record(room: Room) -> RoomRecord:
    return RoomRecord(**room.model_dump(exclude={"id"}))


def _participant_record(participant: Participant) -> ParticipantRecord:
    return ParticipantRecord(**participant.model_dump(exclude={"id"}))


class MongoRoomStore(RoomStore):
    """RoomStore backed by Beanie documents.

    Room code uniqueness is enforced by the unique index on room.room_code.
    """

    async def create_room(self, room_code: str, host_endpoint_id: str) -> RoomRecord:
        now = utc_now()
        room = Room(
            room_code=room_code,
            host_endpoint_id=host_endpoint_id,
            created_at=now,
            updated_at=now,
        )

        try:
            await room.insert()
        except DuplicateKeyError as e:
            logger.warning(f"Room {room_code} already exists: {e}")
            raise DuplicateRoomError(room_code) from e

        logger.debug(f"Created room: {room.model_dump(exclude={'id'})}")
        return _room_record(room)

    async def find_room(self, room_code: str) -> RoomRecord | None:
        room = await Room.find_one(Room.room_code == room_code)
        return _room_record(room) if room else None

    async def add_member(self, room_code: str, participant: ParticipantRecord) -> RoomRecord:
        room = await Room.find_one(Room.room_code == room_code).update(
            Push({Room.members: participant.participant_id}),
            Set({Room.updated_at: utc_now()}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if not room:
            raise RoomNotFoundError(room_code)

        return _room_record(room)

    async def delete_room(self, room_code: str) -> bool:
        result = await Room.find(Room.room_code == room_code).delete()
        deleted = bool(result and result.deleted_count)
        if deleted:
            logger.info(f"Deleted room {room_code}")
        return deleted

    async def create_participant(
        self, name: str, endpoint_id: str, room_code: str
    ) -> ParticipantRecord:
        participant = Participant(
            participant_id=new_participant_id(),
            name=name,
            endpoint_id=endpoint_id,
            room_code=room_code,
            joined_at=utc_now(),
        )
        await participant.insert()
        return _participant_record(participant)

    async def find_participant(self, name: str, room_code: str) -> ParticipantRecord | None:
        participant = (
            await Participant.find(
                Participant.room_code == room_code,
                Participant.name == name,
            )
            .sort([("joined_at", DESCENDING), ("_id", DESCENDING)])  # type: ignore
            .first_or_none()
        )
        return _participant_record(participant) if participant else None

    async def get_participant(self, participant_id: str) -> ParticipantRecord | None:
        participant = await Participant.find_one(Participant.participant_id == participant_id)
        return _participant_record(participant) if participant else None

    async def delete_participant(self, participant_id: str) -> bool:
        result = await Participant.find(Participant.participant_id == participant_id).delete()
        deleted = bool(result and result.deleted_count)
        if deleted:
            logger.info(f"Deleted participant {participant_id}")
        return deleted
