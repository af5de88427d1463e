"""Incident logger: durable proctoring incidents and their host notifications."""

from abc import ABC, abstractmethod
from datetime import datetime

from loguru import logger
from pymongo import ASCENDING

from examroom.domain.utils.idgen import new_incident_id, utc_now
from examroom.schemas import Incident, IncidentKind

from .room_models import INCIDENT_EVENTS, IncidentRecord, ParticipantRecord, ServerEvent

_INCIDENT_LABELS: dict[IncidentKind, str] = {
    IncidentKind.CHEATING: "Cheating detected for student",
    IncidentKind.CAMERA_BLOCKED: "Camera blocked for student",
}


def format_incident_message(kind: IncidentKind, name: str, timestamp: datetime) -> str:
    """Human readable log line shown to the host, e.g.
    "2026-10-18 09:30:00 UTC - Cheating detected for student: Alice".
    """
    return f"{timestamp:%Y-%m-%d %H:%M:%S} UTC - {_INCIDENT_LABELS[kind]}: {name}"


class IncidentStore(ABC):
    @abstractmethod
    async def insert(self, incident: IncidentRecord) -> IncidentRecord: ...

    @abstractmethod
    async def list_for_room(self, room_code: str) -> list[IncidentRecord]:
        """Incidents of a room, oldest first."""


class MongoIncidentStore(IncidentStore):
    async def insert(self, incident: IncidentRecord) -> IncidentRecord:
        await Incident(**incident.model_dump()).insert()
        return incident

    async def list_for_room(self, room_code: str) -> list[IncidentRecord]:
        incidents = (
            await Incident.find(Incident.room_code == room_code)
            .sort([("timestamp", ASCENDING), ("_id", ASCENDING)])  # type: ignore
            .to_list()
        )
        return [IncidentRecord(**x.model_dump(exclude={"id"})) for x in incidents]


class IncidentLogger:
    """Turns a detection signal into one Incident and one host notification.

    Never deduplicates or rate-limits; debouncing belongs to the client classifier.
    """

    def __init__(self, store: IncidentStore):
        self._store = store

    async def record_incident(
        self,
        participant: ParticipantRecord,
        room_code: str,
        kind: IncidentKind,
        message: str | None = None,
    ) -> IncidentRecord:
        timestamp = utc_now()
        incident = IncidentRecord(
            incident_id=new_incident_id(),
            participant_id=participant.participant_id,
            room_code=room_code,
            kind=kind,
            message=message or format_incident_message(kind, participant.name, timestamp),
            timestamp=timestamp,
        )

        await self._store.insert(incident)
        logger.info(
            f"Recorded {kind} incident {incident.incident_id} for participant "
            f"{participant.participant_id} ({participant.name}) in room {room_code}"
        )
        return incident

    @staticmethod
    def notification_for(incident: IncidentRecord) -> tuple[ServerEvent, dict]:
        return INCIDENT_EVENTS[incident.kind], {"logMessage": incident.message}

    async def list_incidents(self, room_code: str) -> list[IncidentRecord]:
        return await self._store.list_for_room(room_code)
