"""Room domain models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from examroom.schemas.room_state import IncidentKind, RoomState


class RoomRecord(BaseModel):
    """Room as returned by a RoomStore."""

    room_code: str
    host_endpoint_id: str
    members: list[str] = Field(default_factory=list)
    status: RoomState = RoomState.ACTIVE
    created_at: datetime
    updated_at: datetime


class ParticipantRecord(BaseModel):
    participant_id: str
    name: str
    endpoint_id: str
    room_code: str
    joined_at: datetime


class IncidentRecord(BaseModel):
    incident_id: str
    participant_id: str
    room_code: str
    kind: IncidentKind
    message: str
    timestamp: datetime


class EndpointRole(str, Enum):
    NONE = "none"
    HOST = "host"
    PARTICIPANT = "participant"

    def __str__(self) -> str:
        return self.value


class EndpointBinding(BaseModel):
    """Current role and room of a live channel endpoint."""

    endpoint_id: str
    role: EndpointRole = EndpointRole.NONE
    room_code: str | None = None
    connected_at: datetime


class ClientEvent(str, Enum):
    """Events received from clients."""

    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    CHEATING_DETECTED = "cheating_detected"
    CAMERA_BLOCKED = "camera_blocked"
    CLOSE_ROOM = "close_room"

    def __str__(self) -> str:
        return self.value


class ServerEvent(str, Enum):
    """Events emitted to clients."""

    STUDENT_JOINED = "student_joined"
    CHEATING_LOG = "cheating_log"
    CAMERA_BLOCKED_LOG = "camera_blocked_log"
    ROOM_CLOSED = "room_closed"
    ROOM_ERROR = "room_error"

    def __str__(self) -> str:
        return self.value


INCIDENT_EVENTS: dict[IncidentKind, ServerEvent] = {
    IncidentKind.CHEATING: ServerEvent.CHEATING_LOG,
    IncidentKind.CAMERA_BLOCKED: ServerEvent.CAMERA_BLOCKED_LOG,
}


class _ClientPayload(BaseModel):
    """Inbound payloads use the web client's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    room_code: str = Field(alias="roomCode")

    @field_validator("room_code")
    @classmethod
    def _strip_room_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("roomCode must not be empty")
        return v


class CreateRoomPayload(_ClientPayload):
    pass


class CloseRoomPayload(_ClientPayload):
    pass


class JoinRoomPayload(_ClientPayload):
    user_name: str = Field(alias="userName")

    @field_validator("user_name")
    @classmethod
    def _strip_user_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("userName must not be empty")
        return v


class DetectionPayload(_ClientPayload):
    """cheating_detected / camera_blocked.

    participantId is returned in the join_room acknowledgement; clients that send it
    are resolved by id and may omit userName. Otherwise userName is required.
    """

    user_name: str | None = Field(default=None, alias="userName")
    participant_id: str | None = Field(default=None, alias="participantId")

    @field_validator("user_name", "participant_id")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def _require_identity(self) -> "DetectionPayload":
        if not self.user_name and not self.participant_id:
            raise ValueError("userName or participantId is required")
        return self
