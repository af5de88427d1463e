"""Room ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator

from .room_state import RoomState
from .schema_utils import parse_mongo_datetime


class Room(Document):
    """Room document model.

    A room exists in the collection only while it is active; close_room removes it.
    """

    room_code: Indexed(str, unique=True)  # type: ignore[valid-type]
    host_endpoint_id: str

    # Participant ids, in join order
    members: list[str] = Field(default_factory=list)
    status: RoomState = RoomState.ACTIVE

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    class Settings:
        name = "room"
