"""Incident ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import field_validator

from .room_state import IncidentKind
from .schema_utils import parse_mongo_datetime


class Incident(Document):
    """Proctoring incident, written once and never updated."""

    incident_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    participant_id: str
    room_code: Indexed(str)  # type: ignore[valid-type]
    kind: IncidentKind
    message: str

    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    class Settings:
        name = "incident"
