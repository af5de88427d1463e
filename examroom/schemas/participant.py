"""Participant ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import field_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from .schema_utils import parse_mongo_datetime


class Participant(Document):
    """Participant document model.

    Display names are not unique; participant_id is minted by the server at join time.
    """

    participant_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    name: str
    endpoint_id: str
    room_code: str

    joined_at: datetime

    @field_validator("joined_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    class Settings:
        name = "participant"
        indexes = [
            IndexModel(
                [("room_code", ASCENDING), ("name", ASCENDING), ("joined_at", DESCENDING)],
                name="room_code_name_joined_at",
            ),
        ]
