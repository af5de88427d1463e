"""Beanie ODM schemas for MongoDB collections."""

from .incident import Incident
from .init import init_beanie_odm
from .participant import Participant
from .room import Room
from .room_state import IncidentKind, RoomState

__all__ = [
    "Incident",
    "IncidentKind",
    "Participant",
    "Room",
    "RoomState",
    "init_beanie_odm",
]
