"""Common enums used across schemas."""

from enum import Enum


class RoomState(str, Enum):
    """Room lifecycle states.

    State Transition Flow:

    NONE → ACTIVE → CLOSED

    - NONE: No room with this code has been created by this process.
    - ACTIVE: Room created by a host (create_room) and persisted.
    - CLOSED: Room deleted by close_room. Terminal for that room's lifetime;
      the code may be used again by a later create_room.
    """

    NONE = "none"
    ACTIVE = "active"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class IncidentKind(str, Enum):
    """Kinds of proctoring incidents reported by participant clients."""

    CHEATING = "cheating"
    CAMERA_BLOCKED = "camera-blocked"

    def __str__(self) -> str:
        return self.value


__all__ = ["IncidentKind", "RoomState"]
