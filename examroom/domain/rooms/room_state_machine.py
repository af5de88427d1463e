"""Room state machine for managing lifecycle transitions."""

from examroom.schemas import RoomState


class RoomStateMachine:
    """State machine for managing room state transitions.

    State flow with triggers:
    - NONE -> ACTIVE (create_room persisted the room, or join_room found a room
      persisted before this process started)
    - NONE -> CLOSED (close_room deleted a room persisted before this process started)
    - ACTIVE -> CLOSED (close_room deleted the room)
    - CLOSED -> ACTIVE (create_room with a code whose previous room was closed;
      this starts a new room lifetime, the store allows recreating the code)

    close_room is idempotent; CLOSED -> CLOSED is a no-op, not a transition.
    """

    TRANSITIONS: dict[RoomState, set[RoomState]] = {
        RoomState.NONE: {RoomState.ACTIVE, RoomState.CLOSED},
        RoomState.ACTIVE: {RoomState.CLOSED},
        RoomState.CLOSED: {RoomState.ACTIVE},
    }

    @classmethod
    def can_transition(cls, current: RoomState, new: RoomState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current room state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_reopen(cls, current: RoomState, new: RoomState) -> bool:
        return current == RoomState.CLOSED and new == RoomState.ACTIVE

    @classmethod
    def get_valid_transitions(cls, state: RoomState) -> set[RoomState]:
        return cls.TRANSITIONS.get(state, set())
