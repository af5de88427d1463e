"""Session coordinator: room lifecycle and event routing between participants and host."""

from collections import OrderedDict
from typing import Any

from loguru import logger

from examroom.schemas import IncidentKind, RoomState
from examroom.services.transport import ChannelTransport
from examroom.utils.app_errors import (
    AlreadyBoundError,
    DuplicateRoomError,
    HostUnreachableError,
    ParticipantNotFoundError,
    RoomNotFoundError,
)

from .incident_logger import IncidentLogger
from .registry import ConnectionRegistry
from .room_models import (
    EndpointRole,
    IncidentRecord,
    ParticipantRecord,
    RoomRecord,
    ServerEvent,
)
from .room_state_machine import RoomStateMachine
from .room_store import RoomStore

CLOSED_HISTORY_LIMIT = 1024


class SessionCoordinator:
    """Authoritative handler for every inbound room event.

    The only component that combines registry, store and incident logger calls.
    Every mutating event runs validate -> persist -> resolve target(s) -> emit, and a
    failed persistence call never reaches the emit step. Failures are caught here and
    either sent back as room_error to the caller (join against a missing room) or
    logged without any outbound event.

    Nothing serializes events for the same room; a close racing a join is accepted.
    """

    def __init__(
        self,
        store: RoomStore,
        incidents: IncidentLogger,
        registry: ConnectionRegistry,
        transport: ChannelTransport,
        closed_history: int = CLOSED_HISTORY_LIMIT,
    ):
        self.store = store
        self.incidents = incidents
        self.registry = registry
        self.transport = transport
        # In-memory mirror of each live room's lifecycle as seen by this process
        self._lifecycle: dict[str, RoomState] = {}
        # Recently closed codes, oldest first; bounded so reuse can still be detected
        self._closed: OrderedDict[str, None] = OrderedDict()
        self._closed_history = closed_history

    # ==================== LIFECYCLE MIRROR ====================

    def room_state(self, room_code: str) -> RoomState:
        if room_code in self._lifecycle:
            return self._lifecycle[room_code]
        return RoomState.CLOSED if room_code in self._closed else RoomState.NONE

    def _transition(self, room_code: str, new_state: RoomState) -> None:
        current = self.room_state(room_code)
        if current == new_state:
            return

        if not RoomStateMachine.can_transition(current, new_state):
            # The store is authoritative; the mirror only follows it
            logger.warning(f"Unexpected room transition {current} -> {new_state} for {room_code}")
        elif RoomStateMachine.is_reopen(current, new_state):
            logger.info(f"Room code {room_code} reused after close")

        if new_state == RoomState.CLOSED:
            self._lifecycle.pop(room_code, None)
            self._closed.pop(room_code, None)
            self._closed[room_code] = None
            while len(self._closed) > self._closed_history:
                self._closed.popitem(last=False)
        else:
            self._closed.pop(room_code, None)
            self._lifecycle[room_code] = new_state

    # ==================== CONNECTIONS ====================

    def connect(self, endpoint_id: str) -> None:
        self.registry.register_endpoint(endpoint_id)
        logger.info(f"Endpoint connected: {endpoint_id}")

    def disconnect(self, endpoint_id: str) -> None:
        """Unbind the endpoint. Room and participant records are left untouched.

        A disconnected host leaves its room open without a reachable host.
        """
        binding = self.registry.unregister_endpoint(endpoint_id)
        logger.info(f"Endpoint disconnected: {endpoint_id}")

        if binding and binding.role == EndpointRole.HOST and binding.room_code:
            logger.warning(
                f"Host {endpoint_id} left room {binding.room_code}; room stays open without a host"
            )

    # ==================== EVENTS ====================

    async def create_room(self, endpoint_id: str, room_code: str) -> RoomRecord | None:
        """Make the caller host of a new room.

        Failures (duplicate code, endpoint already hosting another room, storage
        errors) are logged and nothing is emitted.
        """
        logger.info(f"Create room {room_code} requested by {endpoint_id}")

        previous = self.registry.snapshot(endpoint_id)
        try:
            self.registry.bind_host(endpoint_id, room_code)
        except AlreadyBoundError as e:
            logger.warning(f"Create room {room_code} rejected: {e}")
            return None

        try:
            room = await self.store.create_room(room_code, endpoint_id)
        except DuplicateRoomError as e:
            logger.warning(f"Create room {room_code} failed: {e}")
            self.registry.restore(endpoint_id, previous)
            return None
        except Exception as e:
            logger.exception(f"Error saving room {room_code}: {e}")
            self.registry.restore(endpoint_id, previous)
            return None

        await self._enter_group(endpoint_id, room_code)
        self._transition(room_code, RoomState.ACTIVE)
        logger.info(f"Room saved: {room_code} (host={endpoint_id})")
        return room

    async def join_room(
        self, endpoint_id: str, room_code: str, user_name: str
    ) -> ParticipantRecord | None:
        """Add the caller to an existing room and notify the host.

        The room's existence gates the join, not the host's liveness: an unreachable
        host is logged and the join still succeeds.
        """
        logger.info(f"User {user_name} ({endpoint_id}) joining room {room_code}")

        previous = self.registry.snapshot(endpoint_id)
        try:
            room = await self.store.find_room(room_code)
            if room is None:
                raise RoomNotFoundError(room_code)

            self.registry.bind_member(endpoint_id, room_code)
            participant = await self.store.create_participant(user_name, endpoint_id, room_code)
            try:
                await self.store.add_member(room_code, participant)
            except Exception:
                # The room vanished (or the update failed) after the participant was saved
                await self._discard_participant(participant)
                raise
        except (RoomNotFoundError, AlreadyBoundError) as e:
            logger.warning(f"Join room {room_code} by {user_name} failed: {e}")
            self.registry.restore(endpoint_id, previous)
            await self.send_room_error(endpoint_id, e.errmesg)
            return None
        except Exception as e:
            logger.exception(f"Error saving student or updating room {room_code}: {e}")
            self.registry.restore(endpoint_id, previous)
            await self.send_room_error(endpoint_id, "Failed to join room")
            return None

        if previous and previous.room_code and previous.room_code != room_code:
            await self._leave_group(endpoint_id, previous.room_code)
        await self._enter_group(endpoint_id, room_code)
        self._transition(room_code, RoomState.ACTIVE)
        logger.info(f"User {user_name} joined room {room_code} as {participant.participant_id}")

        await self._notify_host(room, ServerEvent.STUDENT_JOINED, {"userName": user_name})
        return participant

    async def report_incident(
        self,
        endpoint_id: str,
        room_code: str,
        user_name: str | None,
        kind: IncidentKind,
        participant_id: str | None = None,
    ) -> IncidentRecord | None:
        """Record a detection from a participant and relay it to the host.

        Only members of the room's current lifetime resolve. An unresolvable
        participant, including one left over from a closed room, drops the
        detection silently.
        """
        who = participant_id or user_name
        logger.info(f"{kind} reported for {who} in room {room_code} by {endpoint_id}")

        try:
            room = await self.store.find_room(room_code)
            participant = await self._resolve_participant(room, room_code, user_name, participant_id)
            incident = await self.incidents.record_incident(participant, room_code, kind)
        except ParticipantNotFoundError as e:
            logger.error(f"Dropping {kind} detection: {e}")
            return None
        except Exception as e:
            logger.exception(f"Error saving {kind} incident for room {room_code}: {e}")
            return None

        event, payload = self.incidents.notification_for(incident)
        await self._notify_host(room, event, payload)  # type: ignore[arg-type]
        return incident

    async def cheating_detected(
        self,
        endpoint_id: str,
        room_code: str,
        user_name: str | None,
        participant_id: str | None = None,
    ) -> IncidentRecord | None:
        return await self.report_incident(
            endpoint_id, room_code, user_name, IncidentKind.CHEATING, participant_id
        )

    async def camera_blocked(
        self,
        endpoint_id: str,
        room_code: str,
        user_name: str | None,
        participant_id: str | None = None,
    ) -> IncidentRecord | None:
        return await self.report_incident(
            endpoint_id, room_code, user_name, IncidentKind.CAMERA_BLOCKED, participant_id
        )

    async def close_room(self, endpoint_id: str, room_code: str) -> list[str]:
        """Delete the room, then tell every endpoint bound to it and evict them all.

        Idempotent. A storage failure is logged and the broadcast still happens, but the
        room keeps its ACTIVE state since it is still stored.
        Returns the endpoints that received room_closed.
        """
        logger.info(f"Close room {room_code} requested by {endpoint_id}")

        deleted = False
        confirmed = False
        try:
            deleted = await self.store.delete_room(room_code)
            confirmed = True
            if not deleted:
                logger.info(f"Room {room_code} was already gone")
        except Exception as e:
            logger.exception(f"Error closing room {room_code}: {e}")

        # Snapshot of the group at the moment of closure
        recipients = self.registry.evict_group(room_code)
        for recipient in recipients:
            await self._deliver(recipient, ServerEvent.ROOM_CLOSED, {})
            await self._leave_group(recipient, room_code)

        if confirmed and (deleted or self.room_state(room_code) == RoomState.ACTIVE):
            self._transition(room_code, RoomState.CLOSED)

        logger.info(f"Room {room_code} closed and {len(recipients)} clients disconnected")
        return recipients

    # ==================== HELPERS ====================

    async def _resolve_participant(
        self,
        room: RoomRecord | None,
        room_code: str,
        user_name: str | None,
        participant_id: str | None,
    ) -> ParticipantRecord:
        """Raises ParticipantNotFoundError unless the participant is a member of the live room."""
        if participant_id:
            participant = await self.store.get_participant(participant_id)
        elif user_name:
            # Most recent join wins; older same-name records belong to earlier lifetimes
            participant = await self.store.find_participant(user_name, room_code)
        else:
            participant = None

        if room is None or participant is None or participant.participant_id not in room.members:
            raise ParticipantNotFoundError(room_code, name=user_name, participant_id=participant_id)
        return participant

    async def _discard_participant(self, participant: ParticipantRecord) -> None:
        try:
            await self.store.delete_participant(participant.participant_id)
        except Exception as e:
            logger.exception(f"Error discarding participant {participant.participant_id}: {e}")

    def _resolve_host(self, room: RoomRecord) -> str:
        host = self.registry.resolve_host(room.room_code)
        if host is None:
            raise HostUnreachableError(room.room_code, room.host_endpoint_id)
        if host != room.host_endpoint_id:
            logger.warning(
                f"Room {room.room_code} host mismatch: registry={host} "
                f"store={room.host_endpoint_id}"
            )
        return host

    async def _notify_host(self, room: RoomRecord, event: ServerEvent, payload: dict) -> bool:
        try:
            host = self._resolve_host(room)
        except HostUnreachableError as e:
            logger.warning(f"Not sending {event}: {e.errmesg}")
            return False

        delivered = await self._deliver(host, event, payload)
        if delivered:
            logger.info(f"{event} emitted to host {host} for room {room.room_code}")
        return delivered

    async def send_room_error(self, endpoint_id: str, message: str) -> None:
        await self._deliver(endpoint_id, ServerEvent.ROOM_ERROR, {"message": message})

    async def _deliver(self, endpoint_id: str, event: ServerEvent, payload: Any) -> bool:
        """Best-effort delivery; a stale endpoint is not an error for the caller."""
        try:
            await self.transport.emit(str(event), payload, to=endpoint_id)
            return True
        except Exception as e:
            logger.warning(f"Failed to deliver {event} to {endpoint_id}: {e}")
            return False

    async def _enter_group(self, endpoint_id: str, room_code: str) -> None:
        try:
            await self.transport.enter_group(endpoint_id, room_code)
        except Exception as e:
            logger.warning(f"Failed to add {endpoint_id} to group {room_code}: {e}")

    async def _leave_group(self, endpoint_id: str, room_code: str) -> None:
        try:
            await self.transport.leave_group(endpoint_id, room_code)
        except Exception as e:
            logger.warning(f"Failed to remove {endpoint_id} from group {room_code}: {e}")
