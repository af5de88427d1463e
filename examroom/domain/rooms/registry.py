"""Connection registry: live channel endpoints and their room bindings."""

from collections.abc import MutableMapping

from loguru import logger

from examroom.domain.utils.idgen import utc_now
from examroom.utils.app_errors import AlreadyBoundError

from .room_models import EndpointBinding, EndpointRole


class ConnectionRegistry:
    """Maps each connected endpoint to its role and room.

    The backing map is injectable so the registry can be exercised without a live
    transport. A room's multicast group is every endpoint currently bound to it,
    host included. Purely in-memory; nothing here touches room or participant records.
    """

    def __init__(self, endpoints: MutableMapping[str, EndpointBinding] | None = None):
        self._endpoints: MutableMapping[str, EndpointBinding] = (
            endpoints if endpoints is not None else {}
        )

    def register_endpoint(self, endpoint_id: str) -> EndpointBinding:
        binding = EndpointBinding(endpoint_id=endpoint_id, connected_at=utc_now())
        self._endpoints[endpoint_id] = binding
        logger.debug("Registered endpoint {}", endpoint_id)
        return binding

    def unregister_endpoint(self, endpoint_id: str) -> EndpointBinding | None:
        """Remove every binding of the endpoint. Returns the binding it had, if any."""
        binding = self._endpoints.pop(endpoint_id, None)
        if binding is not None:
            logger.debug(
                "Unregistered endpoint {} (role={} room={})",
                endpoint_id,
                binding.role,
                binding.room_code,
            )
        return binding

    def is_registered(self, endpoint_id: str) -> bool:
        return endpoint_id in self._endpoints

    def get_binding(self, endpoint_id: str) -> EndpointBinding | None:
        return self._endpoints.get(endpoint_id)

    def snapshot(self, endpoint_id: str) -> EndpointBinding | None:
        binding = self._endpoints.get(endpoint_id)
        return binding.model_copy() if binding else None

    def restore(self, endpoint_id: str, previous: EndpointBinding | None) -> None:
        """Put back a binding taken with snapshot(), undoing a bind whose event failed."""
        if previous is None:
            self._endpoints.pop(endpoint_id, None)
        else:
            self._endpoints[endpoint_id] = previous

    def _ensure(self, endpoint_id: str) -> EndpointBinding:
        binding = self._endpoints.get(endpoint_id)
        if binding is None:
            # Events can arrive for an endpoint the transport never announced
            binding = self.register_endpoint(endpoint_id)
        return binding

    def bind_host(self, endpoint_id: str, room_code: str) -> EndpointBinding:
        """Bind the endpoint as host of room_code.

        Idempotent for the same room. Raises AlreadyBoundError when the endpoint
        already hosts a different room.
        """
        binding = self._ensure(endpoint_id)
        if binding.role == EndpointRole.HOST and binding.room_code not in (None, room_code):
            raise AlreadyBoundError(endpoint_id, binding.room_code, room_code)

        binding.role = EndpointRole.HOST
        binding.room_code = room_code
        return binding

    def bind_member(self, endpoint_id: str, room_code: str) -> EndpointBinding:
        """Attach a participant endpoint to the room's multicast group.

        A participant endpoint moving to another room leaves its previous group.
        The host of the same room keeps its host binding.
        """
        binding = self._ensure(endpoint_id)
        if binding.role == EndpointRole.HOST:
            if binding.room_code == room_code:
                return binding
            raise AlreadyBoundError(endpoint_id, binding.room_code, room_code)

        binding.role = EndpointRole.PARTICIPANT
        binding.room_code = room_code
        return binding

    def resolve_host(self, room_code: str) -> str | None:
        for endpoint_id, binding in self._endpoints.items():
            if binding.role == EndpointRole.HOST and binding.room_code == room_code:
                return endpoint_id
        return None

    def group_members(self, room_code: str) -> list[str]:
        return [
            endpoint_id
            for endpoint_id, binding in self._endpoints.items()
            if binding.room_code == room_code
        ]

    def evict_group(self, room_code: str) -> list[str]:
        """Unbind every endpoint of the room, leaving them connected but unassigned."""
        evicted = self.group_members(room_code)
        for endpoint_id in evicted:
            binding = self._endpoints[endpoint_id]
            binding.role = EndpointRole.NONE
            binding.room_code = None
        return evicted

    def __len__(self) -> int:
        return len(self._endpoints)
