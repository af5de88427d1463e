"""Channel transport: event delivery to endpoints and room groups."""

from abc import ABC, abstractmethod
from typing import Any

import socketio
from loguru import logger


class ChannelTransport(ABC):
    """Bidirectional event substrate. Rooms are multicast groups of endpoints."""

    @abstractmethod
    async def emit(self, event: str, data: Any, to: str) -> None:
        """Deliver one event to one endpoint. Unknown endpoints are a no-op."""

    @abstractmethod
    async def enter_group(self, endpoint_id: str, room_code: str) -> None: ...

    @abstractmethod
    async def leave_group(self, endpoint_id: str, room_code: str) -> None: ...


class SocketIOTransport(ChannelTransport):
    """ChannelTransport over a python-socketio AsyncServer (default namespace)."""

    def __init__(self, sio: socketio.AsyncServer, namespace: str = "/"):
        self.sio = sio
        self.namespace = namespace

    async def emit(self, event: str, data: Any, to: str) -> None:
        logger.debug("emit {} to {}: {}", event, to, data)
        await self.sio.emit(str(event), data, to=to, namespace=self.namespace)

    async def enter_group(self, endpoint_id: str, room_code: str) -> None:
        await self.sio.enter_room(endpoint_id, room_code, namespace=self.namespace)

    async def leave_group(self, endpoint_id: str, room_code: str) -> None:
        await self.sio.leave_room(endpoint_id, room_code, namespace=self.namespace)
