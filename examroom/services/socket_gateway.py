"""Socket.IO gateway: decodes client events and dispatches them to the coordinator."""

from typing import Any

import socketio
from loguru import logger
from pydantic import BaseModel, ValidationError

from examroom.domain.rooms.coordinator import SessionCoordinator
from examroom.domain.rooms.room_models import (
    ClientEvent,
    CloseRoomPayload,
    CreateRoomPayload,
    DetectionPayload,
    JoinRoomPayload,
)


def create_socket_server(cors_origins: list[str] | str = "*") -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
    )


class SocketGateway:
    """One handler per client event; each event is an independent unit of work.

    Handlers never raise into the transport: malformed payloads are logged and
    dropped, except join_room which answers with room_error.
    """

    def __init__(self, coordinator: SessionCoordinator):
        self.coordinator = coordinator

    def register(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        sio.on("connect", self.on_connect, namespace=namespace)
        sio.on("disconnect", self.on_disconnect, namespace=namespace)
        sio.on(str(ClientEvent.CREATE_ROOM), self.on_create_room, namespace=namespace)
        sio.on(str(ClientEvent.JOIN_ROOM), self.on_join_room, namespace=namespace)
        sio.on(str(ClientEvent.CHEATING_DETECTED), self.on_cheating_detected, namespace=namespace)
        sio.on(str(ClientEvent.CAMERA_BLOCKED), self.on_camera_blocked, namespace=namespace)
        sio.on(str(ClientEvent.CLOSE_ROOM), self.on_close_room, namespace=namespace)
        logger.info("Registered socket handlers on namespace {}", namespace)

    @staticmethod
    def _parse(model: type[BaseModel], event: ClientEvent, sid: str, data: Any):
        try:
            return model.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            logger.warning("Invalid {} payload from {}: {}", event, sid, e.errors())
            return None

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        self.coordinator.connect(sid)

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        self.coordinator.disconnect(sid)

    async def on_create_room(self, sid: str, data: Any = None) -> None:
        payload = self._parse(CreateRoomPayload, ClientEvent.CREATE_ROOM, sid, data)
        if payload is None:
            return
        await self.coordinator.create_room(sid, payload.room_code)

    async def on_join_room(self, sid: str, data: Any = None) -> dict | None:
        """Returns the join acknowledgement carrying the minted participant id."""
        payload = self._parse(JoinRoomPayload, ClientEvent.JOIN_ROOM, sid, data)
        if payload is None:
            await self.coordinator.send_room_error(sid, "roomCode and userName are required")
            return None

        participant = await self.coordinator.join_room(sid, payload.room_code, payload.user_name)
        if participant is None:
            return None
        return {"participantId": participant.participant_id}

    async def on_cheating_detected(self, sid: str, data: Any = None) -> None:
        payload = self._parse(DetectionPayload, ClientEvent.CHEATING_DETECTED, sid, data)
        if payload is None:
            return
        await self.coordinator.cheating_detected(
            sid, payload.room_code, payload.user_name, payload.participant_id
        )

    async def on_camera_blocked(self, sid: str, data: Any = None) -> None:
        payload = self._parse(DetectionPayload, ClientEvent.CAMERA_BLOCKED, sid, data)
        if payload is None:
            return
        await self.coordinator.camera_blocked(
            sid, payload.room_code, payload.user_name, payload.participant_id
        )

    async def on_close_room(self, sid: str, data: Any = None) -> None:
        payload = self._parse(CloseRoomPayload, ClientEvent.CLOSE_ROOM, sid, data)
        if payload is None:
            return
        await self.coordinator.close_room(sid, payload.room_code)
