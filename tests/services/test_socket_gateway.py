"""Tests for SocketGateway payload decoding and dispatch."""

from unittest.mock import MagicMock

import pytest

from examroom.domain.rooms.coordinator import SessionCoordinator
from examroom.domain.rooms.memory_store import MemoryIncidentStore, MemoryRoomStore
from examroom.domain.rooms.registry import ConnectionRegistry
from examroom.services.socket_gateway import SocketGateway, create_socket_server
from tests.fixtures.room_fixtures import RecordingTransport


@pytest.fixture
def gateway(coordinator: SessionCoordinator) -> SocketGateway:
    return SocketGateway(coordinator)


async def start_room(gateway: SocketGateway, host: str = "host", room_code: str = "ABCDE"):
    await gateway.on_connect(host, {})
    await gateway.on_create_room(host, {"roomCode": room_code})


class TestRegister:
    def test_registers_every_client_event(self, gateway: SocketGateway):
        sio = MagicMock()

        gateway.register(sio)

        events = {call.args[0] for call in sio.on.call_args_list}
        assert events == {
            "connect",
            "disconnect",
            "create_room",
            "join_room",
            "cheating_detected",
            "camera_blocked",
            "close_room",
        }

    def test_create_socket_server_is_asgi(self):
        sio = create_socket_server(["http://localhost:5173"])

        assert sio.async_mode == "asgi"


class TestConnect:
    async def test_connect_and_disconnect(self, gateway: SocketGateway, registry: ConnectionRegistry):
        await gateway.on_connect("sid-1", {})
        assert registry.is_registered("sid-1")

        await gateway.on_disconnect("sid-1")
        assert not registry.is_registered("sid-1")


class TestCreateRoom:
    async def test_create_room(self, gateway: SocketGateway, room_store: MemoryRoomStore):
        await start_room(gateway)

        room = await room_store.find_room("ABCDE")
        assert room is not None
        assert room.host_endpoint_id == "host"

    async def test_room_code_is_trimmed(self, gateway: SocketGateway, room_store: MemoryRoomStore):
        await start_room(gateway, room_code="  ABCDE ")

        assert await room_store.find_room("ABCDE") is not None

    @pytest.mark.parametrize("data", [None, {}, {"roomCode": ""}, {"roomCode": "   "}, "ABCDE"])
    async def test_malformed_payload_is_dropped(
        self,
        gateway: SocketGateway,
        registry: ConnectionRegistry,
        transport: RecordingTransport,
        data,
    ):
        await gateway.on_connect("host", {})

        await gateway.on_create_room("host", data)

        assert registry.get_binding("host").room_code is None  # type: ignore[union-attr]
        assert transport.sent == []


class TestJoinRoom:
    async def test_join_acknowledges_participant_id(
        self,
        gateway: SocketGateway,
        room_store: MemoryRoomStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)
        await gateway.on_connect("alice", {})

        ack = await gateway.on_join_room("alice", {"roomCode": "ABCDE", "userName": "Alice"})

        assert ack is not None
        participant = await room_store.find_participant("Alice", "ABCDE")
        assert participant is not None
        assert ack == {"participantId": participant.participant_id}
        assert transport.events_for("host") == [("student_joined", {"userName": "Alice"})]

    async def test_join_missing_room_acks_nothing(
        self,
        gateway: SocketGateway,
        transport: RecordingTransport,
    ):
        ack = await gateway.on_join_room("alice", {"roomCode": "NOPE", "userName": "Alice"})

        assert ack is None
        assert transport.sent == [("alice", "room_error", {"message": "Room not found: NOPE"})]

    async def test_join_without_user_name_sends_room_error(
        self,
        gateway: SocketGateway,
        transport: RecordingTransport,
    ):
        await start_room(gateway)

        ack = await gateway.on_join_room("alice", {"roomCode": "ABCDE"})

        assert ack is None
        assert transport.sent == [
            ("alice", "room_error", {"message": "roomCode and userName are required"})
        ]


class TestDetections:
    async def test_cheating_detected_relays_to_host(
        self,
        gateway: SocketGateway,
        incident_store: MemoryIncidentStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)
        await gateway.on_join_room("alice", {"roomCode": "ABCDE", "userName": "Alice"})
        transport.clear()

        await gateway.on_cheating_detected("alice", {"roomCode": "ABCDE", "userName": "Alice"})

        assert len(await incident_store.list_for_room("ABCDE")) == 1
        [(to, event, payload)] = transport.sent
        assert (to, event) == ("host", "cheating_log")
        assert payload["logMessage"].endswith("Cheating detected for student: Alice")

    async def test_camera_blocked_with_participant_id(
        self,
        gateway: SocketGateway,
        incident_store: MemoryIncidentStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)
        ack = await gateway.on_join_room("alice", {"roomCode": "ABCDE", "userName": "Alice"})
        assert ack is not None
        transport.clear()

        await gateway.on_camera_blocked(
            "alice",
            {"roomCode": "ABCDE", "userName": "Alice", "participantId": ack["participantId"]},
        )

        incidents = await incident_store.list_for_room("ABCDE")
        assert [x.participant_id for x in incidents] == [ack["participantId"]]
        assert transport.sent[0][1] == "camera_blocked_log"

    async def test_detection_with_only_participant_id(
        self,
        gateway: SocketGateway,
        incident_store: MemoryIncidentStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)
        ack = await gateway.on_join_room("alice", {"roomCode": "ABCDE", "userName": "Alice"})
        assert ack is not None
        transport.clear()

        await gateway.on_cheating_detected(
            "alice", {"roomCode": "ABCDE", "participantId": ack["participantId"]}
        )

        incidents = await incident_store.list_for_room("ABCDE")
        assert [x.participant_id for x in incidents] == [ack["participantId"]]
        assert [event for _, event, _ in transport.sent] == ["cheating_log"]

    async def test_detection_without_identity_is_dropped(
        self,
        gateway: SocketGateway,
        incident_store: MemoryIncidentStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)

        await gateway.on_cheating_detected("alice", {"roomCode": "ABCDE"})

        assert await incident_store.list_for_room("ABCDE") == []
        assert transport.sent == []


class TestCloseRoom:
    async def test_close_room(
        self,
        gateway: SocketGateway,
        room_store: MemoryRoomStore,
        transport: RecordingTransport,
    ):
        await start_room(gateway)
        await gateway.on_join_room("alice", {"roomCode": "ABCDE", "userName": "Alice"})

        await gateway.on_close_room("host", {"roomCode": "ABCDE"})

        assert await room_store.find_room("ABCDE") is None
        assert ("room_closed", {}) in transport.events_for("alice")
