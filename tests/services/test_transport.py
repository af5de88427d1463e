"""Tests for SocketIOTransport."""

from unittest.mock import AsyncMock

from examroom.services.transport import SocketIOTransport


class TestSocketIOTransport:
    async def test_emit_targets_single_endpoint(self):
        sio = AsyncMock()
        transport = SocketIOTransport(sio)

        await transport.emit("student_joined", {"userName": "Alice"}, to="host")

        sio.emit.assert_awaited_once_with("student_joined", {"userName": "Alice"}, to="host", namespace="/")

    async def test_group_membership(self):
        sio = AsyncMock()
        transport = SocketIOTransport(sio, namespace="/exam")

        await transport.enter_group("alice", "ABCDE")
        await transport.leave_group("alice", "ABCDE")

        sio.enter_room.assert_awaited_once_with("alice", "ABCDE", namespace="/exam")
        sio.leave_room.assert_awaited_once_with("alice", "ABCDE", namespace="/exam")
