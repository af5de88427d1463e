"""Application wiring tests against the in-memory store backend."""

import socketio
from fastapi.testclient import TestClient

from examroom.domain.rooms.memory_store import MemoryRoomStore
from examroom.main import app, asgi_app, build_granian_kwargs, coordinator


class TestAppWiring:
    def test_asgi_app_wraps_fastapi(self):
        assert isinstance(asgi_app, socketio.ASGIApp)
        assert app.state.coordinator is coordinator
        assert isinstance(coordinator.store, MemoryRoomStore)

    def test_granian_kwargs(self):
        kwargs = build_granian_kwargs()

        assert kwargs["interface"] == "asgi"
        assert kwargs["port"] == 3001

    async def test_rooms_endpoint_reads_shared_coordinator(self):
        coordinator.connect("host-main")
        await coordinator.create_room("host-main", "MAIN1")

        with TestClient(app) as client:
            health = client.get("/health")
            found = client.get("/api/v1/rooms/MAIN1")
            missing = client.get("/api/v1/rooms/MISSING")

        assert health.status_code == 200
        assert found.status_code == 200
        assert found.json()["results"]["host_connected"] is True
        assert missing.status_code == 404
        assert missing.json()["errcode"] == "E_ROOM_NOT_FOUND"

        await coordinator.close_room("host-main", "MAIN1")
