"""Tests for the shared API envelope helpers and health route."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from examroom.api.errors import app_error_handler
from examroom.domain.rooms.room_domain import build_coordinator
from examroom.shared.api.health import router as health_router
from examroom.shared.api.utils import (
    E_INTERNAL,
    ApiFailure,
    ApiSuccess,
    api_failure,
    load_routes,
    make_response,
)
from examroom.utils.app_errors import AppError
from tests.fixtures.room_fixtures import RecordingTransport


class TestEnvelope:
    def test_success_defaults(self):
        result = ApiSuccess()

        assert result.success is True
        assert result.results == "OK"

    def test_api_failure_from_exception(self):
        failure = api_failure(errmesg=ValueError("boom"))

        assert failure.success is False
        assert failure.errcode == E_INTERNAL
        assert "ValueError: boom" in failure.errmesg

    def test_make_response_status_codes(self):
        assert make_response(ApiSuccess()).status_code == 200
        assert make_response(ApiFailure()).status_code == 500
        assert make_response(ApiFailure(errcode="E_ROOM_NOT_FOUND")).status_code == 400
        assert make_response(RuntimeError("x")).status_code == 500


class TestHealth:
    def test_health(self):
        app = FastAPI()
        app.include_router(health_router)

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["results"] == "OK"


class TestLoadRoutes:
    def test_load_routes_registers_health_and_rooms(self):
        """Routes are checked by serving requests, independent of how FastAPI stores them."""
        app = FastAPI()
        app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
        app.state.coordinator = build_coordinator(RecordingTransport(), use_memory_store=True)

        load_routes(app, "/api/v1")
        client = TestClient(app)

        assert client.get("/health").status_code == 200
        room = client.get("/api/v1/rooms/NOPE")
        assert room.status_code == 404
        assert room.json()["errcode"] == "E_ROOM_NOT_FOUND"
        incidents = client.get("/api/v1/rooms/NOPE/incidents")
        assert incidents.status_code == 200
        assert incidents.json()["results"]["incidents"] == []
