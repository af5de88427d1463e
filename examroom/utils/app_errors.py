"""Application error types shared by the domain, socket and HTTP layers."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_DUPLICATE_ROOM = "E_DUPLICATE_ROOM"
    E_ROOM_NOT_FOUND = "E_ROOM_NOT_FOUND"
    E_PARTICIPANT_NOT_FOUND = "E_PARTICIPANT_NOT_FOUND"
    E_HOST_UNREACHABLE = "E_HOST_UNREACHABLE"
    E_ALREADY_BOUND = "E_ALREADY_BOUND"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """Error carrying an error code, a message and the HTTP status to render it with.

    The caller location is captured at construction so handlers can log where the
    error was raised from.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: int = HttpStatusCode.INTERNAL_SERVER_ERROR,
    ):
        super().__init__(errmesg)
        self.errcode = str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.caller_info = self._get_caller_info()

    @staticmethod
    def _get_caller_info() -> str:
        frame = inspect.currentframe()
        # Skip __init__ frames of AppError and its subclasses
        while frame is not None and frame.f_code.co_name in {"__init__", "_get_caller_info"}:
            frame = frame.f_back
        if frame is None:
            return "unknown"
        module_name = frame.f_globals.get("__name__", frame.f_code.co_filename)
        return f"{module_name}:{frame.f_code.co_name}:{frame.f_lineno}"

    def __str__(self) -> str:
        return f"{self.errcode}: {self.errmesg}"


class DuplicateRoomError(AppError):
    def __init__(self, room_code: str):
        super().__init__(
            errcode=AppErrorCode.E_DUPLICATE_ROOM,
            errmesg=f"Room already exists: {room_code}",
            status_code=HttpStatusCode.CONFLICT,
        )
        self.room_code = room_code


class RoomNotFoundError(AppError):
    def __init__(self, room_code: str):
        super().__init__(
            errcode=AppErrorCode.E_ROOM_NOT_FOUND,
            errmesg=f"Room not found: {room_code}",
            status_code=HttpStatusCode.NOT_FOUND,
        )
        self.room_code = room_code


class ParticipantNotFoundError(AppError):
    def __init__(self, room_code: str, name: str | None = None, participant_id: str | None = None):
        who = participant_id or name
        super().__init__(
            errcode=AppErrorCode.E_PARTICIPANT_NOT_FOUND,
            errmesg=f"Participant not found: {who} in room {room_code}",
            status_code=HttpStatusCode.NOT_FOUND,
        )
        self.room_code = room_code
        self.name = name
        self.participant_id = participant_id


class HostUnreachableError(AppError):
    """The room exists but its host endpoint is not connected. Never fatal."""

    def __init__(self, room_code: str, host_endpoint_id: str | None = None):
        super().__init__(
            errcode=AppErrorCode.E_HOST_UNREACHABLE,
            errmesg=f"Host unreachable for room {room_code} (endpoint={host_endpoint_id})",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )
        self.room_code = room_code
        self.host_endpoint_id = host_endpoint_id


class AlreadyBoundError(AppError):
    def __init__(self, endpoint_id: str, bound_room_code: str, requested_room_code: str):
        super().__init__(
            errcode=AppErrorCode.E_ALREADY_BOUND,
            errmesg=(
                f"Endpoint {endpoint_id} already hosts room {bound_room_code}, "
                f"cannot bind to {requested_room_code}"
            ),
            status_code=HttpStatusCode.CONFLICT,
        )
        self.endpoint_id = endpoint_id
        self.bound_room_code = bound_room_code
        self.requested_room_code = requested_room_code
