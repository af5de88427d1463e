import time
import traceback
import uuid
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from examroom.api.errors import app_error_handler, validation_exception_handler
from examroom.app_config import get_app_environ_config
from examroom.domain.rooms.room_domain import build_coordinator
from examroom.schemas.init_schemas import init_schema
from examroom.services.socket_gateway import SocketGateway, create_socket_server
from examroom.services.transport import SocketIOTransport
from examroom.shared.api.utils import api_failure, init_logger, load_routes
from examroom.shared.storage.mongo import get_mongo_manager
from examroom.utils.app_errors import AppError, AppErrorCode

app_config = get_app_environ_config()


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    if app_config.use_memory_store:
        logger.warning("Using in-memory room store; rooms and incidents are lost on restart")
    else:
        # Initialize MongoDB schemas and Beanie ODM
        await init_schema()

    load_routes(server, "/api/v1")

    yield

    logger.info("Application shutdown...")

    if not app_config.use_memory_store:
        get_mongo_manager().close_all()


app = FastAPI(
    version="1.0",
    title="Exam Room API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=app_config.API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore

# One coordinator per process, shared by the socket gateway and the HTTP routers
sio = create_socket_server(app_config.API_CORS_ORIGINS)
coordinator = build_coordinator(
    SocketIOTransport(sio),
    use_memory_store=app_config.use_memory_store,
)
SocketGateway(coordinator).register(sio)
app.state.coordinator = coordinator

asgi_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path=app_config.SOCKETIO_PATH)


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": app_config.API_HOST,
        "port": app_config.API_PORT,
        "workers": app_config.API_WORKERS,
        "reload": app_config.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("examroom.main:asgi_app", **granian_kwargs).serve()
