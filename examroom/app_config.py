from pydantic import BaseModel

from examroom.shared.config import config


def _split_origins(value: str) -> list[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG", False)

    API_HOST: str = (config.get("API_HOST") or "0.0.0.0").strip()
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 3001)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    # Comma separated; the exam web client runs on the Vite dev server by default
    API_CORS_ORIGINS: list[str] = _split_origins(
        config.get("API_CORS_ORIGINS") or "http://localhost:5173"
    )

    # Room store backend: "mongo" or "memory"
    ROOM_STORE_BACKEND: str = (config.get("ROOM_STORE_BACKEND") or "mongo").strip().lower()
    MONGO_LABEL: str = (config.get("MONGO_LABEL") or "exam_primary").strip()

    # Socket.IO endpoint mount path
    SOCKETIO_PATH: str = (config.get("SOCKETIO_PATH") or "socket.io").strip().strip("/")

    @property
    def use_memory_store(self) -> bool:
        return self.ROOM_STORE_BACKEND == "memory"


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
