from datetime import datetime, timezone

from ulid import ULID

utc_now = lambda: datetime.now(timezone.utc)  # noqa: E731


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_participant_id() -> str:
    return new_ulid("pa_")


def new_incident_id() -> str:
    return new_ulid("in_")
