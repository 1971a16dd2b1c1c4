"""
Per-application collaborators reached from request handlers.

`create_app()` stores the repository and the clock in `app.extensions`;
handlers use the accessors below instead of module-level globals.
"""

from datetime import date, datetime, timezone
from typing import Any, Callable

from flask import current_app

REPOSITORY_KEY = "event_repository"
CLOCK_KEY = "clock"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_repository():
    return current_app.extensions[REPOSITORY_KEY]


def current_time() -> datetime:
    clock: Callable[[], datetime] = current_app.extensions.get(CLOCK_KEY, utc_now)
    return clock()


def to_json(value: Any) -> Any:
    """
    Convert datetimes (at any depth) to ISO-8601 strings for jsonify.
    """
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value
