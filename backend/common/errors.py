"""
Error kinds shared by the service layer and the HTTP surface.

Services never raise business-rule failures. They return a
`(value, failure)` tuple where exactly one side is set, and the routes
turn a failure into a JSON response with `error_response()`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from flask import jsonify, Response


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONFLICT = "CONFLICT"
    SELF_REGISTRATION = "SELF_REGISTRATION"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_REGISTERED = "NOT_REGISTERED"
    EVENT_PAST = "EVENT_PAST"
    CREDENTIAL_INVALID = "CREDENTIAL_INVALID"
    INTERNAL = "INTERNAL"


STATUS_CODES = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SELF_REGISTRATION: 400,
    ErrorKind.ALREADY_REGISTERED: 409,
    ErrorKind.NOT_REGISTERED: 400,
    ErrorKind.EVENT_PAST: 400,
    ErrorKind.CREDENTIAL_INVALID: 401,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Failure:
    """
    A typed business outcome that is not a success.

    Attributes:
        kind (ErrorKind): Stable, machine-readable failure kind.
        message (str): Human-readable summary.
        errors (list): Field-level messages (VALIDATION_FAILED only).
    """
    kind: ErrorKind
    message: str
    errors: List[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


def internal_failure() -> Failure:
    # Storage details stay in the logs.
    return Failure(ErrorKind.INTERNAL, "Internal server error")


def error_response(failure: Failure) -> Tuple[Response, int]:
    """
    Build the JSON error envelope for a failure.

    Returns:
        tuple: (Response, status_code)
    """
    body = {
        "success": False,
        "error": failure.kind.value,
        "message": failure.message,
    }
    if failure.errors:
        body["errors"] = list(failure.errors)
    return jsonify(body), failure.status_code
