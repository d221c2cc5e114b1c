"""
API error types.

Every HTTP failure surfaces as APIError; cancelled requests raise
RequestCancelledError, which callers swallow instead of reporting.
"""

import json
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Error codes returned by the backend in ``error.code``."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CSRF = "INVALID_CSRF"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELD = "MISSING_FIELD"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    LESSON_FULL = "LESSON_FULL"
    BOOKING_TOO_LATE = "BOOKING_TOO_LATE"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    CANNOT_CANCEL = "CANNOT_CANCEL"
    INVALID_SWAP = "INVALID_SWAP"
    LESSON_PREVIOUSLY_CANCELLED = "LESSON_PREVIOUSLY_CANCELLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    STUDENT_ALREADY_BOOKED = "STUDENT_ALREADY_BOOKED"


NETWORK_ERROR_CODE = "NETWORK_ERROR"


def extract_error_message(data: Any, status: int) -> str:
    """
    Pick the most specific message from an error body.

    Precedence: ``errors[0]``, ``error.message``, ``message``, ``error``
    (JSON-dumped unless already a string), then ``HTTP {status}``.

    Examples:
        >>> extract_error_message({"error": {"code": "LESSON_FULL", "message": "Lesson is full"}}, 409)
        'Lesson is full'
        >>> extract_error_message(None, 502)
        'HTTP 502'
    """
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return str(errors[0])

        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])

        if data.get("message"):
            return str(data["message"])

        if error:
            return error if isinstance(error, str) else json.dumps(error, ensure_ascii=False)

    return f"HTTP {status}"


def extract_error_code(data: Any) -> Optional[str]:
    """Read ``error.code`` (or the flat ``error_code``) from an error body."""
    if not isinstance(data, dict):
        return None

    error = data.get("error")
    if isinstance(error, dict) and error.get("code"):
        return str(error["code"])

    if data.get("error_code"):
        return str(data["error_code"])

    return None


class APIError(Exception):
    """
    HTTP or network failure talking to the API.

    Attributes:
        message: Message extracted from the response body
        status: HTTP status, or 0 for network failures
        data: Parsed response body, if any
        code: Backend error code (``error.code``), or NETWORK_ERROR
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        data: Any = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data
        self.code = code or extract_error_code(data)

    def has_code(self, code: ErrorCode) -> bool:
        return self.code == code.value

    def __repr__(self) -> str:
        return f"APIError(status={self.status}, code={self.code!r}, message={self.message!r})"


class RequestCancelledError(Exception):
    """Raised when a request is cancelled through its CancelToken."""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message)
