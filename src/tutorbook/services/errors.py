"""
Error categorization for display.

Turns APIError (or any exception) into a short technical message plus
a message meant for the user, and picks the right text for error
codes that have a dedicated wording.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..api.errors import ErrorCode, NETWORK_ERROR_CODE


NETWORK_ERROR_PATTERNS = (
    "network",
    "timeout",
    "econnrefused",
    "econnreset",
    "enotfound",
    "socket hang up",
)


class ErrorCategory(Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    CLIENT_ERROR = "client_error"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """
    Categorized error.

    Attributes:
        category: Broad class of the failure
        message: Short technical description
        user_message: Text to show the user; may be None
    """

    category: ErrorCategory
    message: str
    user_message: Optional[str] = None

    def display_message(self) -> str:
        """user_message, falling back to message."""
        return self.user_message or self.message


def _status_of(error: Exception) -> int:
    status = getattr(error, "status", None)
    return status if isinstance(status, int) else 0


def _message_of(error: Exception) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    return str(error)


def categorize_error(error: Optional[Exception]) -> ErrorInfo:
    """
    Categorize an error for display.

    Order: 401, 403, >= 500, network (NETWORK_ERROR code or "network"
    in the message), other 4xx, unknown.

    Examples:
        >>> from tutorbook.api.errors import APIError
        >>> categorize_error(APIError("HTTP 502", 502)).category
        <ErrorCategory.SERVER_ERROR: 'server_error'>
        >>> categorize_error(None).message
        'Unknown error'
    """
    if error is None:
        return ErrorInfo(ErrorCategory.UNKNOWN, "Unknown error")

    status = _status_of(error)
    message = _message_of(error)

    if status == 401:
        return ErrorInfo(ErrorCategory.UNAUTHORIZED, "Re-login required",
                         "Your session has expired. Please sign in again.")

    if status == 403:
        return ErrorInfo(ErrorCategory.FORBIDDEN, "Access denied",
                         "You do not have permission to access this resource.")

    if status >= 500:
        return ErrorInfo(ErrorCategory.SERVER_ERROR, f"Server error ({status})",
                         "The server is temporarily unavailable. Please try later.")

    if getattr(error, "code", None) == NETWORK_ERROR_CODE or "network" in message.lower():
        return ErrorInfo(ErrorCategory.NETWORK_ERROR, "Network error",
                         "Connection problem. Retrying automatically.")

    if 400 <= status < 500:
        return ErrorInfo(ErrorCategory.CLIENT_ERROR, f"Request error ({status})",
                         "Invalid request. Please try later.")

    return ErrorInfo(ErrorCategory.UNKNOWN, message or "Unknown error",
                     "An error occurred while loading data. Please try later.")


def is_network_error(error: Optional[Exception]) -> bool:
    """
    Whether an error looks like a transport failure worth retrying.

    Business errors (validation, conflicts, insufficient credits) never
    match.
    """
    if error is None:
        return False

    message = _message_of(error).lower()
    code = str(getattr(error, "code", None) or "").lower()

    return any(pattern in message or pattern in code for pattern in NETWORK_ERROR_PATTERNS)


ADD_STUDENT_MESSAGES = {
    ErrorCode.LESSON_FULL.value: "No free seats in the lesson",
    ErrorCode.INSUFFICIENT_CREDITS.value: "Student has insufficient credits",
    ErrorCode.STUDENT_ALREADY_BOOKED.value: "Student is already registered for this lesson",
    ErrorCode.CONFLICT.value: "Student is already booked on this lesson",
}

DEFAULT_ADD_STUDENT_MESSAGE = "Failed to add student"


def add_student_error_message(error: Exception) -> str:
    """
    Message for a failed "add student to lesson".

    Known codes get a dedicated text; otherwise the error's own message,
    otherwise a default.
    """
    code = getattr(error, "code", None)
    if code in ADD_STUDENT_MESSAGES:
        return ADD_STUDENT_MESSAGES[code]
    return _message_of(error) or DEFAULT_ADD_STUDENT_MESSAGE
