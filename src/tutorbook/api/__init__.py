"""
Booking platform API module.

This module provides the shared HTTP client, its error types and one
resource class per backend area.

Usage:
    >>> from tutorbook.api import ApiClient, LessonsAPI, BookingsAPI
    >>> from tutorbook.utils.config import config
    >>>
    >>> client = ApiClient(config.api_url, session_cookie=config.session_cookie)
    >>> lessons = LessonsAPI(client).get_lessons(available=True)
    >>> BookingsAPI(client).create_booking(lessons[0]["id"])
"""

from .bookings import BookingsAPI
from .broadcasts import BroadcastsAPI
from .client import ApiClient, CancelToken
from .credits import CreditsAPI
from .errors import APIError, ErrorCode, RequestCancelledError
from .homework import HomeworkAPI
from .lessons import LessonsAPI
from .payments import PaymentsAPI
from .session import SessionManager, SessionState
from .telegram import TelegramAPI
from .templates import TemplatesAPI
from .users import UsersAPI

__all__ = [
    "ApiClient",
    "CancelToken",
    "APIError",
    "ErrorCode",
    "RequestCancelledError",
    "SessionManager",
    "SessionState",
    "UsersAPI",
    "LessonsAPI",
    "BookingsAPI",
    "CreditsAPI",
    "TemplatesAPI",
    "TelegramAPI",
    "BroadcastsAPI",
    "HomeworkAPI",
    "PaymentsAPI",
]
