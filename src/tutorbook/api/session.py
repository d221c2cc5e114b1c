"""
API session state.

Tracks the CSRF token issued by the backend and whether the session
cookie is still accepted. The token lives in memory only.
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Optional

from ..utils.logger import mask_token


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Session states."""

    UNKNOWN = "unknown"
    ACTIVE = "active"
    UNAUTHORIZED = "unauthorized"


class SessionManager:
    """
    Holds the CSRF token and session state for an ApiClient.

    State-changing requests (anything but GET/HEAD/OPTIONS) carry the
    token in the ``X-CSRF-Token`` header. The token is replaced whenever
    a response carries a new one, and dropped on 401.

    Examples:
        >>> session = SessionManager()
        >>> session.set_csrf_token("abc123")
        >>> session.csrf_header("POST")
        {'X-CSRF-Token': 'abc123'}
        >>> session.csrf_header("GET")
        {}
    """

    SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

    def __init__(self):
        self._lock = threading.Lock()
        self._csrf_token: Optional[str] = None
        self._state = SessionState.UNKNOWN
        self._last_activity: Optional[datetime] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_unauthorized(self) -> bool:
        return self._state == SessionState.UNAUTHORIZED

    @property
    def csrf_token(self) -> Optional[str]:
        return self._csrf_token

    @property
    def last_activity(self) -> Optional[datetime]:
        return self._last_activity

    def set_csrf_token(self, token: Optional[str]):
        """Store a new CSRF token. Empty values are ignored."""
        if not token:
            return
        with self._lock:
            self._csrf_token = token
        logger.debug(f"CSRF token updated: {mask_token(token)}")

    def clear_csrf_token(self):
        with self._lock:
            self._csrf_token = None

    def csrf_header(self, method: str) -> dict:
        """
        Header to attach for the given HTTP method.

        Returns:
            ``{"X-CSRF-Token": token}`` for state-changing methods when a
            token is known, otherwise an empty dict
        """
        token = self._csrf_token
        if token and method.upper() not in self.SAFE_METHODS:
            return {"X-CSRF-Token": token}
        return {}

    def mark_active(self):
        """Record a request the backend accepted."""
        with self._lock:
            self._state = SessionState.ACTIVE
            self._last_activity = datetime.now()

    def mark_unauthorized(self):
        """Record a 401: the session cookie is no longer accepted."""
        with self._lock:
            self._state = SessionState.UNAUTHORIZED
            self._csrf_token = None
        logger.warning("Session marked as unauthorized")
