"""
User-facing notifications.

Services report outcomes (success, info, warning, error) here instead
of printing them. Every notification is also logged at the matching
level; the CLI prints them after each command.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


@dataclass
class Notification:
    """One message for the user."""

    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)


class NotificationCenter:
    """
    Collects notifications for display.

    Examples:
        >>> center = NotificationCenter()
        >>> center.success("Booking cancelled")
        >>> [n.message for n in center.drain()]
        ['Booking cancelled']
    """

    def __init__(self, listener: Optional[Callable[[Notification], None]] = None):
        """
        Args:
            listener: Called for every new notification (e.g. to print it)
        """
        self._lock = threading.Lock()
        self._items: List[Notification] = []
        self.listener = listener

    def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level, message)
        with self._lock:
            self._items.append(notification)

        logger.log(_LOG_LEVELS[level], f"[{level.value}] {message}")
        if self.listener is not None:
            self.listener(notification)
        return notification

    def success(self, message: str):
        self.notify(NotificationLevel.SUCCESS, message)

    def info(self, message: str):
        self.notify(NotificationLevel.INFO, message)

    def warning(self, message: str):
        self.notify(NotificationLevel.WARNING, message)

    def error(self, message: str):
        self.notify(NotificationLevel.ERROR, message)

    @property
    def items(self) -> List[Notification]:
        with self._lock:
            return list(self._items)

    def drain(self) -> List[Notification]:
        """Return all notifications and clear the queue."""
        with self._lock:
            items, self._items = self._items, []
        return items

    def clear(self):
        with self._lock:
            self._items.clear()
