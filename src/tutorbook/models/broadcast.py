"""
Telegram broadcast models.
"""

from typing import List, Literal, Optional, TypedDict


BroadcastStatus = Literal["pending", "in_progress", "completed", "failed", "cancelled"]

MIN_LIST_NAME_LENGTH = 3
MAX_MESSAGE_LENGTH = 4096


class BroadcastList(TypedDict, total=False):
    """Named group of users that receive a broadcast."""

    id: str
    name: str
    description: Optional[str]
    user_ids: List[str]
    created_by: str


class Broadcast(TypedDict, total=False):
    """A message sent to a broadcast list."""

    id: str
    list_id: Optional[str]
    message: str
    sent_count: int
    failed_count: int
    status: BroadcastStatus
    created_by: str
    created_at: str
    completed_at: Optional[str]


class TelegramUser(TypedDict, total=False):
    """Platform user linked to a Telegram chat."""

    id: str
    user_id: str
    telegram_id: int
    chat_id: int
    username: Optional[str]
    subscribed: bool


class LinkToken(TypedDict):
    """Response of ``GET /telegram/link-token``."""

    token: str
    bot_username: str
