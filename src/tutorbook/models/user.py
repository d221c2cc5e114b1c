"""
User data models.
"""

from enum import Enum
from typing import Optional, TypedDict


class UserRole(Enum):
    """Platform roles. Methodologists are the teaching staff."""

    STUDENT = "student"
    METHODOLOGIST = "methodologist"
    TEACHER = "teacher"
    ADMIN = "admin"


class UserData(TypedDict, total=False):
    """User as returned by ``GET /users``."""

    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: str
    payment_enabled: bool
    telegram_username: Optional[str]
    parent_telegram_username: Optional[str]
    telegram_linked: bool


class PaginationMeta(TypedDict):
    """Pagination metadata attached to list responses."""

    page: int
    per_page: int
    total: int
    total_pages: int
