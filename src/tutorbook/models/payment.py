"""
Payment and homework file models.
"""

from typing import Optional, TypedDict


PRICE_PER_CREDIT = 2800
MIN_CREDITS = 1
MAX_CREDITS = 100

MAX_HOMEWORK_FILE_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_HOMEWORK_MIME_TYPES = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
}


class PaymentData(TypedDict, total=False):
    """Payment created through ``POST /payments/create``."""

    id: str
    user_id: str
    amount: float
    credits: int
    status: str
    confirmation_url: str
    created_at: str


class HomeworkFile(TypedDict, total=False):
    """File attached to a lesson as homework."""

    id: str
    lesson_id: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str
    text_content: Optional[str]
    created_by: str
    created_at: str


def credits_price(credits: int) -> int:
    """Total price for a number of credits."""
    return credits * PRICE_PER_CREDIT
