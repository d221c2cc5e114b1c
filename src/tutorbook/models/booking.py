"""
Booking data models.
"""

from typing import Any, Dict, List, Literal, Optional, TypedDict


BookingStatus = Literal["active", "cancelled"]
CancelStatus = Literal["success", "already_cancelled"]


class BookingData(TypedDict, total=False):
    """
    Booking as returned by ``GET /bookings``.

    Lesson fields (times, teacher, subject) are denormalized into
    the booking by the API. Some endpoints nest them under ``lesson``
    instead.
    """

    id: str
    booking_id: str
    student_id: str
    lesson_id: str
    status: BookingStatus
    booked_at: str
    cancelled_at: Optional[str]
    start_time: str
    end_time: str
    teacher_id: str
    teacher_name: str
    subject: Optional[str]
    student_name: str
    student_email: str
    lesson: Dict[str, Any]


class CancelBookingResult(TypedDict):
    """Outcome of cancelling a booking."""

    status: CancelStatus
    message: str


class CancelledLessons(TypedDict):
    """Response of ``GET /bookings/cancelled-lessons``."""

    lesson_ids: List[str]
