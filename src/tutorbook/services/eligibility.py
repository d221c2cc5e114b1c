"""
Client-side booking guards.

These checks decide whether the book/cancel actions are offered at
all. The backend enforces the same rules; the guards only spare the
user a request that is bound to fail.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models.booking import BookingData
from ..models.lesson import DEFAULT_CREDITS_COST, LessonData
from ..utils.dates import hours_until, parse_datetime


CANCELLATION_WINDOW_HOURS = 24


@dataclass
class BookingEligibility:
    can_book: bool
    reason: Optional[str] = None
    is_previously_cancelled: bool = False


@dataclass
class CancelEligibility:
    can_cancel: bool
    reason: Optional[str] = None
    booking_id: Optional[str] = None


def format_credits(count: int) -> str:
    """
    Examples:
        >>> format_credits(1)
        '1 credit'
        >>> format_credits(3)
        '3 credits'
    """
    return f"{count} credit" if count == 1 else f"{count} credits"


def find_active_booking(lesson: LessonData, my_bookings: List[BookingData]) -> Optional[BookingData]:
    """The current user's active booking on ``lesson``, if any."""
    for booking in my_bookings or []:
        if booking.get("lesson_id") == lesson.get("id") and booking.get("status") == "active":
            return booking
    return None


def _now(now: Optional[datetime]) -> datetime:
    return parse_datetime(now) if now is not None else datetime.now().astimezone()


def check_booking_eligibility(
    lesson: LessonData,
    my_bookings: List[BookingData],
    balance: Optional[float],
    is_cancelled: bool = False,
    now: Optional[datetime] = None
) -> BookingEligibility:
    """
    Decide whether the current student may book ``lesson``.

    Checks, first failing one wins:
    1. already booked (active booking on this lesson)
    2. cancelled earlier (re-booking is blocked)
    3. lesson started or passed
    4. no free seats
    5. balance below the lesson cost (``credits_cost`` or 1)

    Args:
        lesson: Lesson to book
        my_bookings: The student's bookings
        balance: Credit balance (None counts as 0)
        is_cancelled: Whether the student cancelled this lesson before
        now: Current time (for tests)
    """
    if find_active_booking(lesson, my_bookings) is not None:
        return BookingEligibility(False, "You are already booked on this lesson")

    if is_cancelled:
        return BookingEligibility(
            False,
            "You cancelled this lesson and can no longer book it",
            is_previously_cancelled=True,
        )

    if parse_datetime(lesson["start_time"]) <= _now(now):
        return BookingEligibility(False, "This lesson has already started or passed")

    if (lesson.get("current_students") or 0) >= (lesson.get("max_students") or 0):
        return BookingEligibility(False, "No free seats")

    credits_cost = lesson.get("credits_cost") or DEFAULT_CREDITS_COST
    if (balance or 0) < credits_cost:
        return BookingEligibility(
            False, f"Not enough credits (requires {format_credits(credits_cost)})"
        )

    return BookingEligibility(True)


def can_cancel_booking(
    lesson: LessonData,
    my_bookings: List[BookingData],
    now: Optional[datetime] = None
) -> CancelEligibility:
    """
    Decide whether the current student may cancel their booking on ``lesson``.

    Cancellation needs an active booking and at least 24 hours before
    the lesson starts.
    """
    booking = find_active_booking(lesson, my_bookings)
    if booking is None:
        return CancelEligibility(False)

    if hours_until(lesson["start_time"], _now(now)) < CANCELLATION_WINDOW_HOURS:
        return CancelEligibility(
            False,
            "Cancellation is only possible 24 hours before the lesson starts",
            booking.get("id"),
        )

    return CancelEligibility(True, None, booking.get("id"))
