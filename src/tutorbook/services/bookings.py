"""
Booking workflow.

Wraps the bookings endpoints with the guard checks, a retry for
transport failures and user notifications. Business errors (lesson
full, not enough credits) are never retried.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, List, Optional

from ..api.bookings import BookingsAPI
from ..api.credits import CreditsAPI
from ..api.errors import APIError, RequestCancelledError
from ..models.booking import BookingData, CancelBookingResult
from ..models.lesson import LessonData
from ..models.result import Result
from .eligibility import check_booking_eligibility
from .errors import add_student_error_message, is_network_error
from .notifications import NotificationCenter


logger = logging.getLogger(__name__)


DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 0.5

ALREADY_CANCELLED_MARKER = "not active"


def retry_on_network_error(
    func: Callable[[], Any],
    attempts: int = DEFAULT_RETRY_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep
) -> Any:
    """
    Call ``func``, retrying transport failures.

    The wait grows linearly: ``delay``, ``2 * delay``, ... Any other
    error is raised immediately.

    Raises:
        The last error once attempts are exhausted
    """
    last_error: Optional[Exception] = None

    for attempt in range(attempts):
        try:
            return func()
        except RequestCancelledError:
            raise
        except Exception as e:
            last_error = e
            if not is_network_error(e):
                raise
            if attempt < attempts - 1:
                wait = delay * (attempt + 1)
                logger.warning(f"Network error (attempt {attempt + 1}/{attempts}), "
                               f"retrying in {wait:.1f}s: {e}")
                sleep(wait)

    raise last_error


class BookingService:
    """
    Book, cancel and assign students with guard checks and notifications.

    Examples:
        >>> service = BookingService(bookings_api, credits_api, NotificationCenter())
        >>> result = service.book_lesson(lesson)
        >>> if result.is_failure:
        ...     print(result.message)
    """

    def __init__(
        self,
        bookings: BookingsAPI,
        credits: CreditsAPI,
        notifications: Optional[NotificationCenter] = None,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.bookings = bookings
        self.credits = credits
        self.notifications = notifications or NotificationCenter()
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.balance: Optional[float] = None

    def _retry(self, func: Callable[[], Any]) -> Any:
        return retry_on_network_error(func, self.retry_attempts, self.retry_delay, self.sleep)

    def refresh_balance(self) -> Optional[float]:
        """Re-read the credit balance; failures keep the old value."""
        try:
            self.balance = self.credits.get_credits()["balance"]
        except APIError as e:
            logger.warning(f"Failed to refresh credit balance: {e.message}")
        return self.balance

    def book_lesson(
        self,
        lesson: LessonData,
        my_bookings: Optional[List[BookingData]] = None,
        balance: Optional[float] = None,
        is_cancelled: Optional[bool] = None,
        now: Optional[datetime] = None
    ) -> Result[BookingData]:
        """
        Book ``lesson`` for the current student.

        Missing context (bookings, balance, cancelled lessons) is
        fetched first so the guard sees the current state.

        Returns:
            Success with the booking, or failure with the reason
        """
        try:
            if my_bookings is None:
                my_bookings = self.bookings.get_my_bookings()
            if balance is None:
                balance = self.credits.get_credits()["balance"]
            if is_cancelled is None:
                is_cancelled = lesson.get("id") in self.bookings.get_cancelled_lessons()
        except RequestCancelledError as e:
            return Result.failure(str(e), e)
        except APIError as e:
            self.notifications.error(e.message or "Failed to load booking data")
            return Result.failure(e.message, e)

        eligibility = check_booking_eligibility(lesson, my_bookings, balance, is_cancelled, now)
        if not eligibility.can_book:
            self.notifications.warning(eligibility.reason)
            return Result.failure(eligibility.reason)

        logger.info(f"Booking lesson {lesson.get('id')}")
        try:
            booking = self._retry(lambda: self.bookings.create_booking(lesson["id"]))
        except RequestCancelledError as e:
            return Result.failure(str(e), e)
        except APIError as e:
            self.notifications.error(e.message or "Failed to book the lesson")
            return Result.failure(e.message or "Failed to book the lesson", e)

        self.notifications.success("You have booked the lesson")
        self.refresh_balance()
        return Result.success(booking, "You have booked the lesson")

    def cancel_booking(self, booking_id: str) -> Result[CancelBookingResult]:
        """
        Cancel a booking.

        A "not active" error means another request already cancelled it;
        that counts as success.
        """
        logger.info(f"Cancelling booking {booking_id}")
        try:
            self._retry(lambda: self.bookings.cancel_booking(booking_id))
        except RequestCancelledError as e:
            return Result.failure(str(e), e)
        except APIError as e:
            if ALREADY_CANCELLED_MARKER in (e.message or "").lower():
                logger.debug(f"Booking {booking_id} already cancelled, treating as success")
                message = "This lesson was already cancelled"
                self.notifications.info(message)
                self.refresh_balance()
                return Result.success({"status": "already_cancelled", "message": message},
                                      message)
            self.notifications.error(e.message or "Failed to cancel booking")
            return Result.failure(e.message or "Failed to cancel booking", e)

        message = "Booking cancelled"
        self.notifications.success(message)
        self.refresh_balance()
        return Result.success({"status": "success", "message": message}, message)

    def add_student_to_lesson(self, lesson_id: str, student_id: str) -> Result[BookingData]:
        """Book a student onto a lesson on their behalf (admin)."""
        try:
            booking = self.bookings.create_booking(lesson_id, student_id)
        except RequestCancelledError as e:
            return Result.failure(str(e), e)
        except APIError as e:
            message = add_student_error_message(e)
            self.notifications.error(message)
            return Result.failure(message, e)

        self.notifications.success("Student added to the lesson")
        return Result.success(booking, "Student added to the lesson")

    def remove_student_from_lesson(self, booking_id: str) -> Result[Any]:
        """Cancel a student's booking on their behalf (admin)."""
        try:
            result = self.bookings.cancel_booking(booking_id)
        except RequestCancelledError as e:
            return Result.failure(str(e), e)
        except APIError as e:
            self.notifications.error(e.message or "Failed to remove student")
            return Result.failure(e.message or "Failed to remove student", e)

        self.notifications.success("Student removed from the lesson")
        return Result.success(result, "Student removed from the lesson")
