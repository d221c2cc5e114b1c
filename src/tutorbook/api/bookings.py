"""
Booking endpoints.

Booking lists from the backend occasionally contain partial rows
(deleted lessons, legacy records). normalize_bookings filters them out
before anything downstream relies on ``lesson_id`` or ``start_time``.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from .client import CancelToken, ResourceAPI
from ..models.booking import BookingData
from ..utils.logger import mask_user_id


logger = logging.getLogger(__name__)


def is_valid_booking(booking: Any) -> bool:
    """
    Check that a booking has the fields the client depends on.

    Requires an ``id`` or ``booking_id``, a ``lesson_id`` and a
    ``start_time`` (on the booking or its nested ``lesson``) that is a
    string or datetime.

    Examples:
        >>> is_valid_booking({"id": "b-1", "lesson_id": "l-1",
        ...                   "start_time": "2025-11-20T10:00:00Z"})
        True
        >>> is_valid_booking({"id": "b-1", "lesson_id": "l-1"})
        False
    """
    if not isinstance(booking, dict):
        logger.warning(f"Invalid booking: not an object ({type(booking).__name__})")
        return False

    if not (booking.get("id") or booking.get("booking_id")):
        logger.warning("Invalid booking: missing id/booking_id")
        return False

    if not booking.get("lesson_id"):
        logger.warning(f"Invalid booking {booking.get('id') or booking.get('booking_id')}: "
                       f"missing lesson_id")
        return False

    start_time = booking.get("start_time")
    if not start_time and isinstance(booking.get("lesson"), dict):
        start_time = booking["lesson"].get("start_time")

    if not start_time:
        logger.warning(f"Invalid booking {booking.get('id')}: missing start_time")
        return False

    if not isinstance(start_time, (str, datetime)):
        logger.warning(f"Invalid booking {booking.get('id')}: start_time has wrong type")
        return False

    return True


def normalize_bookings(bookings: Any) -> List[BookingData]:
    """
    Keep only valid bookings.

    Returns:
        Filtered list (empty if the input is not a list)
    """
    if not isinstance(bookings, list):
        logger.warning(f"normalize_bookings: input is not a list ({type(bookings).__name__})")
        return []

    valid = []
    for index, booking in enumerate(bookings):
        if is_valid_booking(booking):
            valid.append(booking)
        else:
            logger.debug(f"Filtered out invalid booking at index {index}")

    filtered = len(bookings) - len(valid)
    if filtered > 0:
        logger.info(f"Filtered {filtered} invalid bookings from {len(bookings)} total")

    return valid


def extract_bookings(response: Any) -> Any:
    """Pull the booking list out of ``{data: {bookings}}``, ``{bookings}`` or a bare list."""
    if isinstance(response, dict):
        data = response.get("data")
        if isinstance(data, dict) and data.get("bookings"):
            return data["bookings"]
        if response.get("bookings"):
            return response["bookings"]
    return response if response is not None else []


class BookingsAPI(ResourceAPI):
    """
    Wrapper for ``/bookings``.

    Examples:
        >>> bookings = BookingsAPI(client)
        >>> booking = bookings.create_booking("lesson-uuid")
        >>> bookings.cancel_booking(booking["id"])
    """

    def get_bookings(
        self,
        student_id: Optional[str] = None,
        lesson_id: Optional[str] = None,
        status: Optional[str] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> List[BookingData]:
        """
        List bookings (all for admins, own for students).

        Args:
            student_id: Only bookings of this student
            lesson_id: Only bookings on this lesson
            status: ``active`` or ``cancelled``
        """
        response = self.client.get(
            "/bookings",
            params={"student_id": student_id or None, "lesson_id": lesson_id or None,
                    "status": status or None},
            cancel_token=cancel_token,
        )
        return normalize_bookings(extract_bookings(response))

    def get_my_bookings(self, cancel_token: Optional[CancelToken] = None) -> List[BookingData]:
        response = self.client.get("/bookings/my", cancel_token=cancel_token)
        return normalize_bookings(extract_bookings(response))

    def get_booking(self, booking_id: str) -> BookingData:
        return self.client.get(f"/bookings/{booking_id}")

    def create_booking(self, lesson_id: str, student_id: Optional[str] = None) -> BookingData:
        """
        Book a lesson.

        Students book for themselves; admins pass ``student_id`` to add
        someone else.

        Returns:
            The created booking (unwrapped from ``{"booking": ...}``)
        """
        payload = {"lesson_id": lesson_id}
        if student_id:
            payload["student_id"] = student_id

        response = self.client.post("/bookings", payload)
        logger.info(
            f"Booking created for lesson {lesson_id}"
            + (f" (student {mask_user_id(student_id)})" if student_id else "")
        )

        if isinstance(response, dict) and response.get("booking"):
            return response["booking"]
        return response

    def cancel_booking(self, booking_id: str) -> Any:
        return self.client.delete(f"/bookings/{booking_id}")

    def get_booking_status(self, booking_id: str) -> dict:
        """Returns ``{"status": "active" | "cancelled"}``."""
        return self.client.get(f"/bookings/{booking_id}/status")

    def update_booking_status(self, booking_id: str, status: str) -> BookingData:
        """Admin only."""
        return self.client.patch(f"/bookings/{booking_id}", {"status": status})

    def get_cancelled_lessons(self, cancel_token: Optional[CancelToken] = None) -> List[str]:
        """
        Lessons the current student cancelled and may not re-book.

        Returns:
            List of lesson ids
        """
        response = self.client.get("/bookings/cancelled-lessons", cancel_token=cancel_token)
        if isinstance(response, dict) and response.get("lesson_ids") is not None:
            return response["lesson_ids"]
        return response or []
