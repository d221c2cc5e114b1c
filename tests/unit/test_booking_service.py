"""
Unit tests for BookingService.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from tutorbook.api.errors import APIError, RequestCancelledError
from tutorbook.services.bookings import BookingService, retry_on_network_error
from tutorbook.services.notifications import NotificationCenter, NotificationLevel


NOW = datetime(2025, 12, 1, 12, 0, tzinfo=timezone.utc)


def network_error():
    return APIError("Connection reset", 0, code="NETWORK_ERROR")


class TestRetryOnNetworkError:
    """Test cases for retry_on_network_error."""

    def test_retries_network_errors_with_linear_wait(self):
        """Test waits grow by the base delay."""
        func = Mock(side_effect=[network_error(), network_error(), "ok"])
        sleep = Mock()

        assert retry_on_network_error(func, attempts=3, delay=0.5, sleep=sleep) == "ok"
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_business_error_not_retried(self):
        """Test non-network errors raise immediately."""
        func = Mock(side_effect=APIError("Lesson is full", 409, code="LESSON_FULL"))
        sleep = Mock()

        with pytest.raises(APIError, match="Lesson is full"):
            retry_on_network_error(func, sleep=sleep)

        assert func.call_count == 1
        sleep.assert_not_called()

    def test_raises_last_error(self):
        """Test the last network error is raised after all attempts."""
        func = Mock(side_effect=network_error())

        with pytest.raises(APIError):
            retry_on_network_error(func, attempts=2, sleep=Mock())

        assert func.call_count == 2

    def test_cancelled_not_retried(self):
        """Test cancellation propagates at once."""
        func = Mock(side_effect=RequestCancelledError())

        with pytest.raises(RequestCancelledError):
            retry_on_network_error(func, sleep=Mock())

        assert func.call_count == 1


class TestBookingService:
    """Test cases for BookingService."""

    @pytest.fixture
    def lesson(self):
        return {
            "id": "lesson-1",
            "start_time": "2025-12-03T10:00:00Z",
            "end_time": "2025-12-03T11:00:00Z",
            "max_students": 4,
            "current_students": 1,
        }

    @pytest.fixture
    def bookings_api(self):
        api = Mock()
        api.get_my_bookings.return_value = []
        api.get_cancelled_lessons.return_value = []
        api.create_booking.return_value = {"id": "b-1", "lesson_id": "lesson-1"}
        return api

    @pytest.fixture
    def credits_api(self):
        api = Mock()
        api.get_credits.return_value = {"balance": 5}
        return api

    @pytest.fixture
    def service(self, bookings_api, credits_api):
        return BookingService(bookings_api, credits_api, NotificationCenter(), sleep=Mock())

    def test_book_lesson_fetches_context(self, service, bookings_api, credits_api, lesson):
        """Test missing context is loaded before the guard runs."""
        result = service.book_lesson(lesson, now=NOW)

        assert result.is_success
        assert result.value == {"id": "b-1", "lesson_id": "lesson-1"}
        bookings_api.get_my_bookings.assert_called_once()
        bookings_api.get_cancelled_lessons.assert_called_once()
        bookings_api.create_booking.assert_called_once_with("lesson-1")
        assert credits_api.get_credits.call_count == 2
        assert service.notifications.items[-1].message == "You have booked the lesson"

    def test_book_lesson_guard_blocks(self, service, bookings_api, lesson):
        """Test a failing guard never calls the API."""
        result = service.book_lesson(lesson, my_bookings=[], balance=0, is_cancelled=False,
                                     now=NOW)

        assert result.is_failure
        assert result.message == "Not enough credits (requires 1 credit)"
        bookings_api.create_booking.assert_not_called()
        assert service.notifications.items[-1].level == NotificationLevel.WARNING

    def test_book_lesson_previously_cancelled(self, service, bookings_api, lesson):
        """Test cancelled lessons from the server block re-booking."""
        bookings_api.get_cancelled_lessons.return_value = ["lesson-1"]

        result = service.book_lesson(lesson, now=NOW)

        assert result.message == "You cancelled this lesson and can no longer book it"

    def test_book_lesson_retries_network(self, service, bookings_api, lesson):
        """Test a transient failure is retried."""
        bookings_api.create_booking.side_effect = [network_error(), {"id": "b-1"}]

        result = service.book_lesson(lesson, [], 5, False, now=NOW)

        assert result.is_success
        assert bookings_api.create_booking.call_count == 2

    def test_book_lesson_server_rejects(self, service, bookings_api, lesson):
        """Test a business error is reported without retry."""
        bookings_api.create_booking.side_effect = APIError("Lesson is full", 409)

        result = service.book_lesson(lesson, [], 5, False, now=NOW)

        assert result.is_failure
        assert result.message == "Lesson is full"
        assert bookings_api.create_booking.call_count == 1

    def test_book_lesson_context_failure(self, service, credits_api, lesson):
        """Test a failed context load is a failure."""
        credits_api.get_credits.side_effect = APIError("HTTP 500", 500)

        result = service.book_lesson(lesson, my_bookings=[], is_cancelled=False, now=NOW)

        assert result.is_failure
        assert result.message == "HTTP 500"

    def test_cancel_booking(self, service, bookings_api):
        """Test cancel refreshes the balance."""
        result = service.cancel_booking("b-1")

        assert result.is_success
        assert result.value["status"] == "success"
        assert service.balance == 5

    def test_cancel_already_cancelled_is_success(self, service, bookings_api):
        """Test a "not active" error counts as success."""
        bookings_api.cancel_booking.side_effect = APIError("Booking is not active", 400)

        result = service.cancel_booking("b-1")

        assert result.is_success
        assert result.value["status"] == "already_cancelled"
        assert service.notifications.items[-1].level == NotificationLevel.INFO

    def test_cancel_failure(self, service, bookings_api):
        """Test other cancel errors are failures."""
        bookings_api.cancel_booking.side_effect = APIError(
            "Cancellation is only possible 24 hours before the lesson starts", 400
        )

        assert service.cancel_booking("b-1").is_failure

    def test_add_student_error_wording(self, service, bookings_api):
        """Test admin add uses the dedicated wording."""
        bookings_api.create_booking.side_effect = APIError("full", 409, code="LESSON_FULL")

        result = service.add_student_to_lesson("lesson-1", "s-1")

        assert result.message == "No free seats in the lesson"
        bookings_api.create_booking.assert_called_once_with("lesson-1", "s-1")

    def test_remove_student(self, service, bookings_api):
        """Test admin removal cancels the booking."""
        result = service.remove_student_from_lesson("b-1")

        assert result.is_success
        bookings_api.cancel_booking.assert_called_once_with("b-1")

    def test_refresh_balance_keeps_old_value(self, service, credits_api):
        """Test a failed refresh keeps the previous balance."""
        service.refresh_balance()
        credits_api.get_credits.side_effect = APIError("HTTP 502", 502)

        assert service.refresh_balance() == 5
