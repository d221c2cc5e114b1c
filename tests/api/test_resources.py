"""
Unit tests for the resource wrappers.

Tests endpoint paths, parameters and response normalization with a
mocked ApiClient.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from tutorbook.api.bookings import BookingsAPI, is_valid_booking, normalize_bookings
from tutorbook.api.credits import CreditsAPI
from tutorbook.api.errors import APIError
from tutorbook.api.homework import HomeworkAPI, check_homework_file
from tutorbook.api.lessons import LessonsAPI, extract_lessons
from tutorbook.api.payments import PaymentsAPI
from tutorbook.api.telegram import TelegramAPI
from tutorbook.api.templates import TemplatesAPI
from tutorbook.api.users import UsersAPI


@pytest.fixture
def client():
    """Create mock ApiClient."""
    return Mock()


class TestUsersAPI:
    """Test suite for UsersAPI."""

    def test_get_users_shapes(self, client):
        """Test bare list, {users} and nested {data: {users}}."""
        users = UsersAPI(client)

        client.get.return_value = [{"id": "u-1"}]
        assert users.get_users() == [{"id": "u-1"}]

        client.get.return_value = {"users": [{"id": "u-2"}], "meta": {}}
        assert users.get_users(role="student") == [{"id": "u-2"}]

        client.get.return_value = {"data": {"users": [{"id": "u-3"}]}}
        assert users.get_users() == [{"id": "u-3"}]

        client.get.return_value = "unexpected"
        assert users.get_users() == []

    def test_get_users_all_walks_pages(self, client):
        """Test every page is requested until total_pages."""
        client.get.side_effect = [
            {"users": [{"id": "u-1"}], "meta": {"page": 1, "total_pages": 2}},
            {"users": [{"id": "u-2"}], "meta": {"page": 2, "total_pages": 2}},
        ]

        result = UsersAPI(client).get_users_all(role="student")

        assert [u["id"] for u in result] == ["u-1", "u-2"]
        pages = [c.kwargs["params"]["page"] for c in client.get.call_args_list]
        assert pages == [1, 2]
        assert client.get.call_args.kwargs["params"]["per_page"] == 50

    def test_assignable_teachers_merged_and_sorted(self, client):
        """Test methodologists and admins are merged without duplicates."""
        def respond(endpoint, params=None, cancel_token=None):
            if params["role"] == "methodologist":
                return {"users": [{"id": "t-2", "full_name": "vera"}, {"id": "a-1", "full_name": "Oleg"}]}
            return {"users": [{"id": "a-1", "full_name": "Oleg"}, {"id": "a-2", "full_name": "Anna"}]}

        client.get.side_effect = respond

        teachers = UsersAPI(client).get_assignable_teachers_all()

        assert [t["id"] for t in teachers] == ["a-2", "a-1", "t-2"]


class TestLessonsAPI:
    """Test suite for LessonsAPI."""

    def test_extract_lessons(self):
        """Test list response shapes."""
        assert extract_lessons([{"id": "l-1"}]) == [{"id": "l-1"}]
        assert extract_lessons({"data": [{"id": "l-2"}]}) == [{"id": "l-2"}]
        assert extract_lessons({"lessons": [{"id": "l-3"}]}) == [{"id": "l-3"}]
        assert extract_lessons(None) is None

    def test_get_lessons_params(self, client):
        """Test date is sent as local YYYY-MM-DD."""
        client.get.return_value = []

        LessonsAPI(client).get_lessons(teacher_id="t-1", date=date(2025, 12, 1), available=True)

        params = client.get.call_args.kwargs["params"]
        assert params == {"teacher_id": "t-1", "date": "2025-12-01", "available": True}

    def test_teacher_schedule_from_list(self, client):
        """Test a bare list is wrapped with a count."""
        client.get.return_value = [{"id": "l-1"}, {"id": "l-2"}]

        schedule = LessonsAPI(client).get_teacher_schedule("2025-12-01", "2025-12-07")

        assert schedule["count"] == 2
        assert client.get.call_args.kwargs["params"]["start_date"] == "2025-12-01"

    def test_update_lesson_requires_fields(self, client):
        """Test update validation runs before any request."""
        lessons = LessonsAPI(client)

        with pytest.raises(ValueError):
            lessons.update_lesson("", {"max_students": 4})
        with pytest.raises(ValueError):
            lessons.update_lesson("l-1", {})

        client.put.assert_not_called()

    def test_create_lesson_rejects_missing_fields(self, client):
        """Test an incomplete lesson is never sent."""
        with pytest.raises(ValueError):
            LessonsAPI(client).create_lesson({"max_students": 4})

        client.post.assert_not_called()

    def test_delete_series(self, client):
        """Test delete_series flag."""
        LessonsAPI(client).delete_lesson("l-1", delete_series=True)

        client.delete.assert_called_once_with("/lessons/l-1", params={"delete_series": True})

    def test_apply_to_all_subsequent(self, client):
        """Test bulk edit posts the payload."""
        client.post.return_value = {"affected_lessons_count": 5}
        payload = {"modification_type": "change_capacity", "new_max_students": 6}

        result = LessonsAPI(client).apply_to_all_subsequent("l-1", payload)

        assert result["affected_lessons_count"] == 5
        client.post.assert_called_once_with("/lessons/l-1/apply-to-all", payload)


class TestBookingsAPI:
    """Test suite for BookingsAPI."""

    def test_is_valid_booking(self):
        """Test required booking fields."""
        assert is_valid_booking({"booking_id": "b-1", "lesson_id": "l-1",
                                 "lesson": {"start_time": "2025-12-01T10:00:00Z"}})
        assert not is_valid_booking({"id": "b-1", "start_time": "2025-12-01T10:00:00Z"})
        assert not is_valid_booking({"id": "b-1", "lesson_id": "l-1", "start_time": 123})
        assert not is_valid_booking("b-1")

    def test_normalize_bookings(self):
        """Test invalid rows are dropped."""
        valid = {"id": "b-1", "lesson_id": "l-1", "start_time": "2025-12-01T10:00:00Z"}

        assert normalize_bookings([valid, {"id": "b-2"}]) == [valid]
        assert normalize_bookings({"bookings": []}) == []

    def test_get_bookings_unwraps(self, client):
        """Test nested booking lists are extracted and filtered."""
        valid = {"id": "b-1", "lesson_id": "l-1", "start_time": "2025-12-01T10:00:00Z"}
        client.get.return_value = {"bookings": [valid, {"id": "broken"}]}

        assert BookingsAPI(client).get_bookings(status="active") == [valid]
        assert client.get.call_args.kwargs["params"]["status"] == "active"

    def test_create_booking_for_student(self, client):
        """Test admins pass student_id and the booking is unwrapped."""
        client.post.return_value = {"booking": {"id": "b-1"}}

        booking = BookingsAPI(client).create_booking("l-1", "s-1")

        assert booking == {"id": "b-1"}
        client.post.assert_called_once_with("/bookings", {"lesson_id": "l-1", "student_id": "s-1"})

    def test_cancelled_lessons(self, client):
        """Test lesson_ids are extracted."""
        client.get.return_value = {"lesson_ids": ["l-1", "l-2"]}

        assert BookingsAPI(client).get_cancelled_lessons() == ["l-1", "l-2"]


class TestCreditsAPI:
    """Test suite for CreditsAPI."""

    def test_balance_normalized(self, client):
        """Test a missing balance reads as 0."""
        credits = CreditsAPI(client)

        client.get.return_value = {"balance": 7}
        assert credits.get_credits() == {"balance": 7}

        client.get.return_value = {"balance": "7"}
        assert credits.get_credits() == {"balance": 0}

    @pytest.mark.parametrize("response", [
        [{"user_id": "u-1", "balance": 1}],
        {"data": [{"user_id": "u-1", "balance": 1}]},
        {"data": {"data": [{"user_id": "u-1", "balance": 1}]}},
        {"balances": [{"user_id": "u-1", "balance": 1}]},
    ])
    def test_all_credits_shapes(self, client, response):
        """Test every known response shape."""
        client.get.return_value = response

        assert CreditsAPI(client).get_all_credits() == {
            "balances": [{"user_id": "u-1", "balance": 1}]
        }

    def test_deduct_sends_negative_amount(self, client):
        """Test deduction posts a negative amount."""
        CreditsAPI(client).deduct_credits("u-1", 3, "Correction")

        client.post.assert_called_once_with("/users/u-1/credits",
                                            {"amount": -3, "reason": "Correction"})

    def test_history_limit_capped(self, client):
        """Test limit above the maximum is capped and empty filters dropped."""
        client.get.return_value = {"transactions": [{"id": "t-1"}]}

        history = CreditsAPI(client).get_history({"limit": 1000, "type": "", "user_id": "u-1"})

        assert history == [{"id": "t-1"}]
        assert client.get.call_args.kwargs["params"] == {"user_id": "u-1", "limit": 500}

    def test_my_history_ignores_user_id(self, client):
        """Test user_id is not sent for the own history."""
        client.get.return_value = []

        CreditsAPI(client).get_my_history({"user_id": "u-9", "limit": 10})

        assert client.get.call_args.kwargs["params"] == {"limit": 10}


class TestTemplatesAPI:
    """Test suite for TemplatesAPI."""

    def test_apply_template(self, client):
        """Test apply posts the week start and dry_run flag."""
        client.request.return_value = {"created_lessons_count": 4}

        TemplatesAPI(client).apply_template("tpl-1", date(2025, 12, 1), dry_run=True)

        client.request.assert_called_once_with(
            "POST", "/templates/tpl-1/apply",
            params={"dry_run": True}, json={"week_start_date": "2025-12-01"}, cancel_token=None,
        )

    def test_rollback_template(self, client):
        """Test rollback posts the week start."""
        TemplatesAPI(client).rollback_template("tpl-1", "2025-12-01")

        client.post.assert_called_once_with("/templates/tpl-1/rollback",
                                            {"week_start_date": "2025-12-01"})

    def test_get_templates_shapes(self, client):
        """Test list and wrapped responses."""
        client.get.return_value = {"templates": [{"id": "tpl-1"}]}

        assert TemplatesAPI(client).get_templates() == [{"id": "tpl-1"}]


class TestTelegramAPI:
    """Test suite for TelegramAPI."""

    def test_link_token(self, client):
        """Test a complete token is returned."""
        client.get.return_value = {"token": "abc", "bot_username": "school_bot"}

        assert TelegramAPI(client).generate_link_token()["bot_username"] == "school_bot"

    def test_link_token_missing_fields(self, client):
        """Test incomplete responses raise APIError."""
        client.get.return_value = {"token": "abc"}

        with pytest.raises(APIError, match="missing required fields"):
            TelegramAPI(client).generate_link_token()

    def test_admin_routes(self, client):
        """Test admin telegram routes live under /users."""
        client.get.return_value = {"users": [{"id": "u-1"}]}
        telegram = TelegramAPI(client)

        assert telegram.get_all_telegram_users() == [{"id": "u-1"}]
        telegram.send_user_message("u-1", "Hello")

        client.get.assert_called_once_with("/users/telegram", cancel_token=None)
        client.post.assert_called_once_with("/users/u-1/telegram/message", {"message": "Hello"})


class TestPaymentsAPI:
    """Test suite for PaymentsAPI."""

    def test_create_payment(self, client):
        """Test a valid redirect is returned."""
        client.post.return_value = {"id": "p-1",
                                    "confirmation_url": "https://yoomoney.ru/checkout/p-1"}

        payment = PaymentsAPI(client).create_payment(5)

        assert payment["confirmation_url"] == "https://yoomoney.ru/checkout/p-1"
        client.post.assert_called_once_with("/payments/create", {"credits": 5})

    def test_unsafe_redirect(self, client):
        """Test a foreign redirect raises APIError."""
        client.post.return_value = {"id": "p-1", "confirmation_url": "https://evil.com/pay"}

        with pytest.raises(APIError, match="Unsafe payment redirect"):
            PaymentsAPI(client).create_payment(5)

    @pytest.mark.parametrize("credits", [0, 101, True, 2.5])
    def test_credits_range(self, client, credits):
        """Test out-of-range credit counts are rejected locally."""
        with pytest.raises(ValueError, match="credits must be between 1 and 100"):
            PaymentsAPI(client).create_payment(credits)

        client.post.assert_not_called()


class TestHomeworkAPI:
    """Test suite for HomeworkAPI."""

    def test_check_file(self, tmp_path):
        """Test missing, empty, wrong type and valid files."""
        pdf = tmp_path / "task.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        empty = tmp_path / "empty.pdf"
        empty.write_bytes(b"")
        script = tmp_path / "run.sh"
        script.write_text("echo hi")

        assert check_homework_file(pdf) is None
        assert check_homework_file(tmp_path / "missing.pdf").startswith("File not found")
        assert check_homework_file(empty) == "File size must be between 1 byte and 10MB"
        assert "is not allowed" in check_homework_file(script)

    def test_upload(self, client, tmp_path):
        """Test upload sends multipart with text content."""
        pdf = tmp_path / "task.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        client.request.return_value = {"id": "h-1"}

        assert HomeworkAPI(client).upload_homework("l-1", pdf, "Read chapter 3") == {"id": "h-1"}

        args, kwargs = client.request.call_args
        assert args == ("POST", "/lessons/l-1/homework")
        assert kwargs["form"] == {"text_content": "Read chapter 3"}
        assert kwargs["files"]["file"][0] == "task.pdf"

    def test_download_into_directory(self, client, tmp_path):
        """Test the server file name is used for directory targets."""
        response = Mock()
        response.headers = {"Content-Disposition": 'attachment; filename="task.pdf"'}
        response.iter_content.return_value = [b"%PDF", b"", b"-1.4"]
        client.request_raw.return_value = response

        path = HomeworkAPI(client).download_homework("l-1", "h-1", tmp_path)

        assert path == tmp_path / "task.pdf"
        assert path.read_bytes() == b"%PDF-1.4"
