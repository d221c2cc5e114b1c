"""
Unit tests for lesson editor and dashboard loaders.
"""

from unittest.mock import Mock

import pytest

from tutorbook.api.errors import APIError
from tutorbook.services.lessons import (
    LessonDashboardLoader,
    LessonEditorLoader,
    build_credits_map,
    enrolled_students,
)
from tutorbook.services.notifications import NotificationCenter, NotificationLevel


class TestHelpers:
    """Test cases for credit map and enrolled student helpers."""

    def test_build_credits_map(self):
        """Test numeric, string and broken balances."""
        credits_map = build_credits_map({"balances": [
            {"user_id": "u-1", "balance": 3},
            {"user_id": "u-2", "balance": "2.5"},
            {"user_id": "u-3", "balance": "n/a"},
            {"balance": 10},
        ]})

        assert credits_map == {"u-1": 3, "u-2": 2.5, "u-3": 0}

    def test_build_credits_map_empty(self):
        """Test bad input gives an empty map."""
        assert build_credits_map(None) == {}
        assert build_credits_map({"balances": []}) == {}

    def test_enrolled_students(self):
        """Test only active bookings with name and email fallbacks."""
        students = enrolled_students([
            {"id": "b-1", "student_id": "s-1", "student_name": "Anna",
             "student_email": "anna@example.com", "status": "active"},
            {"id": "b-2", "user_id": "s-2", "status": "active"},
            {"id": "b-3", "student_id": "s-3", "status": "cancelled"},
        ])

        assert [s.student_id for s in students] == ["s-1", "s-2"]
        assert students[1].student_name == "Unknown student"
        assert students[1].student_email == "No email"


class TestLessonEditorLoader:
    """Test cases for LessonEditorLoader."""

    @pytest.fixture
    def apis(self):
        users = Mock()
        users.get_students_all.return_value = [
            {"id": "s-1", "full_name": "Anna"},
            {"id": "s-2", "full_name": "Boris"},
        ]
        users.get_assignable_teachers_all.return_value = [
            {"id": "t-1", "full_name": "Irina"},
            {"id": "a-1", "full_name": "Oleg"},
        ]
        bookings = Mock()
        bookings.get_bookings.return_value = [
            {"id": "b-1", "student_id": "s-1", "student_name": "Anna", "status": "active"},
        ]
        credits = Mock()
        credits.get_all_credits.return_value = {"balances": [{"user_id": "s-1", "balance": 4}]}
        return users, bookings, credits

    @pytest.fixture
    def loader(self, apis):
        users, bookings, credits = apis
        return LessonEditorLoader(users, bookings, credits, NotificationCenter())

    def test_load(self, loader, apis):
        """Test all resources are combined."""
        data = loader.load({"id": "lesson-1"})

        assert [s.student_id for s in data.students] == ["s-1"]
        assert [s["id"] for s in data.available_students] == ["s-2"]
        assert data.credits_map == {"s-1": 4}
        assert len(data.teachers) == 2
        assert data.warning is None
        apis[1].get_bookings.assert_called_once_with(lesson_id="lesson-1")

    def test_methodologist_sees_only_themselves(self, loader):
        """Test a methodologist viewer is the only teacher option."""
        viewer = {"id": "t-1", "role": "methodologist", "full_name": "Irina"}

        data = loader.load({"id": "lesson-1"}, current_user=viewer)

        assert data.teachers == [{"id": "t-1", "full_name": "Irina"}]

    def test_credits_failure_is_degraded(self, loader, apis):
        """Test a non-critical failure is only a warning."""
        apis[2].get_all_credits.side_effect = APIError("HTTP 500", 500)

        data = loader.load({"id": "lesson-1"})

        assert data.credits_map == {}
        assert data.warning == "Failed to load: Credits"
        assert not data.has_critical_failure
        assert loader.notifications.items == []

    def test_students_failure_is_critical(self, loader, apis):
        """Test losing students is reported as an error."""
        apis[0].get_students_all.side_effect = APIError("HTTP 503", 503)

        data = loader.load({"id": "lesson-1"})

        assert data.has_critical_failure
        assert data.available_students == []
        assert [s.student_id for s in data.students] == ["s-1"]
        notification = loader.notifications.items[-1]
        assert notification.level == NotificationLevel.ERROR
        assert notification.message == "Failed to load: Students"


class TestLessonDashboardLoader:
    """Test cases for LessonDashboardLoader."""

    def test_partial_failure(self):
        """Test lessons survive a teachers failure."""
        lessons = Mock()
        lessons.get_lessons.return_value = [{"id": "lesson-1"}]
        users = Mock()
        users.get_teachers_all.side_effect = APIError("HTTP 500", 500)
        loader = LessonDashboardLoader(lessons, users, NotificationCenter())

        data = loader.load(teacher_id="t-1")

        assert data.lessons == [{"id": "lesson-1"}]
        assert data.teachers == []
        assert data.warning == "Failed to load: Teachers"
        assert loader.notifications.items[-1].level == NotificationLevel.WARNING
        lessons.get_lessons.assert_called_once_with(teacher_id="t-1")
