"""
Unit tests for API error parsing and error categorization.
"""

import pytest

from tutorbook.api.errors import APIError, ErrorCode, extract_error_code, extract_error_message
from tutorbook.services.errors import (
    ErrorCategory,
    add_student_error_message,
    categorize_error,
    is_network_error,
)


class TestExtractErrorMessage:
    """Test cases for error body parsing."""

    @pytest.mark.parametrize("body,expected", [
        ({"errors": ["first", "second"], "message": "ignored"}, "first"),
        ({"error": {"code": "LESSON_FULL", "message": "Lesson is full"}}, "Lesson is full"),
        ({"message": "Bad input"}, "Bad input"),
        ({"error": "Plain error"}, "Plain error"),
        ({"error": {"code": "X"}}, '{"code": "X"}'),
        ({}, "HTTP 400"),
        (None, "HTTP 400"),
    ])
    def test_precedence(self, body, expected):
        """Test the most specific message wins."""
        assert extract_error_message(body, 400) == expected

    def test_extract_error_code(self):
        """Test nested and flat codes."""
        assert extract_error_code({"error": {"code": "LESSON_FULL"}}) == "LESSON_FULL"
        assert extract_error_code({"error_code": "CONFLICT"}) == "CONFLICT"
        assert extract_error_code("text") is None

    def test_api_error_reads_code_from_body(self):
        """Test APIError picks up the code from its data."""
        error = APIError("Lesson is full", 409, {"error": {"code": "LESSON_FULL"}})

        assert error.code == "LESSON_FULL"
        assert error.has_code(ErrorCode.LESSON_FULL)
        assert str(error) == "Lesson is full"


class TestCategorizeError:
    """Test cases for categorize_error."""

    @pytest.mark.parametrize("error,category", [
        (APIError("Unauthorized", 401), ErrorCategory.UNAUTHORIZED),
        (APIError("Forbidden", 403), ErrorCategory.FORBIDDEN),
        (APIError("HTTP 503", 503), ErrorCategory.SERVER_ERROR),
        (APIError("Connection refused", 0, code="NETWORK_ERROR"), ErrorCategory.NETWORK_ERROR),
        (RuntimeError("Network is unreachable"), ErrorCategory.NETWORK_ERROR),
        (APIError("Bad request", 422), ErrorCategory.CLIENT_ERROR),
        (RuntimeError("boom"), ErrorCategory.UNKNOWN),
    ])
    def test_categories(self, error, category):
        """Test each category in priority order."""
        assert categorize_error(error).category == category

    def test_server_error_message(self):
        """Test technical and user messages for a 5xx."""
        info = categorize_error(APIError("HTTP 502", 502))

        assert info.message == "Server error (502)"
        assert info.display_message() == "The server is temporarily unavailable. Please try later."

    def test_none(self):
        """Test None is an unknown error."""
        info = categorize_error(None)

        assert info.category == ErrorCategory.UNKNOWN
        assert info.display_message() == "Unknown error"


class TestNetworkDetection:
    """Test cases for is_network_error and add_student_error_message."""

    @pytest.mark.parametrize("error,expected", [
        (APIError("Request failed", 0, code="NETWORK_ERROR"), True),
        (RuntimeError("Read timeout"), True),
        (RuntimeError("ECONNRESET"), True),
        (APIError("Insufficient credits", 400, code="INSUFFICIENT_CREDITS"), False),
        (APIError("Lesson is full", 409, code="LESSON_FULL"), False),
        (None, False),
    ])
    def test_is_network_error(self, error, expected):
        """Test transport failures match and business errors do not."""
        assert is_network_error(error) is expected

    @pytest.mark.parametrize("code,expected", [
        ("LESSON_FULL", "No free seats in the lesson"),
        ("INSUFFICIENT_CREDITS", "Student has insufficient credits"),
        ("STUDENT_ALREADY_BOOKED", "Student is already registered for this lesson"),
        ("CONFLICT", "Student is already booked on this lesson"),
    ])
    def test_add_student_known_codes(self, code, expected):
        """Test dedicated wording for known codes."""
        assert add_student_error_message(APIError("raw", 409, code=code)) == expected

    def test_add_student_fallbacks(self):
        """Test own message, then default."""
        assert add_student_error_message(APIError("Teacher is busy", 400)) == "Teacher is busy"
        assert add_student_error_message(APIError("", 400)) == "Failed to add student"
