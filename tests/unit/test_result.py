"""
Unit tests for Result<T> pattern.
"""

import pytest

from tutorbook.api.errors import APIError
from tutorbook.models.result import Result, ResultStatus


class TestResult:
    """Test cases for Result class."""

    def test_success_creation(self):
        """Test creating a successful result."""
        result = Result.success({"id": "b-1"}, "Booked")

        assert result.is_success
        assert not result.is_failure
        assert result.status == ResultStatus.SUCCESS
        assert result.value == {"id": "b-1"}
        assert result.message == "Booked"
        assert result.error is None

    def test_failure_creation(self):
        """Test creating a failure result."""
        error = APIError("Lesson is full", 409)
        result = Result.failure("No free seats", error)

        assert result.is_failure
        assert result.status == ResultStatus.FAILURE
        assert result.value is None
        assert result.message == "No free seats"
        assert result.error is error

    def test_unwrap_success(self):
        """Test unwrapping successful result."""
        assert Result.success("data").unwrap() == "data"

    def test_unwrap_failure_without_error_raises_value_error(self):
        """Test unwrapping a failure without exception raises ValueError."""
        with pytest.raises(ValueError, match="Cannot unwrap failure result"):
            Result.failure("Error occurred").unwrap()

    def test_unwrap_failure_reraises_captured_error(self):
        """Test unwrapping a failure re-raises the captured exception."""
        error = APIError("Unauthorized", 401)

        with pytest.raises(APIError) as exc_info:
            Result.failure("Unauthorized", error).unwrap()

        assert exc_info.value is error

    def test_unwrap_or(self):
        """Test unwrap_or with success and failure."""
        assert Result.success(42).unwrap_or(0) == 42
        assert Result.failure("Error").unwrap_or([]) == []

    def test_map_success(self):
        """Test mapping over successful result."""
        mapped = Result.success(5, "five").map(lambda x: x * 2)

        assert mapped.is_success
        assert mapped.value == 10
        assert mapped.message == "five"

    def test_map_failure(self):
        """Test mapping over failure keeps the failure."""
        mapped = Result.failure("Error").map(lambda x: x * 2)

        assert mapped.is_failure
        assert mapped.message == "Error"

    def test_map_with_exception(self):
        """Test mapping with function that raises exception."""
        mapped = Result.success(5).map(lambda x: 1 / 0)

        assert mapped.is_failure
        assert isinstance(mapped.error, ZeroDivisionError)

    def test_from_call_success(self):
        """Test from_call captures the return value."""
        result = Result.from_call(lambda: [1, 2])

        assert result.is_success
        assert result.value == [1, 2]

    def test_from_call_failure(self):
        """Test from_call captures the exception and its message."""
        def failing():
            raise APIError("HTTP 502", 502)

        result = Result.from_call(failing)

        assert result.is_failure
        assert result.message == "HTTP 502"
        assert isinstance(result.error, APIError)

    def test_result_with_none_value(self):
        """Test result with None as valid value."""
        result = Result.success(None, "Completed with no value")

        assert result.is_success
        assert result.value is None
