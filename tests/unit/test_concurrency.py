"""
Unit tests for parallel loading helpers.
"""

import pytest

from tutorbook.api.errors import APIError, RequestCancelledError
from tutorbook.models.result import Result
from tutorbook.services.concurrency import (
    Failure,
    RequestScope,
    all_settled_with_labels,
    failure_warning,
    is_cancelled_failure,
    with_fallback,
)


class TestAllSettled:
    """Test cases for all_settled_with_labels."""

    def test_keeps_successes_and_labels_failures(self):
        """Test a failed call does not discard the others."""
        def fail():
            raise APIError("HTTP 500", 500)

        settled = all_settled_with_labels(
            [lambda: ["lesson"], fail, lambda: {"s-1": 3}],
            ["Lessons", "Teachers", "Credits"],
        )

        assert settled.has_failures
        assert settled.failed_labels() == ["Teachers"]
        assert with_fallback(settled.results[0], []) == ["lesson"]
        assert with_fallback(settled.results[1], []) == []
        assert with_fallback(settled.results[2], {}) == {"s-1": 3}
        assert failure_warning(settled.failures) == "Failed to load: Teachers"

    def test_results_in_call_order(self):
        """Test results follow call order regardless of completion order."""
        calls = [lambda i=i: i for i in range(10)]

        settled = all_settled_with_labels(calls, [str(i) for i in range(10)], max_workers=3)

        assert [r.value for r in settled.results] == list(range(10))

    def test_length_mismatch(self):
        """Test calls and labels must match."""
        with pytest.raises(ValueError, match="Got 1 calls but 2 labels"):
            all_settled_with_labels([lambda: 1], ["A", "B"])

    def test_empty(self):
        """Test no calls gives no results."""
        settled = all_settled_with_labels([], [])

        assert settled.results == []
        assert not settled.has_failures

    def test_cancelled_failure(self):
        """Test cancellation is recognizable."""
        assert is_cancelled_failure(Failure("Lessons", RequestCancelledError()))
        assert not is_cancelled_failure(Failure("Lessons", APIError("x", 500)))

    def test_with_fallback_success_none(self):
        """Test a successful None is returned, not the fallback."""
        assert with_fallback(Result.success(None), []) is None


class TestRequestScope:
    """Test cases for RequestScope."""

    def test_close_cancels_tokens(self):
        """Test close cancels issued and future tokens."""
        scope = RequestScope()
        first = scope.token()
        second = scope.token()

        scope.close()

        assert scope.closed
        assert first.is_cancelled and second.is_cancelled
        assert scope.token().is_cancelled

    def test_cancel_all_keeps_scope_open(self):
        """Test cancel_all leaves the scope usable."""
        scope = RequestScope()
        token = scope.token()

        scope.cancel_all()

        assert token.is_cancelled
        assert not scope.token().is_cancelled
