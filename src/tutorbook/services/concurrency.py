"""
Parallel loading helpers.

Screens that need several independent resources load them in parallel
and keep whatever succeeded: each call's outcome is captured as a
Result, failures are reported with a human label, and callers pick
values with a fallback.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from ..api.client import CancelToken
from ..api.errors import RequestCancelledError
from ..models.result import Result


logger = logging.getLogger(__name__)


DEFAULT_MAX_WORKERS = 4


@dataclass
class Failure:
    """A labelled failed call."""

    label: str
    error: Optional[Exception]


@dataclass
class SettledResults:
    """
    Outcome of all_settled_with_labels.

    Attributes:
        results: One Result per call, in call order
        failures: Failed calls with their labels
    """

    results: List[Result] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0

    def failed_labels(self) -> List[str]:
        return [f.label for f in self.failures]


def all_settled_with_labels(
    calls: Sequence[Callable[[], Any]],
    labels: Sequence[str],
    max_workers: int = DEFAULT_MAX_WORKERS
) -> SettledResults:
    """
    Run calls in parallel and wait for all of them, failed or not.

    Args:
        calls: Zero-argument callables
        labels: Human-readable label per call (used in warnings)
        max_workers: Thread pool size

    Returns:
        SettledResults with per-call results and labelled failures

    Raises:
        ValueError: If calls and labels differ in length

    Examples:
        >>> settled = all_settled_with_labels(
        ...     [lambda: [1, 2], lambda: 1 / 0], ["Lessons", "Teachers"]
        ... )
        >>> with_fallback(settled.results[0], [])
        [1, 2]
        >>> settled.failed_labels()
        ['Teachers']
    """
    if len(calls) != len(labels):
        raise ValueError(f"Got {len(calls)} calls but {len(labels)} labels")

    if not calls:
        return SettledResults()

    workers = max(1, min(max_workers, len(calls)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(Result.from_call, call) for call in calls]
        results = [future.result() for future in futures]

    failures = []
    for label, result in zip(labels, results):
        if result.is_failure:
            if not isinstance(result.error, RequestCancelledError):
                logger.warning(f"Failed to load {label}: {result.message}")
            failures.append(Failure(label, result.error))

    return SettledResults(results=results, failures=failures)


def with_fallback(result: Result, fallback: Any) -> Any:
    """Value of a successful result, otherwise ``fallback``."""
    return result.value if result.is_success else fallback


def failure_warning(failures: Sequence[Failure]) -> Optional[str]:
    """
    Partial-data warning for display.

    Examples:
        >>> failure_warning([Failure("Students", None), Failure("Teachers", None)])
        'Failed to load: Students, Teachers'
        >>> failure_warning([]) is None
        True
    """
    if not failures:
        return None
    return f"Failed to load: {', '.join(f.label for f in failures)}"


def is_cancelled_failure(failure: Failure) -> bool:
    return isinstance(failure.error, RequestCancelledError)


class RequestScope:
    """
    Owns the cancel tokens of one state holder.

    Every request made on behalf of the holder gets a token from
    ``token()``; ``close()`` cancels all of them and any token created
    afterwards starts cancelled.

    Examples:
        >>> scope = RequestScope()
        >>> token = scope.token()
        >>> scope.close()
        >>> token.is_cancelled
        True
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: List[CancelToken] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def token(self) -> CancelToken:
        token = CancelToken()
        with self._lock:
            if self._closed:
                token.cancel()
            else:
                self._tokens = [t for t in self._tokens if not t.is_cancelled]
                self._tokens.append(token)
        return token

    def cancel_all(self):
        """Cancel in-flight requests but keep the scope usable."""
        with self._lock:
            tokens, self._tokens = self._tokens, []
        for token in tokens:
            token.cancel()

    def close(self):
        with self._lock:
            self._closed = True
        self.cancel_all()
