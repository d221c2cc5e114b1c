"""
Result wrapper for client-side operations.

Service-level operations (booking a lesson, applying a template,
parallel loads) report their outcome through Result instead of
raising, so callers can show a notification and keep going.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar


T = TypeVar('T')
U = TypeVar('U')


class ResultStatus(Enum):
    """Outcome of an operation."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class Result(Generic[T]):
    """
    Outcome of an operation that may succeed or fail.

    Attributes:
        status: SUCCESS or FAILURE
        value: Payload of a successful operation
        error: Exception behind a failure, when there is one
        message: Human-readable description of the outcome

    Examples:
        >>> result = Result.success({"id": "b-1"}, "Booked")
        >>> result.unwrap()["id"]
        'b-1'

        >>> result = Result.failure("No free seats")
        >>> result.unwrap_or([])
        []
    """

    status: ResultStatus
    value: Optional[T] = None
    error: Optional[Exception] = None
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == ResultStatus.FAILURE

    @classmethod
    def success(cls, value: T, message: Optional[str] = None) -> 'Result[T]':
        """
        Build a successful result.

        Args:
            value: Operation payload
            message: Optional description

        Returns:
            Result with SUCCESS status
        """
        return cls(status=ResultStatus.SUCCESS, value=value, message=message)

    @classmethod
    def failure(
        cls,
        message: str,
        error: Optional[Exception] = None
    ) -> 'Result[T]':
        """
        Build a failed result.

        Args:
            message: What went wrong
            error: Underlying exception, if any

        Returns:
            Result with FAILURE status
        """
        return cls(status=ResultStatus.FAILURE, message=message, error=error)

    @classmethod
    def from_call(cls, func: Callable[[], T]) -> 'Result[T]':
        """
        Run a zero-argument callable and capture its outcome.

        Args:
            func: Callable to run

        Returns:
            Success with the return value, or failure carrying the exception

        Examples:
            >>> Result.from_call(lambda: 1 / 0).is_failure
            True
        """
        try:
            return cls.success(func())
        except Exception as e:
            return cls.failure(str(e) or e.__class__.__name__, e)

    def unwrap(self) -> T:
        """
        Return the value of a successful result.

        Raises:
            The captured exception when there is one, otherwise ValueError
        """
        if self.is_failure:
            if self.error is not None:
                raise self.error
            raise ValueError(f"Cannot unwrap failure result: {self.message}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the value on success, otherwise ``default``."""
        return self.value if self.is_success else default

    def map(self, func: Callable[[T], U]) -> 'Result[U]':
        """
        Transform the value of a successful result.

        Exceptions raised by ``func`` turn into a failure.
        """
        if self.is_failure:
            return Result.failure(self.message, self.error)

        try:
            return Result.success(func(self.value), self.message)
        except Exception as e:
            return Result.failure(str(e), e)
