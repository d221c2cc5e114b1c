"""
Lesson data validator.

Validates lesson create/update payloads against the platform's
lesson rules before they are sent to the API.
"""

from typing import Any, Dict, Optional

from .validators import Validator, ValidationResult
from ..models.lesson import GROUP_MIN_STUDENTS, INDIVIDUAL_MAX_STUDENTS, LessonType
from ..utils.dates import parse_datetime


def _check_seats(result: ValidationResult, max_students: Any, lesson_type: Optional[str]):
    if isinstance(max_students, bool) or not isinstance(max_students, int):
        result.add_error(
            f"max_students must be an integer, got {type(max_students).__name__}",
            "max_students"
        )
        return

    if max_students <= 0:
        result.add_error("max_students must be greater than 0", "max_students")
        return

    if lesson_type == LessonType.INDIVIDUAL.value:
        if max_students != INDIVIDUAL_MAX_STUDENTS:
            result.add_error(
                f"Individual lesson max_students must be {INDIVIDUAL_MAX_STUDENTS}, "
                f"not {max_students}",
                "max_students"
            )
    elif lesson_type == LessonType.GROUP.value:
        if max_students < GROUP_MIN_STUDENTS:
            result.add_error(
                f"Group lesson max_students must be at least {GROUP_MIN_STUDENTS}, "
                f"not {max_students}",
                "max_students"
            )
    elif INDIVIDUAL_MAX_STUDENTS < max_students < GROUP_MIN_STUDENTS:
        # No explicit type: 2 or 3 seats is neither individual nor group
        result.add_error(
            f"Group lesson max_students must be at least {GROUP_MIN_STUDENTS}, "
            f"not {max_students}",
            "max_students"
        )


def _parse_or_error(result: ValidationResult, value: Any, field_name: str):
    try:
        return parse_datetime(value)
    except (TypeError, ValueError, AttributeError):
        result.add_error(f"Invalid {field_name}: {value}", field_name)
        return None


class LessonValidator(Validator):
    """
    Validator for new lessons.

    Validates:
    - teacher_id, start_time, end_time and max_students are present
    - end_time is after start_time
    - Seat rules: individual lessons have exactly 1 seat, group lessons
      at least 4; without an explicit lesson_type, 2 or 3 seats is invalid
    - credits_cost is not negative, color is not empty

    Examples:
        >>> validator = LessonValidator()
        >>> lesson = {
        ...     "teacher_id": "7a1e...",
        ...     "start_time": "2025-11-20T10:00:00Z",
        ...     "end_time": "2025-11-20T12:00:00Z",
        ...     "max_students": 4,
        ...     "credits_cost": 1,
        ...     "color": "#3B82F6",
        ... }
        >>> validator.validate(lesson).is_valid
        True
    """

    MAX_SUBJECT_LENGTH = 200

    def validate(self, data: Dict[str, Any]) -> ValidationResult:
        """
        Validate a lesson create payload.

        Args:
            data: Lesson payload

        Returns:
            ValidationResult with field-keyed errors
        """
        result = ValidationResult(is_valid=True)

        if not isinstance(data, dict):
            return result.add_error("Lesson data must be an object")

        for name in ("teacher_id", "start_time", "end_time", "max_students"):
            if data.get(name) in (None, ""):
                result.add_error(f"Missing required field: {name}", name)

        if not result.is_valid:
            return result

        start = _parse_or_error(result, data["start_time"], "start_time")
        end = _parse_or_error(result, data["end_time"], "end_time")
        if start is not None and end is not None and end <= start:
            result.add_error("end_time must be after start_time", "end_time")

        _check_seats(result, data["max_students"], data.get("lesson_type"))

        credits_cost = data.get("credits_cost")
        if credits_cost is not None:
            error = self.validate_integer_range(credits_cost, "credits_cost", min_value=0)
            if error:
                result.add_error(error, "credits_cost")

        if "color" in data and not data.get("color"):
            result.add_error("color must not be empty", "color")

        subject = data.get("subject")
        if subject:
            error = self.validate_string_length(
                subject, "subject", max_length=self.MAX_SUBJECT_LENGTH
            )
            if error:
                result.add_error(error, "subject")

        return result


class LessonUpdateValidator(Validator):
    """
    Validator for partial lesson updates.

    Only the fields present are checked. Times are compared only when
    both are given.
    """

    def validate(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        if not data:
            return result.add_error("No fields to update")

        if "max_students" in data:
            lesson_type = data.get("lesson_type")
            if lesson_type is None:
                # Current type is unknown here; only the lower bound applies
                error = self.validate_integer_range(data["max_students"], "max_students", 1)
                if error:
                    result.add_error(error, "max_students")
            else:
                _check_seats(result, data["max_students"], lesson_type)

        if data.get("start_time") and data.get("end_time"):
            start = _parse_or_error(result, data["start_time"], "start_time")
            end = _parse_or_error(result, data["end_time"], "end_time")
            if start is not None and end is not None and end <= start:
                result.add_error("end_time must be after start_time", "end_time")

        if "credits_cost" in data and data["credits_cost"] is not None:
            error = self.validate_integer_range(data["credits_cost"], "credits_cost", min_value=0)
            if error:
                result.add_error(error, "credits_cost")

        return result
