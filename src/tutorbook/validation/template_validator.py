"""
Template lesson validator.

Checks one weekly slot of a lesson template and fills in the
defaults the backend would apply (end time, color, cost, seats).
"""

from datetime import datetime, timedelta
from typing import Any, Dict

from .validators import Validator, ValidationResult
from ..models.lesson import (
    DEFAULT_CREDITS_COST,
    DEFAULT_LESSON_COLOR,
    GROUP_MIN_STUDENTS,
    INDIVIDUAL_MAX_STUDENTS,
    LessonType,
)
from ..models.template import (
    DEFAULT_TEMPLATE_LESSON_HOURS,
    MAX_TEMPLATE_CREDITS_COST,
    MIN_TEMPLATE_CREDITS_COST,
)


def normalize_time(value: str) -> str:
    """
    Bring ``HH:MM`` to ``HH:MM:SS``.

    Examples:
        >>> normalize_time("09:30")
        '09:30:00'
    """
    return value if len(value) == 8 else f"{value}:00"


def default_end_time(start_time: str) -> str:
    """
    End time for a slot without one: start plus two hours, same day format.

    Examples:
        >>> default_end_time("10:00:00")
        '12:00:00'
    """
    start = datetime.strptime(normalize_time(start_time), "%H:%M:%S")
    end = start + timedelta(hours=DEFAULT_TEMPLATE_LESSON_HOURS)
    return end.strftime("%H:%M:%S")


def apply_template_lesson_defaults(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``entry`` with defaults filled in.

    - no lesson_type and no max_students: individual, 1 seat
    - only max_students: type inferred (1 individual, >= 4 group)
    - only lesson_type: 1 seat for individual, 4 for group
    - end_time: start + 2h; color: #3B82F6; credits_cost: 1
    """
    result = dict(entry)
    lesson_type = result.get("lesson_type")
    max_students = result.get("max_students")

    if lesson_type is None and max_students is None:
        result["lesson_type"] = LessonType.INDIVIDUAL.value
        result["max_students"] = INDIVIDUAL_MAX_STUDENTS
    elif lesson_type is None:
        if max_students == INDIVIDUAL_MAX_STUDENTS:
            result["lesson_type"] = LessonType.INDIVIDUAL.value
        elif isinstance(max_students, int) and max_students >= GROUP_MIN_STUDENTS:
            result["lesson_type"] = LessonType.GROUP.value
    elif max_students is None:
        if lesson_type == LessonType.INDIVIDUAL.value:
            result["max_students"] = INDIVIDUAL_MAX_STUDENTS
        elif lesson_type == LessonType.GROUP.value:
            result["max_students"] = GROUP_MIN_STUDENTS

    if not result.get("end_time") and result.get("start_time"):
        try:
            result["end_time"] = default_end_time(result["start_time"])
        except ValueError:
            pass  # invalid start_time is reported by the validator

    result.setdefault("color", DEFAULT_LESSON_COLOR)
    if result.get("credits_cost") is None:
        result["credits_cost"] = DEFAULT_CREDITS_COST

    return result


class TemplateLessonValidator(Validator):
    """
    Validator for a template lesson slot.

    Validates:
    - day_of_week is 0 (Monday) .. 6 (Sunday)
    - start_time/end_time are HH:MM or HH:MM:SS and end is after start
    - teacher_id is present
    - credits_cost is 1..100, color is a hex color
    - Seat rules for lesson_type (individual == 1, group >= 4)

    Run apply_template_lesson_defaults first to validate what the
    backend will actually store.

    Examples:
        >>> validator = TemplateLessonValidator()
        >>> entry = apply_template_lesson_defaults(
        ...     {"day_of_week": 0, "start_time": "10:00", "teacher_id": "t-1"}
        ... )
        >>> validator.validate(entry).is_valid
        True
    """

    VALID_LESSON_TYPES = [LessonType.INDIVIDUAL.value, LessonType.GROUP.value]

    def validate(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        for error in self.validate_required_fields(data, ["day_of_week", "start_time", "teacher_id"]):
            result.add_error(error, error.rsplit(" ", 1)[-1])

        if not result.is_valid:
            return result

        error = self.validate_integer_range(data["day_of_week"], "day_of_week", 0, 6)
        if error:
            result.add_error(error, "day_of_week")

        start_error = self.validate_time_format(data["start_time"], "start_time")
        if start_error:
            result.add_error(start_error, "start_time")

        end_time = data.get("end_time")
        if end_time is not None:
            end_error = self.validate_time_format(end_time, "end_time")
            if end_error:
                result.add_error(end_error, "end_time")
            elif not start_error and normalize_time(end_time) <= normalize_time(data["start_time"]):
                result.add_error("end_time must be after start_time", "end_time")

        credits_cost = data.get("credits_cost")
        if credits_cost is not None:
            error = self.validate_integer_range(
                credits_cost, "credits_cost",
                MIN_TEMPLATE_CREDITS_COST, MAX_TEMPLATE_CREDITS_COST
            )
            if error:
                result.add_error(error, "credits_cost")

        color = data.get("color")
        if color is not None:
            error = self.validate_hex_color(color)
            if error:
                result.add_error(error, "color")

        lesson_type = data.get("lesson_type")
        if lesson_type is not None and lesson_type not in self.VALID_LESSON_TYPES:
            result.add_error(
                f"Invalid lesson_type: {lesson_type} (must be 'individual' or 'group')",
                "lesson_type"
            )

        max_students = data.get("max_students")
        if max_students is not None:
            error = self.validate_integer_range(max_students, "max_students", min_value=1)
            if error:
                result.add_error(error, "max_students")
            elif lesson_type == LessonType.INDIVIDUAL.value and max_students != INDIVIDUAL_MAX_STUDENTS:
                result.add_error(
                    f"Individual lesson max_students must be 1, not {max_students}",
                    "max_students"
                )
            elif lesson_type == LessonType.GROUP.value and max_students < GROUP_MIN_STUDENTS:
                result.add_error(
                    f"Group lesson max_students must be at least 4, not {max_students}",
                    "max_students"
                )
            elif lesson_type is None and INDIVIDUAL_MAX_STUDENTS < max_students < GROUP_MIN_STUDENTS:
                result.add_error(
                    f"max_students {max_students} matches neither individual (1) "
                    f"nor group (4+) lessons",
                    "max_students"
                )

        return result
