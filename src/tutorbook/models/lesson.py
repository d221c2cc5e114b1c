"""
Lesson data models.

TypedDict definitions for lessons returned by the API, plus the
small helpers that derive lesson type and free seats from them.
"""

from enum import Enum
from typing import List, Literal, Optional, TypedDict


LessonTypeName = Literal["individual", "group"]

# Seat limits implied by lesson type
INDIVIDUAL_MAX_STUDENTS = 1
GROUP_MIN_STUDENTS = 4

DEFAULT_LESSON_COLOR = "#3B82F6"
DEFAULT_CREDITS_COST = 1


class LessonType(Enum):
    """Lesson type, derived from capacity when the API omits it."""

    INDIVIDUAL = "individual"
    GROUP = "group"


class LessonStudent(TypedDict):
    """Student enrolled in a lesson (as embedded in lesson payloads)."""

    student_id: str
    student_name: str


class LessonData(TypedDict, total=False):
    """
    Lesson as returned by ``GET /lessons``.

    Examples:
        >>> lesson: LessonData = {
        ...     "id": "0f8c...",
        ...     "teacher_id": "7a1e...",
        ...     "teacher_name": "Anna Petrova",
        ...     "start_time": "2025-11-20T10:00:00Z",
        ...     "end_time": "2025-11-20T12:00:00Z",
        ...     "max_students": 4,
        ...     "current_students": 2,
        ...     "credits_cost": 1,
        ...     "color": "#3B82F6",
        ...     "subject": "Mathematics",
        ... }
    """

    id: str
    teacher_id: str
    teacher_name: str
    start_time: str
    end_time: str
    max_students: int
    current_students: int
    credits_cost: int
    color: str
    subject: Optional[str]
    homework_text: Optional[str]
    report_text: Optional[str]
    link: Optional[str]
    applied_from_template: bool
    template_application_id: Optional[str]
    is_recurring: bool
    recurring_group_id: Optional[str]
    is_past: bool
    bookings: List[LessonStudent]


class TeacherSchedule(TypedDict):
    """Response of ``GET /teacher/schedule``."""

    lessons: List[LessonData]
    count: int


def infer_lesson_type(max_students: int) -> LessonType:
    """
    Infer lesson type from capacity.

    Args:
        max_students: Lesson capacity

    Returns:
        INDIVIDUAL for a single seat, GROUP otherwise
    """
    if max_students == INDIVIDUAL_MAX_STUDENTS:
        return LessonType.INDIVIDUAL
    return LessonType.GROUP


def free_seats(lesson: LessonData) -> int:
    """Number of seats still available (never negative)."""
    max_students = lesson.get("max_students") or 0
    current = lesson.get("current_students") or 0
    return max(0, max_students - current)


def is_full(lesson: LessonData) -> bool:
    """Check whether the lesson has no seats left."""
    return (lesson.get("current_students") or 0) >= (lesson.get("max_students") or 0)
