"""
Data loading for the lesson editor and the admin calendar.

Each loader fetches its independent resources in parallel and keeps
what succeeded. Losing the students or teachers makes the editor
unusable and is reported as an error; other failures only degrade the
view and are logged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..api.bookings import BookingsAPI
from ..api.credits import CreditsAPI
from ..api.lessons import LessonsAPI
from ..api.users import UsersAPI
from ..models.lesson import LessonData
from ..models.user import UserData, UserRole
from .concurrency import (
    DEFAULT_MAX_WORKERS,
    Failure,
    all_settled_with_labels,
    failure_warning,
    is_cancelled_failure,
    with_fallback,
)
from .notifications import NotificationCenter


logger = logging.getLogger(__name__)


CRITICAL_LABELS = ("Students", "Teachers")
UNKNOWN_STUDENT = "Unknown student"
NO_EMAIL = "No email"


@dataclass
class EnrolledStudent:
    booking_id: str
    student_id: str
    student_name: str
    student_email: str


@dataclass
class LessonEditorData:
    """
    Everything the lesson editor shows.

    Attributes:
        students: Students with an active booking on the lesson
        credits_map: Balance per user id
        available_students: Students not yet enrolled
        teachers: Teachers the lesson can be assigned to
        failures: Resources that failed to load
        warning: ``Failed to load: ...`` when something failed
    """

    lesson: LessonData
    students: List[EnrolledStudent] = field(default_factory=list)
    credits_map: Dict[str, float] = field(default_factory=dict)
    available_students: List[UserData] = field(default_factory=list)
    teachers: List[UserData] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    warning: Optional[str] = None

    @property
    def has_critical_failure(self) -> bool:
        return any(f.label in CRITICAL_LABELS for f in self.failures)


@dataclass
class DashboardData:
    lessons: List[LessonData] = field(default_factory=list)
    teachers: List[UserData] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    warning: Optional[str] = None


def build_credits_map(all_credits: Any) -> Dict[str, float]:
    """
    Map user id to balance from ``{"balances": [{user_id, balance}]}``.

    Examples:
        >>> build_credits_map({"balances": [{"user_id": "u-1", "balance": "3"}]})
        {'u-1': 3.0}
    """
    credits_map: Dict[str, float] = {}
    balances = all_credits.get("balances") if isinstance(all_credits, dict) else None

    for entry in balances or []:
        user_id = entry.get("user_id")
        if not user_id:
            continue
        balance = entry.get("balance")
        if isinstance(balance, (int, float)) and not isinstance(balance, bool):
            credits_map[user_id] = balance
        else:
            try:
                credits_map[user_id] = float(balance)
            except (TypeError, ValueError):
                credits_map[user_id] = 0

    if not credits_map:
        logger.warning("Credit map is empty, students will show 0 credits")
    return credits_map


def enrolled_students(bookings: List[Dict[str, Any]]) -> List[EnrolledStudent]:
    students = []
    for booking in bookings or []:
        if booking.get("status") != "active":
            continue
        students.append(EnrolledStudent(
            booking_id=booking.get("id"),
            student_id=booking.get("student_id") or booking.get("user_id"),
            student_name=booking.get("student_name") or booking.get("user_name") or UNKNOWN_STUDENT,
            student_email=booking.get("student_email") or booking.get("user_email") or NO_EMAIL,
        ))
    return students


def _report(failures: List[Failure], notifications: NotificationCenter) -> Optional[str]:
    visible = [f for f in failures if not is_cancelled_failure(f)]
    warning = failure_warning(visible)
    if warning is None:
        return None

    if any(f.label in CRITICAL_LABELS for f in visible):
        notifications.error(warning)
    else:
        logger.warning(f"Partial data: {warning}")
    return warning


class LessonEditorLoader:
    """
    Loads the lesson editor's data.

    Examples:
        >>> loader = LessonEditorLoader(users_api, bookings_api, credits_api)
        >>> data = loader.load(lesson)
        >>> [s.student_name for s in data.students]
        ['Anna Ivanova']
    """

    def __init__(
        self,
        users: UsersAPI,
        bookings: BookingsAPI,
        credits: CreditsAPI,
        notifications: Optional[NotificationCenter] = None,
        max_workers: int = DEFAULT_MAX_WORKERS
    ):
        self.users = users
        self.bookings = bookings
        self.credits = credits
        self.notifications = notifications or NotificationCenter()
        self.max_workers = max_workers

    def load(self, lesson: LessonData, current_user: Optional[UserData] = None) -> LessonEditorData:
        """
        Load bookings, students, credits and teachers in parallel.

        Args:
            lesson: Lesson being edited
            current_user: Viewer; a methodologist only sees themselves as teacher
        """
        settled = all_settled_with_labels(
            [
                lambda: self.bookings.get_bookings(lesson_id=lesson.get("id")),
                self.users.get_students_all,
                self.credits.get_all_credits,
                self.users.get_assignable_teachers_all,
            ],
            ["Bookings", "Students", "Credits", "Teachers"],
            self.max_workers,
        )
        bookings = with_fallback(settled.results[0], [])
        all_students = with_fallback(settled.results[1], [])
        all_credits = with_fallback(settled.results[2], {"balances": []})
        teachers = with_fallback(settled.results[3], [])

        students = enrolled_students(bookings)
        enrolled_ids = {s.student_id for s in students}
        available = [s for s in all_students or [] if s.get("id") not in enrolled_ids]

        if current_user and current_user.get("role") == UserRole.METHODOLOGIST.value:
            teachers = [{
                "id": current_user.get("id"),
                "full_name": current_user.get("full_name") or current_user.get("email"),
            }]

        return LessonEditorData(
            lesson=lesson,
            students=students,
            credits_map=build_credits_map(all_credits),
            available_students=available,
            teachers=teachers or [],
            failures=settled.failures,
            warning=_report(settled.failures, self.notifications),
        )


class LessonDashboardLoader:
    """Loads the admin calendar: lessons and teachers."""

    def __init__(
        self,
        lessons: LessonsAPI,
        users: UsersAPI,
        notifications: Optional[NotificationCenter] = None,
        max_workers: int = DEFAULT_MAX_WORKERS
    ):
        self.lessons = lessons
        self.users = users
        self.notifications = notifications or NotificationCenter()
        self.max_workers = max_workers

    def load(self, **filters) -> DashboardData:
        settled = all_settled_with_labels(
            [lambda: self.lessons.get_lessons(**filters), self.users.get_teachers_all],
            ["Lessons", "Teachers"],
            self.max_workers,
        )
        warning = failure_warning([f for f in settled.failures if not is_cancelled_failure(f)])
        if warning:
            self.notifications.warning(warning)

        return DashboardData(
            lessons=with_fallback(settled.results[0], []),
            teachers=with_fallback(settled.results[1], []),
            failures=settled.failures,
            warning=warning,
        )
