"""
Template apply preview.

Before a template is applied to a week, the admin sees which students
will be booked, how many credits each will be charged, and which
lessons will be skipped because the student already has a booking at
that time. Applying is blocked while any student lacks the credits.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..api.bookings import BookingsAPI
from ..api.credits import CreditsAPI
from ..api.errors import APIError
from ..api.templates import TemplatesAPI
from ..models.booking import BookingData
from ..models.result import Result
from ..models.template import TemplateData, TemplateLessonEntry
from ..utils.dates import DateLike, get_week_start, parse_datetime, to_local_date_string
from .concurrency import DEFAULT_MAX_WORKERS
from .notifications import NotificationCenter


logger = logging.getLogger(__name__)


@dataclass
class StudentPreview:
    """What applying the template means for one student."""

    student_id: str
    name: str
    credits_deducted: int = 0
    existing_bookings: int = 0


@dataclass
class CreditIssue:
    """A student who cannot pay for the template lessons."""

    student_id: str
    student_name: str
    balance: float
    required: int
    fetch_error: bool = False

    def describe(self) -> str:
        return f"{self.student_name} (balance: {self.balance}, required: {self.required})"


@dataclass
class TemplatePreview:
    template_name: str
    lessons_count: int
    week_start_date: str
    students: List[StudentPreview] = field(default_factory=list)
    credit_issues: List[CreditIssue] = field(default_factory=list)

    @property
    def can_apply(self) -> bool:
        return not self.credit_issues

    def to_records(self) -> List[Dict[str, Any]]:
        """Rows for CSV/JSON export."""
        issues = {issue.student_id: issue for issue in self.credit_issues}
        rows = []
        for student in self.students:
            issue = issues.get(student.student_id)
            rows.append({
                "student_id": student.student_id,
                "name": student.name,
                "credits_deducted": student.credits_deducted,
                "existing_bookings": student.existing_bookings,
                "balance": issue.balance if issue else None,
                "insufficient_credits": issue is not None,
            })
        return rows


def student_display_name(student: Dict[str, Any]) -> str:
    """
    First non-blank of student_name, name, full_name, email, else ``ID: {id}``.

    Examples:
        >>> student_display_name({"student_id": "s-1", "student_name": "  ", "email": "a@b.c"})
        'a@b.c'
        >>> student_display_name({"student_id": "s-1"})
        'ID: s-1'
    """
    for key in ("student_name", "name", "full_name", "email"):
        value = student.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return f"ID: {student.get('student_id')}"


def _parse_clock(value: str) -> time:
    parts = [int(p) for p in value.split(":")]
    while len(parts) < 3:
        parts.append(0)
    return time(parts[0], parts[1], parts[2])


def template_lesson_interval(entry: TemplateLessonEntry, week_start: date) -> Tuple[datetime, datetime]:
    """
    Concrete local start/end of a template slot in the given week.

    ``day_of_week`` 0 is the Monday ``week_start`` itself.
    """
    day = week_start + timedelta(days=entry["day_of_week"])
    start = datetime.combine(day, _parse_clock(entry["start_time"])).astimezone()
    end = datetime.combine(day, _parse_clock(entry["end_time"])).astimezone()
    return start, end


def _has_conflict(student_id: str, start: datetime, end: datetime,
                  bookings: List[BookingData]) -> bool:
    for booking in bookings:
        if booking.get("student_id") != student_id or booking.get("status") != "active":
            continue
        if not booking.get("start_time") or not booking.get("end_time"):
            continue
        booking_start = parse_datetime(booking["start_time"])
        booking_end = parse_datetime(booking["end_time"])
        if booking_start < end and booking_end > start:
            return True
    return False


def build_template_preview(
    template: TemplateData,
    week_start: DateLike,
    existing_bookings: List[BookingData]
) -> TemplatePreview:
    """
    Compute per-student charges for applying ``template`` to a week.

    A student is charged one credit per template lesson unless they
    already hold an active booking overlapping that lesson, in which
    case the lesson counts under ``existing_bookings`` instead.

    Args:
        template: Template with ``lessons`` (each with ``students``)
        week_start: Monday of the target week
        existing_bookings: Active bookings of all students
    """
    monday = get_week_start(week_start)
    lessons = template.get("lessons") or []
    students: Dict[str, StudentPreview] = {}

    for entry in lessons:
        entry_students = entry.get("students") or []
        for student in entry_students:
            student_id = student.get("student_id")
            if student_id not in students:
                students[student_id] = StudentPreview(student_id, student_display_name(student))

        try:
            start, end = template_lesson_interval(entry, monday)
        except (KeyError, TypeError, ValueError) as e:
            # Students stay listed, the slot is just not counted
            logger.warning(f"Skipping template lesson {entry.get('id')} with invalid time: {e}")
            continue

        for student in entry_students:
            student_id = student.get("student_id")
            if _has_conflict(student_id, start, end, existing_bookings):
                students[student_id].existing_bookings += 1
            else:
                students[student_id].credits_deducted += 1

    return TemplatePreview(
        template_name=template.get("name") or "",
        lessons_count=template.get("lesson_count") or len(lessons),
        week_start_date=monday.isoformat(),
        students=list(students.values()),
    )


def validate_credits_before_apply(
    students: List[StudentPreview],
    fetch_balance: Callable[[str], float],
    max_workers: int = DEFAULT_MAX_WORKERS
) -> List[CreditIssue]:
    """
    Check every charged student's balance, in parallel.

    A balance that cannot be fetched counts as insufficient.

    Args:
        students: Preview rows
        fetch_balance: Returns the balance of a student id
    """
    charged = [s for s in students if s.credits_deducted > 0]
    if not charged:
        return []

    def check(student: StudentPreview) -> Optional[CreditIssue]:
        try:
            balance = fetch_balance(student.student_id) or 0
        except APIError as e:
            logger.warning(f"Failed to fetch credits for student {student.student_id}: {e.message}")
            return CreditIssue(student.student_id, student.name, 0, student.credits_deducted,
                               fetch_error=True)
        if balance < student.credits_deducted:
            return CreditIssue(student.student_id, student.name, balance, student.credits_deducted)
        return None

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(charged)))) as executor:
        checked = list(executor.map(check, charged))

    issues = [issue for issue in checked if issue is not None]
    logger.debug(f"Credit validation: {len(students)} students, {len(charged)} charged, "
                 f"{len(issues)} issues")
    return issues


class TemplateApplyService:
    """
    Preview and apply a template for one week.

    Examples:
        >>> service = TemplateApplyService(templates_api, bookings_api, credits_api)
        >>> preview = service.preview("template-uuid", "2025-12-01").unwrap()
        >>> if preview.can_apply:
        ...     service.apply("template-uuid", "2025-12-01")
    """

    def __init__(
        self,
        templates: TemplatesAPI,
        bookings: BookingsAPI,
        credits: CreditsAPI,
        notifications: Optional[NotificationCenter] = None,
        max_workers: int = DEFAULT_MAX_WORKERS
    ):
        self.templates = templates
        self.bookings = bookings
        self.credits = credits
        self.notifications = notifications or NotificationCenter()
        self.max_workers = max_workers

    def preview(self, template_id: str, week_start: DateLike) -> Result[TemplatePreview]:
        try:
            template = self.templates.get_template(template_id)
            existing = self.bookings.get_bookings(status="active")
            preview = build_template_preview(template, week_start, existing)
            preview.credit_issues = validate_credits_before_apply(
                preview.students,
                lambda student_id: self.credits.get_user_credits(student_id)["balance"],
                self.max_workers,
            )
        except APIError as e:
            message = e.message or "Failed to load template preview"
            logger.error(f"Template preview failed: {message}")
            return Result.failure(message, e)

        return Result.success(preview)

    def apply(self, template_id: str, week_start: DateLike,
              preview: Optional[TemplatePreview] = None) -> Result[Dict[str, Any]]:
        """
        Apply the template unless a student lacks credits.

        Args:
            preview: A preview computed earlier; built here when omitted
        """
        if preview is None:
            previewed = self.preview(template_id, week_start)
            if previewed.is_failure:
                self.notifications.error(previewed.message)
                return Result.failure(previewed.message, previewed.error)
            preview = previewed.value

        if not preview.can_apply:
            names = ", ".join(issue.describe() for issue in preview.credit_issues)
            message = f"Insufficient credits for students: {names}. Top up credits first."
            self.notifications.error(message)
            return Result.failure(message)

        try:
            result = self.templates.apply_template(template_id, to_local_date_string(
                get_week_start(week_start)))
        except APIError as e:
            message = e.message or "Failed to apply template"
            self.notifications.error(message)
            return Result.failure(message, e)

        self.notifications.success("Template applied")
        return Result.success(result, "Template applied")

    def rollback(self, template_id: str, week_start: DateLike) -> Result[Dict[str, Any]]:
        try:
            result = self.templates.rollback_template(template_id, get_week_start(week_start))
        except APIError as e:
            message = e.message or "Failed to roll back template"
            self.notifications.error(message)
            return Result.failure(message, e)

        self.notifications.success("Template rolled back")
        return Result.success(result, "Template rolled back")
