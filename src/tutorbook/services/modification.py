"""
Bulk edit detection for recurring lessons.

When a lesson of a recurring series is edited, the admin may apply the
same change to every subsequent lesson. Only one kind of change is
propagated at a time; this module finds which one.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.lesson import LessonData
from ..utils.dates import parse_datetime


logger = logging.getLogger(__name__)


ADD_STUDENT = "add_student"
REMOVE_STUDENT = "remove_student"
CHANGE_TEACHER = "change_teacher"
CHANGE_TIME = "change_time"
CHANGE_CAPACITY = "change_capacity"

UNKNOWN_TEACHER = "Unknown Teacher"


def _student_key(student: Dict[str, Any]) -> Any:
    return student.get("student_id") or student.get("id")


def get_added_students(original: List[Dict[str, Any]],
                       edited: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    original_ids = {_student_key(s) for s in original or []}
    return [s for s in edited or [] if _student_key(s) not in original_ids]


def get_removed_students(original: List[Dict[str, Any]],
                         edited: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    edited_ids = {_student_key(s) for s in edited or []}
    return [s for s in original or [] if _student_key(s) not in edited_ids]


def _teacher_changed(original: LessonData, edited: LessonData) -> bool:
    return edited.get("teacher_id") is not None and \
        original.get("teacher_id") != edited.get("teacher_id")


def _time_changed(original: LessonData, edited: LessonData) -> bool:
    # end_time follows start_time, so only the start is compared
    if not edited.get("start_time"):
        return False
    if not original.get("start_time"):
        return True
    return parse_datetime(original["start_time"]) != parse_datetime(edited["start_time"])


def _capacity_changed(original: LessonData, edited: LessonData) -> bool:
    return edited.get("max_students") is not None and \
        original.get("max_students") != edited.get("max_students")


def detect_modification_type(
    original_lesson: LessonData,
    edited_lesson: LessonData,
    original_students: Optional[List[Dict[str, Any]]] = None,
    edited_students: Optional[List[Dict[str, Any]]] = None
) -> Optional[str]:
    """
    Name the single change made to a lesson.

    Priority: added student, removed student, teacher, start time,
    capacity. Returns None when nothing relevant changed.

    Examples:
        >>> detect_modification_type({"teacher_id": "t-1"}, {"teacher_id": "t-2"})
        'change_teacher'
        >>> detect_modification_type({"max_students": 4}, {"max_students": 4}) is None
        True
    """
    original_students = original_students or []
    edited_students = edited_students or []

    if get_added_students(original_students, edited_students):
        return ADD_STUDENT
    if get_removed_students(original_students, edited_students):
        return REMOVE_STUDENT
    if _teacher_changed(original_lesson, edited_lesson):
        return CHANGE_TEACHER
    if _time_changed(original_lesson, edited_lesson):
        return CHANGE_TIME
    if _capacity_changed(original_lesson, edited_lesson):
        return CHANGE_CAPACITY
    return None


def get_modification_details(
    modification_type: Optional[str],
    original_lesson: LessonData,
    edited_lesson: LessonData,
    original_students: Optional[List[Dict[str, Any]]] = None,
    edited_students: Optional[List[Dict[str, Any]]] = None,
    available_teachers: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    Details shown in the "apply to all subsequent" confirmation.

    Only the first added or removed student is reported.
    """
    details: Dict[str, Any] = {}

    if modification_type in (ADD_STUDENT, REMOVE_STUDENT):
        if modification_type == ADD_STUDENT:
            changed = get_added_students(original_students, edited_students)
        else:
            changed = get_removed_students(original_students, edited_students)
        if changed:
            student = changed[0]
            details["student_id"] = _student_key(student)
            details["student_name"] = student.get("student_name") or student.get("full_name")

    elif modification_type == CHANGE_TEACHER:
        teacher_id = edited_lesson.get("teacher_id")
        details["teacher_id"] = teacher_id
        teacher = next((t for t in available_teachers or [] if t.get("id") == teacher_id), None)
        details["teacher_name"] = teacher.get("full_name") if teacher else UNKNOWN_TEACHER

    elif modification_type == CHANGE_TIME:
        details["new_start_time"] = edited_lesson.get("start_time")

    elif modification_type == CHANGE_CAPACITY:
        details["new_max_students"] = edited_lesson.get("max_students")

    return details


def build_apply_to_all_payload(modification_type: str, details: Dict[str, Any]) -> Dict[str, Any]:
    """
    Request body for ``POST /lessons/{id}/apply-to-all``.

    Raises:
        ValueError: For an unknown modification type or missing details
    """
    fields = {
        ADD_STUDENT: ("student_id",),
        REMOVE_STUDENT: ("student_id",),
        CHANGE_TEACHER: ("teacher_id",),
        CHANGE_TIME: ("new_start_time",),
        CHANGE_CAPACITY: ("new_max_students",),
    }
    if modification_type not in fields:
        raise ValueError(f"Unknown modification type: {modification_type}")

    payload: Dict[str, Any] = {"modification_type": modification_type}
    for name in fields[modification_type]:
        if details.get(name) is None:
            raise ValueError(f"Missing {name} for {modification_type}")
        payload[name] = details[name]

    logger.debug(f"Apply-to-all payload: {payload}")
    return payload
