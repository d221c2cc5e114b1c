"""
Lesson endpoints.

Covers lesson CRUD, the teacher schedule, recurring series, bulk edit
("apply to all subsequent lessons"), parent reports and subjects.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import ApiClient, CancelToken, ResourceAPI
from ..models.lesson import LessonData, TeacherSchedule
from ..utils.dates import DateLike, to_local_date_string
from ..validation.lesson_validator import LessonValidator, LessonUpdateValidator


logger = logging.getLogger(__name__)


def extract_lessons(response: Any) -> Any:
    """
    Normalize a lesson list response.

    Accepts a bare list, ``{"data": [...]}``, ``{"lessons": [...]}`` and
    falls back to ``data`` or the response itself. None passes through.
    """
    if response is None or isinstance(response, list):
        return response
    if isinstance(response, dict):
        if isinstance(response.get("data"), list):
            return response["data"]
        if isinstance(response.get("lessons"), list):
            return response["lessons"]
        if "data" in response:
            return response["data"]
    return response


class LessonsAPI(ResourceAPI):
    """
    Wrapper for ``/lessons`` and ``/teacher/schedule``.

    Lesson payloads are validated locally before create/update so
    obviously invalid requests never reach the backend.
    """

    def __init__(self, client: ApiClient):
        super().__init__(client)
        self.create_validator = LessonValidator()
        self.update_validator = LessonUpdateValidator()

    def get_lessons(
        self,
        teacher_id: Optional[str] = None,
        date: Optional[DateLike] = None,
        available: Optional[bool] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> List[LessonData]:
        """
        List lessons.

        Args:
            teacher_id: Only lessons of this teacher
            date: Only lessons on this day (YYYY-MM-DD, local)
            available: Only lessons with free seats (True) or full ones (False)

        Note:
            The backend has no range or subject filters for this endpoint;
            use get_teacher_schedule for date ranges.
        """
        response = self.client.get(
            "/lessons",
            params={
                "teacher_id": teacher_id,
                "date": to_local_date_string(date) if date else None,
                "available": available,
            },
            cancel_token=cancel_token,
        )
        return extract_lessons(response)

    def get_available_slots(self, teacher_id: Optional[str] = None,
                            date: Optional[DateLike] = None,
                            cancel_token: Optional[CancelToken] = None) -> List[LessonData]:
        return self.get_lessons(teacher_id=teacher_id, date=date, available=True,
                                cancel_token=cancel_token)

    def get_my_lessons(self, cancel_token: Optional[CancelToken] = None) -> List[LessonData]:
        """Lessons of the current user (booked ones for students, taught ones for teachers)."""
        return extract_lessons(self.client.get("/lessons/my", cancel_token=cancel_token))

    def get_teacher_schedule(
        self,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        teacher_id: Optional[str] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> Optional[TeacherSchedule]:
        """
        Teacher schedule for a date range.

        Dates are sent as local YYYY-MM-DD so a range never shifts by a
        day for users east of UTC.

        Returns:
            ``{"lessons": [...], "count": N}``
        """
        response = self.client.get(
            "/teacher/schedule",
            params={
                "start_date": to_local_date_string(start_date) if start_date else None,
                "end_date": to_local_date_string(end_date) if end_date else None,
                "teacher_id": teacher_id,
            },
            cancel_token=cancel_token,
        )

        if response is None:
            return None
        if isinstance(response, list):
            return {"lessons": response, "count": len(response)}
        if isinstance(response, dict):
            if response.get("data"):
                return response["data"]
            if isinstance(response.get("lessons"), list):
                return {
                    "lessons": response["lessons"],
                    "count": response.get("count") or len(response["lessons"]),
                }
        return response

    def get_lesson(self, lesson_id: str,
                   cancel_token: Optional[CancelToken] = None) -> LessonData:
        return self.client.get(f"/lessons/{lesson_id}", cancel_token=cancel_token)

    def create_lesson(self, lesson_data: Dict[str, Any]) -> LessonData:
        """
        Create a lesson.

        Raises:
            ValueError: If the payload breaks lesson rules (see LessonValidator)
            APIError: If the backend rejects it
        """
        validation = self.create_validator.validate(lesson_data)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())

        lesson = self.client.post("/lessons", lesson_data)
        logger.info(f"Lesson created: {lesson.get('id') if isinstance(lesson, dict) else lesson}")
        return lesson

    def update_lesson(self, lesson_id: str, updates: Dict[str, Any]) -> LessonData:
        """
        Update a lesson.

        ``updates`` may include ``apply_to_future`` to propagate the
        change through a recurring series.

        Raises:
            ValueError: If lesson_id is missing, updates is not a dict,
                or the updates break lesson rules
        """
        if not lesson_id:
            raise ValueError("lesson_id is required")
        if not isinstance(updates, dict):
            raise ValueError("updates must be a non-null object")

        validation = self.update_validator.validate(updates)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())

        return self.client.put(f"/lessons/{lesson_id}", updates)

    def delete_lesson(self, lesson_id: str, delete_series: bool = False) -> Any:
        """Delete a lesson, or its whole recurring series with ``delete_series``."""
        params = {"delete_series": True} if delete_series else None
        return self.client.delete(f"/lessons/{lesson_id}", params=params)

    def get_lesson_students(self, lesson_id: str,
                            cancel_token: Optional[CancelToken] = None) -> Dict[str, Any]:
        """Students booked on a lesson, as ``{"students": [...]}``."""
        response = self.client.get(f"/lessons/{lesson_id}/students", cancel_token=cancel_token)
        if isinstance(response, list):
            return {"students": response}
        return response

    def send_report_to_parents(self, lesson_id: str) -> Dict[str, Any]:
        """
        Send the lesson report to parents over Telegram.

        Returns:
            ``{"sent", "failed", "total_students", "errors"}``
        """
        return self.client.post(f"/lessons/{lesson_id}/report/send-to-parents", {})

    def create_recurring_series(self, lesson_id: str) -> Dict[str, Any]:
        """
        Turn a lesson into a weekly series.

        The backend decides the series length (one semester).

        Returns:
            ``{"count": N, "lessons": [...]}``
        """
        return self.client.post(f"/lessons/{lesson_id}/recurring", {})

    def cancel_recurring_series(self, lesson_id: str) -> Dict[str, Any]:
        """Delete the future lessons of a series. Returns ``{"message", "deleted_count"}``."""
        return self.client.delete(f"/lessons/{lesson_id}/recurring")

    def apply_to_all_subsequent(self, lesson_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply one modification to this lesson and every later one in its series.

        Args:
            lesson_id: Lesson the edit started from
            payload: Built by services.modification.build_apply_to_all_payload

        Returns:
            Modification record including ``affected_lessons_count``
        """
        result = self.client.post(f"/lessons/{lesson_id}/apply-to-all", payload)
        affected = result.get("affected_lessons_count") if isinstance(result, dict) else None
        logger.info(
            f"Bulk edit {payload.get('modification_type')} applied to lesson {lesson_id}: "
            f"{affected} lessons affected"
        )
        return result

    def get_subjects(self, cancel_token: Optional[CancelToken] = None) -> List[Dict[str, Any]]:
        response = self.client.get("/subjects", cancel_token=cancel_token)
        if isinstance(response, dict):
            return response.get("subjects") or response.get("data") or []
        return response or []
