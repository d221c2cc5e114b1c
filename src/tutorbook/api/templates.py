"""
Lesson template endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import CancelToken, ResourceAPI
from ..models.template import TemplateApplication, TemplateData, TemplateLessonEntry
from ..utils.dates import DateLike, to_local_date_string
from ..validation.template_validator import (
    TemplateLessonValidator,
    apply_template_lesson_defaults,
)


logger = logging.getLogger(__name__)


class TemplatesAPI(ResourceAPI):
    """
    Wrapper for ``/templates``.

    Applying a template creates the week's lessons and books the
    assigned students (debiting their credits); rolling back removes
    them again. ``dry_run`` returns the would-be result without changes.
    """

    lesson_validator = TemplateLessonValidator()

    def get_templates(self, cancel_token: Optional[CancelToken] = None) -> List[TemplateData]:
        response = self.client.get("/templates", cancel_token=cancel_token)
        if isinstance(response, list):
            return response
        if isinstance(response, dict):
            return response.get("templates") or response.get("data") or []
        return []

    def get_template(self, template_id: str,
                     cancel_token: Optional[CancelToken] = None) -> TemplateData:
        return self.client.get(f"/templates/{template_id}", cancel_token=cancel_token)

    def create_template(self, template_data: Dict[str, Any]) -> TemplateData:
        return self.client.post("/templates", template_data)

    def update_template(self, template_id: str, updates: Dict[str, Any]) -> TemplateData:
        return self.client.put(f"/templates/{template_id}", updates)

    def delete_template(self, template_id: str) -> Any:
        return self.client.delete(f"/templates/{template_id}")

    def apply_template(
        self,
        template_id: str,
        week_start_date: DateLike,
        dry_run: bool = False,
        cancel_token: Optional[CancelToken] = None
    ) -> TemplateApplication:
        """
        Apply a template to the week starting on ``week_start_date`` (a Monday).

        Args:
            template_id: Template to apply
            week_start_date: Monday of the target week
            dry_run: Validate only, sent as ``?dry_run=true``
        """
        week = to_local_date_string(week_start_date)
        params = {"dry_run": True} if dry_run else None

        result = self.client.request(
            "POST", f"/templates/{template_id}/apply",
            params=params, json={"week_start_date": week}, cancel_token=cancel_token,
        )
        if not dry_run:
            created = result.get("created_lessons_count") if isinstance(result, dict) else None
            logger.info(f"Template {template_id} applied to week {week}: {created} lessons created")
        return result

    def rollback_template(self, template_id: str, week_start_date: DateLike) -> Dict[str, Any]:
        """Undo the application of a template for a week, refunding credits."""
        week = to_local_date_string(week_start_date)
        result = self.client.post(f"/templates/{template_id}/rollback",
                                  {"week_start_date": week})
        logger.info(f"Template {template_id} rolled back for week {week}")
        return result

    def create_template_lesson(self, template_id: str,
                               lesson_data: Dict[str, Any]) -> TemplateLessonEntry:
        """
        Add a lesson slot to a template.

        Defaults are filled in before validation.

        Raises:
            ValueError: If the slot is invalid
        """
        payload = apply_template_lesson_defaults(lesson_data)
        validation = self.lesson_validator.validate(payload)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())
        return self.client.post(f"/templates/{template_id}/lessons", payload)

    def update_template_lesson(self, template_id: str, lesson_id: str,
                               updates: Dict[str, Any]) -> TemplateLessonEntry:
        return self.client.put(f"/templates/{template_id}/lessons/{lesson_id}", updates)

    def delete_template_lesson(self, template_id: str, lesson_id: str) -> Any:
        return self.client.delete(f"/templates/{template_id}/lessons/{lesson_id}")
