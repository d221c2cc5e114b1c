"""
Lesson template models.

A template is a weekly pattern of lessons. Applying it to a week
creates concrete lessons and books the assigned students.
"""

from typing import List, Literal, Optional, TypedDict


ApplicationStatus = Literal["applied", "rolled_back", "replaced", "preview"]

DEFAULT_TEMPLATE_LESSON_HOURS = 2
MIN_TEMPLATE_CREDITS_COST = 1
MAX_TEMPLATE_CREDITS_COST = 100


class TemplateStudent(TypedDict, total=False):
    """Student assigned to a template lesson."""

    id: str
    template_lesson_id: str
    student_id: str
    student_name: str


class TemplateLessonEntry(TypedDict, total=False):
    """
    One lesson slot inside a template.

    ``day_of_week`` counts from Monday (0) to Sunday (6); times are
    ``HH:MM:SS`` local wall-clock values.
    """

    id: str
    template_id: str
    day_of_week: int
    start_time: str
    end_time: str
    teacher_id: str
    lesson_type: str
    max_students: int
    credits_cost: int
    color: str
    subject: Optional[str]
    description: Optional[str]
    teacher_name: str
    students: List[TemplateStudent]


class TemplateData(TypedDict, total=False):
    """Template with its lessons."""

    id: str
    admin_id: str
    name: str
    description: Optional[str]
    lesson_count: int
    lessons: List[TemplateLessonEntry]


class TemplateApplication(TypedDict, total=False):
    """Result of applying (or previewing) a template for a week."""

    id: str
    template_id: str
    week_start_date: str
    status: ApplicationStatus
    created_lessons_count: int
    lessons: list
