"""Schemas for Canvas REST payloads.

Canvas returns numeric IDs; they are coerced to strings so that IDs coming
from tool arguments and IDs coming from the API compare equal.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from learnbridge.models.assignment import Assignment

_CANVAS_CONFIG = ConfigDict(frozen=True, coerce_numbers_to_str=True, extra="ignore")


class CanvasCourse(BaseModel):
    model_config = _CANVAS_CONFIG

    id: str
    name: str | None = None  # Absent for access-restricted enrollments
    course_code: str | None = None


class CanvasModule(BaseModel):
    model_config = _CANVAS_CONFIG

    id: str
    name: str
    position: int | None = None
    items_count: int | None = None
    published: bool | None = None
    state: str | None = None


class CanvasModuleItem(BaseModel):
    model_config = _CANVAS_CONFIG

    id: str
    title: str
    type: str
    module_id: str | None = None
    position: int | None = None
    indent: int | None = None
    content_id: str | None = None
    html_url: str | None = None
    url: str | None = None
    external_url: str | None = None
    page_url: str | None = None


class CanvasFile(BaseModel):
    model_config = _CANVAS_CONFIG

    id: str
    display_name: str | None = None
    filename: str | None = None
    url: str


class CanvasSubmission(BaseModel):
    model_config = _CANVAS_CONFIG

    workflow_state: str | None = None
    score: float | None = None
    submitted_at: datetime | None = None


class CanvasAssignment(BaseModel):
    model_config = _CANVAS_CONFIG

    id: str
    name: str
    unlock_at: datetime | None = None
    due_at: datetime | None = None
    lock_at: datetime | None = None
    points_possible: float | None = None
    submission: CanvasSubmission | None = None

    def to_assignment(self) -> Assignment:
        submission = self.submission
        return Assignment(
            id=self.id,
            name=self.name,
            release_date=self.unlock_at,
            due_date=self.due_at,
            late_due_date=self.lock_at,
            submission_status=submission.workflow_state if submission else None,
            grade=submission.score if submission else None,
            max_grade=self.points_possible,
        )
