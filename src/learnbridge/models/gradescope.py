from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class GradescopeCourse(BaseModel):
    """Single course box scraped from the Gradescope account page."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str  # Short name, e.g. "CS 101"
    full_name: str
    semester: str = ""
    year: str = ""
    num_grades_published: str | None = None  # Instructor view only
    num_assignments: str = ""


class GradescopeCourses(BaseModel):
    """All courses for the account, keyed by course ID within each role."""

    model_config = ConfigDict(frozen=True)

    student: dict[str, GradescopeCourse] = {}
    instructor: dict[str, GradescopeCourse] = {}


class QueryAnalysis(BaseModel):
    """Coarse routing hint for a natural-language Gradescope request."""

    type: Literal["get_courses", "get_assignments", "get_submission"] | None = None
    confidence: float = 0.0
    message: str | None = None
