from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Assignment(BaseModel):
    """Assignment snapshot shared by the Canvas and Gradescope clients."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    release_date: datetime | None = None
    due_date: datetime | None = None
    late_due_date: datetime | None = None
    submission_status: str | None = None
    grade: float | None = None
    max_grade: float | None = None
