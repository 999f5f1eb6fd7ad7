from __future__ import annotations

from learnbridge.models.assignment import Assignment
from learnbridge.models.cache import CacheEntry, CacheKey, CacheStats
from learnbridge.models.canvas import (
    CanvasAssignment,
    CanvasCourse,
    CanvasFile,
    CanvasModule,
    CanvasModuleItem,
    CanvasSubmission,
)
from learnbridge.models.gradescope import GradescopeCourse, GradescopeCourses, QueryAnalysis
from learnbridge.models.ids import NumericId

__all__ = [
    # shared
    "Assignment",
    # cache
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    # canvas
    "CanvasAssignment",
    "CanvasCourse",
    "CanvasFile",
    "CanvasModule",
    "CanvasModuleItem",
    "CanvasSubmission",
    # gradescope
    "GradescopeCourse",
    "GradescopeCourses",
    "QueryAnalysis",
    # ids
    "NumericId",
]
