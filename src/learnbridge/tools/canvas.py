"""Tool handlers for Canvas.

When no API key is configured every handler answers with a configuration
hint and performs no network I/O.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from learnbridge.tools import render

if TYPE_CHECKING:
    from learnbridge.state import AppState

NOT_CONFIGURED = (
    "Canvas is not configured. Set LEARNBRIDGE__CANVAS__API_KEY to enable Canvas tools."
)


async def get_courses(state: AppState) -> str:
    structlog.get_logger().bind(tool="get_courses").info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    courses = await state.canvas.get_courses()
    return render(courses) if courses is not None else "Failed to retrieve courses"


async def get_modules(course_id: str, state: AppState) -> str:
    structlog.get_logger().bind(tool="get_modules", course_id=course_id).info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    modules = await state.canvas.get_modules(course_id)
    return render(modules) if modules is not None else "Failed to retrieve modules"


async def get_module_items(course_id: str, module_id: str, state: AppState) -> str:
    log = structlog.get_logger().bind(
        tool="get_module_items", course_id=course_id, module_id=module_id
    )
    log.info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    items = await state.canvas.get_module_items(course_id, module_id)
    return render(items) if items is not None else "Failed to retrieve module items"


async def get_file_url(course_id: str, file_id: str, state: AppState) -> str:
    log = structlog.get_logger().bind(tool="get_file_url", course_id=course_id, file_id=file_id)
    log.info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    url = await state.canvas.get_file_url(course_id, file_id)
    return url or "Failed to retrieve file URL"


async def get_course_assignments(course_id: str, bucket: str | None, state: AppState) -> str:
    log = structlog.get_logger().bind(
        tool="get_course_assignments", course_id=course_id, bucket=bucket
    )
    log.info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    assignments = await state.canvas.get_course_assignments(course_id, bucket)
    return render(assignments) if assignments is not None else "Failed to retrieve assignments"


async def get_assignments_by_course_name(
    course_name: str, bucket: str | None, state: AppState
) -> str:
    log = structlog.get_logger().bind(
        tool="get_assignments_by_course_name", course_name=course_name, bucket=bucket
    )
    log.info("handler_called")
    if not state.canvas.is_configured:
        return NOT_CONFIGURED
    assignments = await state.canvas.get_assignments_by_course_name(course_name, bucket)
    return render(assignments) if assignments is not None else "Failed to retrieve assignments"
