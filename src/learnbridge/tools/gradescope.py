"""Tool handlers for Gradescope.

The Gradescope client only exists when both email and password are set;
otherwise every handler answers with a configuration hint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from learnbridge.tools import render

if TYPE_CHECKING:
    from learnbridge.gradescope import GradescopeClient
    from learnbridge.state import AppState

NOT_CONFIGURED = (
    "Gradescope is not configured. Set LEARNBRIDGE__GRADESCOPE__EMAIL and "
    "LEARNBRIDGE__GRADESCOPE__PASSWORD to enable Gradescope tools."
)


def _client(state: AppState, tool: str, **context: str) -> GradescopeClient | None:
    structlog.get_logger().bind(tool=tool, **context).info("handler_called")
    return state.gradescope


async def get_courses(state: AppState) -> str:
    client = _client(state, "get_gradescope_courses")
    if client is None:
        return NOT_CONFIGURED
    courses = await client.get_courses()
    return render(courses) if courses is not None else "Failed to retrieve Gradescope courses"


async def get_course_by_name(course_name: str, state: AppState) -> str:
    client = _client(state, "get_gradescope_course_by_name", course_name=course_name)
    if client is None:
        return NOT_CONFIGURED
    course = await client.get_course_by_name(course_name)
    return render(course) if course is not None else "Course not found"


async def get_assignments(course_id: str, state: AppState) -> str:
    client = _client(state, "get_gradescope_assignments", course_id=course_id)
    if client is None:
        return NOT_CONFIGURED
    assignments = await client.get_assignments(course_id)
    return render(assignments) if assignments is not None else "Failed to retrieve assignments"


async def get_assignment_by_name(course_id: str, assignment_name: str, state: AppState) -> str:
    client = _client(
        state,
        "get_gradescope_assignment_by_name",
        course_id=course_id,
        assignment_name=assignment_name,
    )
    if client is None:
        return NOT_CONFIGURED
    assignment = await client.get_assignment_by_name(course_id, assignment_name)
    return render(assignment) if assignment is not None else "Assignment not found"


async def search(query: str, state: AppState) -> str:
    client = _client(state, "search_gradescope", query=query)
    if client is None:
        return NOT_CONFIGURED
    result = await client.search(query)
    if result is None:
        return render({"error": "Gradescope search failed"})
    return render(result)
