"""HTML extraction for Gradescope pages.

Gradescope has no API, so every page is treated as untrusted, loosely
structured input. Each extractor returns ``Parsed(data)`` or
``NotFound(reason)`` instead of raising, which lets the client chain view
variants (instructor JSON first, student table second) without try/except
around every selector.

Selector matching is best-effort: a markup change on the site shows up here
as ``NotFound`` or as empty fields, never as an exception.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, NamedTuple, TypeVar

from bs4 import BeautifulSoup, Tag

from learnbridge.models.assignment import Assignment
from learnbridge.models.gradescope import GradescopeCourse, GradescopeCourses

T = TypeVar("T")

INSTRUCTOR_HEADING = "Instructor Courses"
STUDENT_HEADING = "Student Courses"
GENERIC_HEADING = "Your Courses"
CREATE_COURSE_LABEL = "Create a new course"

# Gradescope renders <time datetime="2024-01-15 23:59:00 -0800">
_GRADESCOPE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


@dataclass(frozen=True)
class Parsed(Generic[T]):
    data: T


@dataclass(frozen=True)
class NotFound:
    reason: str


class CourseSection(NamedTuple):
    courses: dict[str, GradescopeCourse]
    is_instructor: bool


def load_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(element: Tag | None) -> str:
    if element is None:
        return ""
    return element.get_text(" ", strip=True)


def _attr(element: Tag | None, name: str) -> str | None:
    if element is None:
        return None
    value = element.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def parse_datetime(value: str | None) -> datetime | None:
    """Parse ISO 8601 or Gradescope's ``YYYY-MM-DD HH:MM:SS +ZZZZ`` form."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, _GRADESCOPE_DATETIME_FORMAT)
    except ValueError:
        return None


def _parse_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Login handshake
# ---------------------------------------------------------------------------


def extract_authenticity_token(soup: BeautifulSoup) -> Parsed[str] | NotFound:
    """Hidden token of the login form on the site root."""
    token = _attr(
        soup.select_one('form[action="/login"] input[name="authenticity_token"]'),
        "value",
    )
    if token is None:
        return NotFound("login form has no authenticity_token")
    return Parsed(token)


def extract_csrf_token(soup: BeautifulSoup) -> Parsed[str] | NotFound:
    token = _attr(soup.select_one('meta[name="csrf-token"]'), "content")
    if token is None:
        return NotFound("page has no csrf-token meta tag")
    return Parsed(token)


# ---------------------------------------------------------------------------
# Account page: courses
# ---------------------------------------------------------------------------


def _find_heading(soup: BeautifulSoup, heading_text: str) -> Tag | None:
    for heading in soup.select("h1.pageHeading"):
        if heading_text in heading.get_text():
            return heading
    return None


def _term_label(term: Tag) -> tuple[str, str]:
    """Split the term's leading text, e.g. ``"Spring 2024"``, into semester and year."""
    if not term.contents:
        return "", ""
    first = term.contents[0]
    label = first.get_text() if isinstance(first, Tag) else str(first)
    parts = label.split()
    semester = parts[0] if parts else ""
    year = parts[1] if len(parts) > 1 else ""
    return semester, year


def _course_anchors(term: Tag) -> list[Tag]:
    anchors = term.find_all("a", href=True)
    if anchors:
        return anchors
    # Current markup puts the course boxes in a sibling container
    container = term.find_next_sibling(class_="courseList--coursesForTerm")
    if container is None:
        return []
    return container.find_all("a", href=True)


def _parse_course_box(
    anchor: Tag, semester: str, year: str, *, instructor_layout: bool
) -> GradescopeCourse | None:
    href = _attr(anchor, "href") or ""
    course_id = href.rstrip("/").split("/")[-1]
    if not course_id:
        return None

    num_grades_published: str | None = None
    if instructor_layout:
        grades = anchor.select_one(".courseBox--noGradesPublised")
        num_grades_published = _text(grades) if grades is not None else None
        assignments = anchor.select_one(
            ".courseBox--assignments.courseBox--assignments-unpublished"
        )
    else:
        assignments = anchor.select_one(".courseBox--assignments")

    return GradescopeCourse(
        id=course_id,
        name=_text(anchor.select_one("h3.courseBox--shortname")),
        full_name=_text(anchor.select_one(".courseBox--name")),
        semester=semester,
        year=year,
        num_grades_published=num_grades_published,
        num_assignments=_text(assignments),
    )


def parse_course_section(soup: BeautifulSoup, heading_text: str) -> Parsed[CourseSection] | NotFound:
    """Parse the course list that follows a ``h1.pageHeading`` with ``heading_text``."""
    heading = _find_heading(soup, heading_text)
    if heading is None:
        return NotFound(f"no {heading_text!r} heading")

    button = heading.find_next_sibling()
    is_instructor = (
        isinstance(button, Tag)
        and button.name == "button"
        and CREATE_COURSE_LABEL in button.get_text()
    )

    courses: dict[str, GradescopeCourse] = {}
    course_list = heading.find_next_sibling(class_="courseList")
    if course_list is None:
        return Parsed(CourseSection(courses, is_instructor))

    instructor_layout = heading_text == INSTRUCTOR_HEADING or is_instructor
    for term in course_list.select(".courseList--term"):
        semester, year = _term_label(term)
        for anchor in _course_anchors(term):
            course = _parse_course_box(anchor, semester, year, instructor_layout=instructor_layout)
            if course is not None:
                courses[course.id] = course

    return Parsed(CourseSection(courses, is_instructor))


def parse_courses(soup: BeautifulSoup) -> GradescopeCourses:
    """Group account-page courses by role.

    Role-specific headings win; the generic "Your Courses" heading is only
    consulted when neither yields a course, and its role is decided by the
    presence of the create-course button.
    """
    instructor: dict[str, GradescopeCourse] = {}
    student: dict[str, GradescopeCourse] = {}

    section = parse_course_section(soup, INSTRUCTOR_HEADING)
    if isinstance(section, Parsed):
        instructor = section.data.courses

    section = parse_course_section(soup, STUDENT_HEADING)
    if isinstance(section, Parsed):
        student = section.data.courses

    if not instructor and not student:
        section = parse_course_section(soup, GENERIC_HEADING)
        if isinstance(section, Parsed):
            if section.data.is_instructor:
                instructor = section.data.courses
            else:
                student = section.data.courses

    return GradescopeCourses(student=student, instructor=instructor)


# ---------------------------------------------------------------------------
# Course page: assignments
# ---------------------------------------------------------------------------


def parse_assignments_instructor_view(soup: BeautifulSoup) -> Parsed[list[Assignment]] | NotFound:
    """Read the React props blob that backs the instructor assignments table."""
    props = _attr(soup.select_one('div[data-react-class="AssignmentsTable"]'), "data-react-props")
    if props is None:
        return NotFound("no AssignmentsTable props")

    try:
        table = json.loads(props)
        rows = table.get("table_data") or []
    except (json.JSONDecodeError, AttributeError) as exc:
        return NotFound(f"AssignmentsTable props are not a JSON object: {exc}")

    assignments: list[Assignment] = []
    for row in rows:
        # table_data also carries section rows
        if not isinstance(row, dict) or row.get("type") != "assignment":
            continue
        window = row.get("submission_window") or {}
        if not isinstance(window, dict):
            window = {}
        assignments.append(
            Assignment(
                id=str(row.get("url") or "").rstrip("/").split("/")[-1],
                name=str(row.get("title") or ""),
                release_date=parse_datetime(window.get("release_date")),
                due_date=parse_datetime(window.get("due_date")),
                late_due_date=parse_datetime(window.get("hard_due_date")),
                max_grade=_parse_float(row.get("total_points")),
            )
        )
    return Parsed(assignments)


def _student_assignment_id(name_cell: Tag) -> str:
    link = name_cell.select_one("a[href]")
    if link is not None:
        # /courses/<course>/assignments/<assignment>/submissions/<submission>
        parts = (_attr(link, "href") or "").split("/")
        return parts[4] if len(parts) > 4 else ""
    button = name_cell.select_one("button.js-submitAssignment")
    return _attr(button, "data-assignment-id") or ""


def _parse_student_row(row: Tag) -> Assignment | None:
    cells = row.find_all(["th", "td"])
    if len(cells) < 3:
        return None
    name_cell, points_cell, date_cell = cells[0], cells[1], cells[2]

    grade: float | None = None
    max_grade: float | None = None
    submission_status = "Not Submitted"

    points_text = _text(points_cell)
    if " / " in points_text:
        earned, _, possible = points_text.partition(" / ")
        try:
            grade, max_grade = float(earned), float(possible)
            submission_status = "Submitted"
        except ValueError:
            grade = max_grade = None
    else:
        submission_status = points_text

    due_markers = date_cell.select(".submissionTimeChart--dueDate")
    return Assignment(
        id=_student_assignment_id(name_cell),
        name=_text(name_cell),
        release_date=parse_datetime(
            _attr(date_cell.select_one(".submissionTimeChart--releaseDate"), "datetime")
        ),
        due_date=parse_datetime(_attr(due_markers[0], "datetime")) if due_markers else None,
        late_due_date=(
            parse_datetime(_attr(due_markers[1], "datetime")) if len(due_markers) > 1 else None
        ),
        submission_status=submission_status,
        grade=grade,
        max_grade=max_grade,
    )


def parse_assignments_student_view(soup: BeautifulSoup) -> Parsed[list[Assignment]] | NotFound:
    """Parse the student assignments table, skipping its header and footer rows."""
    rows = soup.select('tr[role="row"]')
    if not rows:
        return NotFound("no assignment table rows")

    assignments = [
        assignment
        for assignment in (_parse_student_row(row) for row in rows[1:-1])
        if assignment is not None
    ]
    return Parsed(assignments)
