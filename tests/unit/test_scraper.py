"""Unit tests for learnbridge.scraper."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from html import escape

from learnbridge.scraper import (
    NotFound,
    Parsed,
    extract_authenticity_token,
    extract_csrf_token,
    load_html,
    parse_assignments_instructor_view,
    parse_assignments_student_view,
    parse_course_section,
    parse_courses,
    parse_datetime,
)

MST = timezone(timedelta(hours=-7))

ACCOUNT_HTML = """
<html><body>
<h1 class="pageHeading">Instructor Courses</h1>
<button class="btn">Create a new course</button>
<div class="courseList">
  <div class="courseList--term">Spring 2024
    <a class="courseBox" href="/courses/222">
      <h3 class="courseBox--shortname">CSE 494</h3>
      <div class="courseBox--name">Special Topics</div>
      <div class="courseBox--noGradesPublised">No grades published</div>
      <div class="courseBox--assignments courseBox--assignments-unpublished">4 assignments</div>
    </a>
  </div>
</div>
<h1 class="pageHeading">Student Courses</h1>
<div class="courseList">
  <div class="courseList--term">Fall 2023</div>
  <div class="courseList--coursesForTerm">
    <a class="courseBox" href="/courses/111/">
      <h3 class="courseBox--shortname">CSE 110</h3>
      <div class="courseBox--name">Intro to Programming</div>
      <div class="courseBox--assignments">12 assignments</div>
    </a>
  </div>
</div>
</body></html>
"""

YOUR_COURSES_HTML = """
<h1 class="pageHeading">Your Courses</h1>
<div class="courseList">
  <div class="courseList--term">Summer 2024
    <a href="/courses/333"><h3 class="courseBox--shortname">MAT 265</h3>
    <div class="courseBox--name">Calculus</div>
    <div class="courseBox--assignments">7 assignments</div></a>
  </div>
</div>
"""

STUDENT_COURSE_HTML = """
<table>
<thead>
  <tr role="row"><th>Name</th><th>Status</th><th>Released / Due</th></tr>
</thead>
<tbody>
  <tr role="row">
    <th><a href="/courses/111/assignments/900/submissions/5">HW1</a></th>
    <td>8 / 10</td>
    <td>
      <time class="submissionTimeChart--releaseDate" datetime="2024-01-08 00:00:00 -0700">Jan 08</time>
      <time class="submissionTimeChart--dueDate" datetime="2024-01-15 23:59:00 -0700">Jan 15</time>
      <time class="submissionTimeChart--dueDate" datetime="2024-01-17 23:59:00 -0700">Jan 17</time>
    </td>
  </tr>
  <tr role="row">
    <th><button class="js-submitAssignment" data-assignment-id="901">HW2</button></th>
    <td>No Submission</td>
    <td><time class="submissionTimeChart--dueDate" datetime="2024-02-01 23:59:00 -0700">Feb 01</time></td>
  </tr>
  <tr role="row">
    <th>Quiz</th>
    <td>- / 5</td>
    <td></td>
  </tr>
  <tr role="row"><td colspan="3">footer</td></tr>
</tbody>
</table>
"""


def _instructor_page(rows: list[dict]) -> str:
    props = escape(json.dumps({"table_data": rows}), quote=True)
    return f'<div data-react-class="AssignmentsTable" data-react-props="{props}"></div>'


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokens:
    def test_authenticity_token(self) -> None:
        soup = load_html(
            '<form action="/login" method="post">'
            '<input type="hidden" name="authenticity_token" value="tok-123"></form>'
        )
        assert extract_authenticity_token(soup) == Parsed("tok-123")

    def test_authenticity_token_outside_login_form_ignored(self) -> None:
        soup = load_html('<form action="/search"><input name="authenticity_token" value="x"></form>')
        assert isinstance(extract_authenticity_token(soup), NotFound)

    def test_csrf_token(self) -> None:
        soup = load_html('<head><meta name="csrf-token" content="csrf-456"></head>')
        assert extract_csrf_token(soup) == Parsed("csrf-456")

    def test_csrf_token_missing(self) -> None:
        assert isinstance(extract_csrf_token(load_html("<head></head>")), NotFound)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class TestParseDatetime:
    def test_iso_format(self) -> None:
        assert parse_datetime("2024-01-15T23:59:00-07:00") == datetime(
            2024, 1, 15, 23, 59, tzinfo=MST
        )

    def test_gradescope_format(self) -> None:
        assert parse_datetime("2024-01-15 23:59:00 -0700") == datetime(
            2024, 1, 15, 23, 59, tzinfo=MST
        )

    def test_empty_and_garbage(self) -> None:
        assert parse_datetime(None) is None
        assert parse_datetime("") is None
        assert parse_datetime("next tuesday") is None


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


class TestParseCourses:
    def test_groups_by_role(self) -> None:
        courses = parse_courses(load_html(ACCOUNT_HTML))
        assert set(courses.instructor) == {"222"}
        assert set(courses.student) == {"111"}

    def test_instructor_course_fields(self) -> None:
        course = parse_courses(load_html(ACCOUNT_HTML)).instructor["222"]
        assert course.name == "CSE 494"
        assert course.full_name == "Special Topics"
        assert course.semester == "Spring"
        assert course.year == "2024"
        assert course.num_grades_published == "No grades published"
        assert course.num_assignments == "4 assignments"

    def test_student_course_in_sibling_container(self) -> None:
        course = parse_courses(load_html(ACCOUNT_HTML)).student["111"]
        assert course.name == "CSE 110"
        assert course.full_name == "Intro to Programming"
        assert course.semester == "Fall"
        assert course.year == "2023"
        assert course.num_grades_published is None
        assert course.num_assignments == "12 assignments"

    def test_your_courses_fallback_is_student(self) -> None:
        courses = parse_courses(load_html(YOUR_COURSES_HTML))
        assert courses.instructor == {}
        assert courses.student["333"].full_name == "Calculus"

    def test_your_courses_with_create_button_is_instructor(self) -> None:
        html = YOUR_COURSES_HTML.replace(
            "</h1>", "</h1><button>Create a new course</button>", 1
        )
        courses = parse_courses(load_html(html))
        assert courses.student == {}
        assert "333" in courses.instructor

    def test_missing_heading_is_not_found(self) -> None:
        result = parse_course_section(load_html("<p>nothing</p>"), "Student Courses")
        assert isinstance(result, NotFound)

    def test_empty_account_page(self) -> None:
        courses = parse_courses(load_html("<html></html>"))
        assert courses.student == {}
        assert courses.instructor == {}


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


class TestInstructorView:
    def test_reads_assignment_rows(self) -> None:
        html = _instructor_page([
            {"type": "section", "title": "Week 1"},
            {
                "type": "assignment",
                "title": "HW1",
                "url": "/courses/222/assignments/900",
                "total_points": "10.0",
                "submission_window": {
                    "release_date": "2024-01-08T00:00:00-07:00",
                    "due_date": "2024-01-15T23:59:00-07:00",
                    "hard_due_date": None,
                },
            },
        ])
        result = parse_assignments_instructor_view(load_html(html))
        assert isinstance(result, Parsed)
        (assignment,) = result.data
        assert assignment.id == "900"
        assert assignment.name == "HW1"
        assert assignment.max_grade == 10.0
        assert assignment.due_date == datetime(2024, 1, 15, 23, 59, tzinfo=MST)
        assert assignment.late_due_date is None
        assert assignment.grade is None

    def test_missing_props_is_not_found(self) -> None:
        assert isinstance(parse_assignments_instructor_view(load_html("<div></div>")), NotFound)

    def test_malformed_props_is_not_found(self) -> None:
        html = '<div data-react-class="AssignmentsTable" data-react-props="{not json"></div>'
        assert isinstance(parse_assignments_instructor_view(load_html(html)), NotFound)


class TestStudentView:
    def test_graded_submission(self) -> None:
        result = parse_assignments_student_view(load_html(STUDENT_COURSE_HTML))
        assert isinstance(result, Parsed)
        hw1 = result.data[0]
        assert hw1.id == "900"
        assert hw1.name == "HW1"
        assert hw1.grade == 8
        assert hw1.max_grade == 10
        assert hw1.submission_status == "Submitted"
        assert hw1.release_date == datetime(2024, 1, 8, tzinfo=MST)
        assert hw1.due_date == datetime(2024, 1, 15, 23, 59, tzinfo=MST)
        assert hw1.late_due_date == datetime(2024, 1, 17, 23, 59, tzinfo=MST)

    def test_unsubmitted_row_keeps_status_text(self) -> None:
        result = parse_assignments_student_view(load_html(STUDENT_COURSE_HTML))
        assert isinstance(result, Parsed)
        hw2 = result.data[1]
        assert hw2.id == "901"
        assert hw2.name == "HW2"
        assert hw2.submission_status == "No Submission"
        assert hw2.grade is None
        assert hw2.release_date is None

    def test_unparseable_points(self) -> None:
        result = parse_assignments_student_view(load_html(STUDENT_COURSE_HTML))
        assert isinstance(result, Parsed)
        quiz = result.data[2]
        assert quiz.submission_status == "Not Submitted"
        assert quiz.grade is None
        assert quiz.max_grade is None

    def test_header_and_footer_rows_skipped(self) -> None:
        result = parse_assignments_student_view(load_html(STUDENT_COURSE_HTML))
        assert isinstance(result, Parsed)
        assert [a.name for a in result.data] == ["HW1", "HW2", "Quiz"]

    def test_no_rows_is_not_found(self) -> None:
        assert isinstance(parse_assignments_student_view(load_html("<table></table>")), NotFound)
