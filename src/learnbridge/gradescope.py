"""Gradescope scraping client.

Gradescope has no public API, so both authentication and data retrieval are
scripted HTML interactions:

  1. GET /           collect cookies, read the login form's authenticity_token
  2. POST /login     credentials + token; success is exactly HTTP 302
  3. GET <Location>  collect cookies, read the csrf-token meta tag (optional)

The AuthSession then stays AUTHENTICATED until a request comes back 401 or
is redirected to /login. That request fails; the next call runs the handshake
again. Concurrent calls that find the session unauthenticated share one
in-flight handshake task.

Public operations never raise. Failures are logged by ``absent_on_error``
and surface as ``None``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin, urlparse

import httpx
import structlog

from learnbridge.config import DEFAULT_GRADESCOPE_BASE_URL
from learnbridge.cookies import AuthSession
from learnbridge.errors import ErrorCode, LearnBridgeError, absent_on_error
from learnbridge.intent import analyze_query
from learnbridge.models.ids import require_id
from learnbridge.scraper import (
    NotFound,
    Parsed,
    extract_authenticity_token,
    extract_csrf_token,
    load_html,
    parse_assignments_instructor_view,
    parse_assignments_student_view,
    parse_courses,
)

if TYPE_CHECKING:
    from learnbridge.models.assignment import Assignment
    from learnbridge.models.gradescope import GradescopeCourse, GradescopeCourses, QueryAnalysis
    from learnbridge.protocols import CacheProtocol

log = structlog.get_logger()

COURSES = "gradescope_courses"
ASSIGNMENTS = "gradescope_assignments"


class GradescopeClient:
    """Cookie-authenticated, cached, read-only access to Gradescope pages."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheProtocol,
        *,
        email: str,
        password: str,
        base_url: str = DEFAULT_GRADESCOPE_BASE_URL,
    ) -> None:
        self._client = client
        self._cache = cache
        self._email = email
        self._password = password
        self._base_url = base_url.rstrip("/")
        self.session = AuthSession()
        self._handshake: asyncio.Task[bool] | None = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def _ensure_authenticated(self) -> bool:
        if self.session.is_authenticated:
            return True
        if self._handshake is None:
            self._handshake = asyncio.create_task(self._login())
            self._handshake.add_done_callback(self._clear_handshake)
        # shield: one cancelled caller must not abort the login for the others
        return await asyncio.shield(self._handshake)

    def _clear_handshake(self, task: asyncio.Task[bool]) -> None:
        if self._handshake is task:
            self._handshake = None

    async def _login(self) -> bool:
        """Run the three-step handshake. Returns False instead of raising."""
        self.session.reset()
        # Session cookies live in the AuthSession jar, not in httpx's
        self._client.cookies.clear()
        log.debug("gradescope_login_started")

        try:
            token = await self._fetch_authenticity_token()
            if token is None:
                return False

            response = await self._client.post(
                f"{self._base_url}/login",
                data={
                    "utf8": "✓",
                    "session[email]": self._email,
                    "session[password]": self._password,
                    "session[remember_me]": "0",
                    "commit": "Log In",
                    "session[remember_me_sso]": "0",
                    "authenticity_token": token,
                },
                headers={**self.session.request_headers(), "Referer": self._base_url},
                follow_redirects=False,
            )
        except httpx.HTTPError as exc:
            log.error("gradescope_login_failed", reason="network_error", error=str(exc))
            return False

        self.session.cookies.ingest(response.headers)
        if response.status_code != 302:
            log.error(
                "gradescope_login_failed",
                reason="unexpected_status",
                status_code=response.status_code,
            )
            return False

        location = response.headers.get("location")
        csrf_token = await self._fetch_csrf_token(location) if location else None
        self.session.mark_authenticated(csrf_token)
        log.info("gradescope_login_succeeded", csrf_token_found=csrf_token is not None)
        return True

    async def _fetch_authenticity_token(self) -> str | None:
        response = await self._client.get(f"{self._base_url}/", follow_redirects=False)
        if not response.is_success:
            log.error(
                "gradescope_login_failed",
                reason="homepage_unavailable",
                status_code=response.status_code,
            )
            return None

        self.session.cookies.ingest(response.headers)
        token = extract_authenticity_token(load_html(response.text))
        if isinstance(token, NotFound):
            log.error("gradescope_login_failed", reason=token.reason)
            return None
        return token.data

    async def _fetch_csrf_token(self, location: str) -> str | None:
        """Follow the post-login redirect. Any failure here is non-fatal."""
        url = urljoin(f"{self._base_url}/", location)
        try:
            response = await self._client.get(
                url, headers=self.session.request_headers(), follow_redirects=False
            )
        except httpx.HTTPError as exc:
            log.warning("gradescope_csrf_token_unavailable", url=url, error=str(exc))
            return None

        if not response.is_success:
            log.warning(
                "gradescope_csrf_token_unavailable", url=url, status_code=response.status_code
            )
            return None

        self.session.cookies.ingest(response.headers)
        token = extract_csrf_token(load_html(response.text))
        if isinstance(token, NotFound):
            log.debug("gradescope_csrf_token_missing", reason=token.reason)
            return None
        return token.data

    async def _authenticated_get(self, path: str) -> httpx.Response:
        if not await self._ensure_authenticated():
            raise LearnBridgeError(ErrorCode.AUTHENTICATION_FAILED, "Gradescope login failed")

        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(
                url, headers=self.session.request_headers(), follow_redirects=False
            )
        except httpx.HTTPError as exc:
            raise LearnBridgeError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                f"Network error fetching {url}: {exc}",
            ) from exc

        self.session.cookies.ingest(response.headers)

        if response.status_code == 401 or self._is_login_redirect(response):
            self.session.invalidate()
            raise LearnBridgeError(
                ErrorCode.AUTHENTICATION_FAILED,
                f"Gradescope session expired (HTTP {response.status_code}) fetching {url}",
            )
        if not response.is_success:
            raise LearnBridgeError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                f"HTTP {response.status_code} fetching {url}",
            )
        return response

    def _is_login_redirect(self, response: httpx.Response) -> bool:
        """Expired sessions are usually answered with a redirect to the login page."""
        if not response.is_redirect:
            return False
        target = urljoin(f"{self._base_url}/", response.headers["location"])
        return urlparse(target).path.rstrip("/") == "/login"

    def logout(self) -> None:
        """Forget the session. The next call logs in from scratch."""
        self.session.reset()
        log.info("gradescope_logged_out")

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    @absent_on_error("gradescope.get_courses")
    async def get_courses(self) -> GradescopeCourses:
        """All courses on the account page, grouped into student and instructor."""
        cached = self._cache.get(COURSES)
        if cached is not None:
            return cached.model_copy(deep=True)

        response = await self._authenticated_get("/account")
        courses = parse_courses(load_html(response.text))

        self._cache.set(COURSES, courses.model_copy(deep=True))
        log.debug(
            "gradescope_courses_fetched",
            student=len(courses.student),
            instructor=len(courses.instructor),
        )
        return courses

    @absent_on_error("gradescope.get_course_by_name")
    async def get_course_by_name(self, name_part: str) -> GradescopeCourse | None:
        """First course whose short or full name contains ``name_part``.

        Student courses are searched before instructor courses.
        """
        courses = await self.get_courses()
        if courses is None:
            return None

        needle = name_part.lower()
        for group in (courses.student, courses.instructor):
            for course in group.values():
                if needle in course.name.lower() or needle in course.full_name.lower():
                    return course
        return None

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    @absent_on_error("gradescope.get_assignments")
    async def get_assignments(self, course_id: str) -> list[Assignment]:
        require_id(course_id, "course_id")
        cached = self._cache.get(ASSIGNMENTS, course_id)
        if cached is not None:
            return list(cached)

        response = await self._authenticated_get(f"/courses/{course_id}")
        soup = load_html(response.text)

        result = parse_assignments_instructor_view(soup)
        if isinstance(result, NotFound) or not result.data:
            fallback = parse_assignments_student_view(soup)
            if isinstance(fallback, Parsed):
                result = fallback

        if isinstance(result, NotFound):
            raise LearnBridgeError(
                ErrorCode.PARSE_FAILURE,
                f"No assignment data on course page {course_id}: {result.reason}",
            )

        assignments = result.data
        self._cache.set(ASSIGNMENTS, tuple(assignments), course_id)
        log.debug("gradescope_assignments_fetched", course_id=course_id, count=len(assignments))
        return list(assignments)

    @absent_on_error("gradescope.get_assignment_by_name")
    async def get_assignment_by_name(self, course_id: str, name_part: str) -> Assignment | None:
        assignments = await self.get_assignments(course_id)
        if assignments is None:
            return None

        needle = name_part.lower()
        for assignment in assignments:
            if needle in assignment.name.lower():
                return assignment
        return None

    # ------------------------------------------------------------------
    # Free-text search
    # ------------------------------------------------------------------

    def analyze_query(self, query: str) -> QueryAnalysis:
        return analyze_query(query)

    @absent_on_error("gradescope.search")
    async def search(self, query: str) -> dict[str, Any]:
        """Route a natural-language request to the matching structured call."""
        analysis = analyze_query(query)
        if analysis.type is None:
            return {"error": analysis.message, "analysis": analysis.model_dump(mode="json")}

        courses = await self.get_courses()
        if analysis.type == "get_courses":
            if courses is None:
                return {"error": "Could not retrieve Gradescope courses"}
            return {
                "analysis": analysis.model_dump(mode="json"),
                "courses": courses.model_dump(mode="json"),
            }

        # Assignment and submission questions both need a course first
        if courses is None:
            return {"error": "Could not determine which course to get assignments for"}
        return {
            "analysis": analysis.model_dump(mode="json"),
            "message": "Please specify which course you're interested in. Here are your courses:",
            "courses": courses.model_dump(mode="json"),
        }
