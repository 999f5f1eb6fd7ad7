"""Canvas LMS REST client.

Every request carries the static API key as a bearer token. There is no
session handshake, no token refresh and no retry: a 401 is reported as an
authentication failure like any other failed call. Results are cached in the
injected cache, keyed by operation and arguments.

Public operations never raise. Failures are logged by ``absent_on_error``
and surface as ``None``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from learnbridge.errors import ErrorCode, LearnBridgeError, absent_on_error
from learnbridge.http import next_page_url
from learnbridge.models.canvas import (
    CanvasAssignment,
    CanvasCourse,
    CanvasFile,
    CanvasModule,
    CanvasModuleItem,
)
from learnbridge.models.ids import require_id

if TYPE_CHECKING:
    from learnbridge.models.assignment import Assignment
    from learnbridge.protocols import CacheProtocol

log = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

COURSES = "canvas_courses"
MODULES = "canvas_modules"
MODULE_ITEMS = "canvas_module_items"
FILE_URL = "canvas_file_url"
ASSIGNMENTS = "canvas_assignments"


def _validate_list(model: type[M], payload: Any, what: str) -> list[M]:
    try:
        return TypeAdapter(list[model]).validate_python(payload)
    except ValidationError as exc:
        raise LearnBridgeError(
            ErrorCode.PARSE_FAILURE,
            f"Unexpected Canvas {what} payload: {exc.error_count()} validation error(s)",
        ) from exc


def match_course_id(courses: dict[str, str], name_part: str) -> str | None:
    """Case-insensitive substring match on course name. First match wins."""
    needle = name_part.lower()
    for name, course_id in courses.items():
        if needle in name.lower():
            return course_id
    return None


class CanvasClient:
    """Authenticated, cached, read-only access to the Canvas REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheProtocol,
        *,
        base_url: str,
        api_key: str,
        per_page: int = 100,
        max_pages: int = 10,
    ) -> None:
        self._client = client
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._per_page = per_page
        self._max_pages = max_pages

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _request(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        if not self.is_configured:
            raise LearnBridgeError(ErrorCode.CONFIGURATION_ABSENT, "Canvas API key is not set")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise LearnBridgeError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                f"Network error fetching {url}: {exc}",
            ) from exc

        if response.status_code == 401:
            raise LearnBridgeError(
                ErrorCode.AUTHENTICATION_FAILED,
                f"Canvas rejected the API key (HTTP 401) for {url}",
            )
        if not response.is_success:
            raise LearnBridgeError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                f"HTTP {response.status_code} fetching {url}",
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise LearnBridgeError(
                ErrorCode.PARSE_FAILURE,
                f"Canvas returned non-JSON content from {response.url}",
            ) from exc

    async def _get_object(self, path: str) -> Any:
        response = await self._request(f"{self._base_url}{path}")
        return self._json(response)

    async def _get_list(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Fetch a list endpoint, following ``Link: rel="next"`` up to max_pages."""
        query = {"per_page": self._per_page, **(params or {})}
        url: str | None = f"{self._base_url}{path}"
        items: list[Any] = []

        for page in range(self._max_pages):
            if url is None:
                break
            # Next-page links already carry the full query string
            response = await self._request(url, params=query if page == 0 else None)
            payload = self._json(response)
            if not isinstance(payload, list):
                raise LearnBridgeError(
                    ErrorCode.PARSE_FAILURE,
                    f"Expected a JSON list from {path}, got {type(payload).__name__}",
                )
            items.extend(payload)
            url = next_page_url(response)
        else:
            if url is not None:
                log.warning("canvas_pagination_truncated", path=path, max_pages=self._max_pages)

        return items

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @absent_on_error("canvas.get_courses")
    async def get_courses(self) -> dict[str, str]:
        """Map course name to course ID for the current user."""
        cached = self._cache.get(COURSES)
        if cached is not None:
            return dict(cached)

        courses = _validate_list(CanvasCourse, await self._get_list("/api/v1/courses"), "courses")
        mapping = {course.name: course.id for course in courses if course.name}

        self._cache.set(COURSES, dict(mapping))
        log.debug("canvas_courses_fetched", count=len(mapping))
        return mapping

    @absent_on_error("canvas.get_modules")
    async def get_modules(self, course_id: str) -> list[CanvasModule]:
        require_id(course_id, "course_id")
        cached = self._cache.get(MODULES, course_id)
        if cached is not None:
            return list(cached)

        payload = await self._get_list(f"/api/v1/courses/{course_id}/modules")
        modules = _validate_list(CanvasModule, payload, "modules")

        self._cache.set(MODULES, tuple(modules), course_id)
        log.debug("canvas_modules_fetched", course_id=course_id, count=len(modules))
        return modules

    @absent_on_error("canvas.get_module_items")
    async def get_module_items(self, course_id: str, module_id: str) -> list[CanvasModuleItem]:
        require_id(course_id, "course_id")
        require_id(module_id, "module_id")
        sub_key = f"{course_id}/{module_id}"
        cached = self._cache.get(MODULE_ITEMS, sub_key)
        if cached is not None:
            return list(cached)

        payload = await self._get_list(f"/api/v1/courses/{course_id}/modules/{module_id}/items")
        items = _validate_list(CanvasModuleItem, payload, "module items")

        self._cache.set(MODULE_ITEMS, tuple(items), sub_key)
        log.debug(
            "canvas_module_items_fetched",
            course_id=course_id,
            module_id=module_id,
            count=len(items),
        )
        return items

    @absent_on_error("canvas.get_file_url")
    async def get_file_url(self, course_id: str, file_id: str) -> str:
        """Return the direct download URL of a course file."""
        require_id(course_id, "course_id")
        require_id(file_id, "file_id")
        sub_key = f"{course_id}/{file_id}"
        cached = self._cache.get(FILE_URL, sub_key)
        if cached is not None:
            return cached

        payload = await self._get_object(f"/api/v1/courses/{course_id}/files/{file_id}")
        try:
            file = CanvasFile.model_validate(payload)
        except ValidationError as exc:
            raise LearnBridgeError(
                ErrorCode.PARSE_FAILURE,
                f"Canvas file {file_id} payload has no usable url",
            ) from exc

        self._cache.set(FILE_URL, file.url, sub_key)
        return file.url

    @absent_on_error("canvas.get_course_assignments")
    async def get_course_assignments(
        self, course_id: str, bucket: str | None = None
    ) -> list[Assignment]:
        """List assignments, optionally filtered by a Canvas bucket.

        ``bucket`` is forwarded as-is. Canvas reports unknown buckets itself.
        """
        require_id(course_id, "course_id")
        sub_key = f"{course_id}?bucket={bucket}" if bucket else course_id
        cached = self._cache.get(ASSIGNMENTS, sub_key)
        if cached is not None:
            return list(cached)

        params: dict[str, Any] = {"include[]": "submission"}
        if bucket:
            params["bucket"] = bucket
        payload = await self._get_list(f"/api/v1/courses/{course_id}/assignments", params)
        assignments = [
            record.to_assignment()
            for record in _validate_list(CanvasAssignment, payload, "assignments")
        ]

        self._cache.set(ASSIGNMENTS, tuple(assignments), sub_key)
        log.debug(
            "canvas_assignments_fetched",
            course_id=course_id,
            bucket=bucket,
            count=len(assignments),
        )
        return assignments

    @absent_on_error("canvas.get_assignments_by_course_name")
    async def get_assignments_by_course_name(
        self, name_part: str, bucket: str | None = None
    ) -> list[Assignment] | None:
        """Resolve a course by partial name, then list its assignments."""
        courses = await self.get_courses()
        if courses is None:
            return None

        course_id = match_course_id(courses, name_part)
        if course_id is None:
            return None

        return await self.get_course_assignments(course_id, bucket)
