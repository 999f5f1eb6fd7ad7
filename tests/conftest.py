"""Shared test fixtures for the learnbridge test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from learnbridge.cache import TTLCache
from learnbridge.canvas import CanvasClient
from learnbridge.config import DEFAULT_GRADESCOPE_BASE_URL
from learnbridge.gradescope import GradescopeClient

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

CANVAS_URL = "https://canvas.test"
GRADESCOPE_URL = DEFAULT_GRADESCOPE_BASE_URL


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> TTLCache:
    """TTL cache driven by the fake clock, 300 s default TTL."""
    return TTLCache(default_ttl=300.0, clock=clock)


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(follow_redirects=False) as client:
        yield client


@pytest.fixture()
def canvas(http_client: httpx.AsyncClient, cache: TTLCache) -> CanvasClient:
    return CanvasClient(http_client, cache, base_url=CANVAS_URL, api_key="test-token")


@pytest.fixture()
def gradescope(http_client: httpx.AsyncClient, cache: TTLCache) -> GradescopeClient:
    return GradescopeClient(
        http_client,
        cache,
        email="student@example.edu",
        password="hunter2",
        base_url=GRADESCOPE_URL,
    )
