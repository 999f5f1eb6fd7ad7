"""Integration test fixtures.

Provides a fully wired AppState: real TTL cache, real Canvas and Gradescope
clients, and an httpx client whose traffic the tests intercept with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from learnbridge.cache import TTLCache
from learnbridge.canvas import CanvasClient
from learnbridge.config import CanvasSettings, GradescopeSettings, Settings
from learnbridge.gradescope import GradescopeClient
from learnbridge.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

CANVAS_URL = "https://canvas.test"


@pytest.fixture()
def subprocess_env() -> dict[str, str]:
    """Baseline env for subprocess-based MCP tests: stdio, no upstream credentials."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("LEARNBRIDGE__")}
    env["LEARNBRIDGE__SERVER__TRANSPORT"] = "stdio"
    env["LEARNBRIDGE__CANVAS__API_KEY"] = ""
    env["LEARNBRIDGE__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
async def app_state() -> AsyncIterator[AppState]:
    """AppState with both upstreams configured."""
    settings = Settings(
        canvas=CanvasSettings(base_url=CANVAS_URL, api_key="test-token"),
        gradescope=GradescopeSettings(email="student@example.edu", password="hunter2"),
    )
    cache = TTLCache(default_ttl=settings.cache.ttl_seconds)
    async with httpx.AsyncClient() as client:
        yield AppState(
            settings=settings,
            cache=cache,
            canvas=CanvasClient(client, cache, base_url=CANVAS_URL, api_key="test-token"),
            gradescope=GradescopeClient(
                client, cache, email="student@example.edu", password="hunter2"
            ),
            http_clients=[client],
        )


@pytest.fixture()
async def unconfigured_state() -> AsyncIterator[AppState]:
    """AppState with no Canvas key and no Gradescope credentials."""
    settings = Settings(canvas=CanvasSettings(api_key=""), gradescope=GradescopeSettings())
    cache = TTLCache()
    async with httpx.AsyncClient() as client:
        yield AppState(
            settings=settings,
            cache=cache,
            canvas=CanvasClient(client, cache, base_url=CANVAS_URL, api_key=""),
            http_clients=[client],
        )
