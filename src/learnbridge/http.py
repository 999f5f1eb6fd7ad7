"""Shared HTTP client construction.

All upstream I/O goes through ``httpx.AsyncClient`` instances created here and
injected into the clients. The lifespan owns their lifecycle. Redirects are
never followed automatically: the Gradescope login detects success by the
302 itself, and Canvas pagination links are followed explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from learnbridge.config import HttpSettings


def build_http_client(settings: HttpSettings) -> httpx.AsyncClient:
    """Create an httpx client. Called once per upstream at startup."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def next_page_url(response: httpx.Response) -> str | None:
    """Return the ``rel="next"`` target of a paginated response, if any."""
    return response.links.get("next", {}).get("url")
