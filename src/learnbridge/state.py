"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan
context manager) and injected into every tool handler via the MCP Context
object. One process serves one session, so the cache and the Gradescope
AuthSession held here are that session's state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from learnbridge.canvas import CanvasClient
    from learnbridge.config import Settings
    from learnbridge.gradescope import GradescopeClient
    from learnbridge.protocols import CacheProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    cache: CacheProtocol
    canvas: CanvasClient

    # None when Gradescope email/password are not both configured
    gradescope: GradescopeClient | None = None

    # Owned by the lifespan, closed on shutdown
    http_clients: list[httpx.AsyncClient] = field(default_factory=list)
