"""Streamable HTTP transport for the MCP server.

Only used when ``server.transport`` is ``http``. The default stdio transport
needs none of this: the agent host owns the process and its pipes.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from learnbridge.config import Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset(
    {"2025-11-25", "2025-06-18", "2025-03-26", "2024-11-05"}
)
_LOCAL_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")
_BEARER_PREFIX = "Bearer "


class MCPSecurityMiddleware:
    """ASGI gate in front of the streamable HTTP app.

    Requests are checked in order: bearer key (when enabled), then a
    localhost-only ``Origin`` against DNS rebinding, then the
    ``MCP-Protocol-Version`` header. Absent ``Origin`` and protocol headers
    pass. Non-HTTP scopes (lifespan) go straight through.

    Written as raw ASGI rather than ``BaseHTTPMiddleware`` so that SSE
    responses stream unbuffered.
    """

    def __init__(self, app: ASGIApp, *, auth_enabled: bool, auth_key: str | None = None) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key

    def _authorized(self, headers: Headers) -> bool:
        if not self.auth_enabled:
            return True
        supplied = headers.get("authorization", "")
        if not supplied.startswith(_BEARER_PREFIX):
            return False
        return secrets.compare_digest(supplied[len(_BEARER_PREFIX) :], self.auth_key or "")

    def _rejection(self, headers: Headers) -> PlainTextResponse | None:
        if not self._authorized(headers):
            return PlainTextResponse("Unauthorized", status_code=401)

        origin = headers.get("origin")
        if origin and not _LOCAL_ORIGIN.match(origin):
            return PlainTextResponse("Forbidden", status_code=403)

        version = headers.get("mcp-protocol-version")
        if version and version not in SUPPORTED_PROTOCOL_VERSIONS:
            return PlainTextResponse(f"Unsupported protocol version: {version}", status_code=400)

        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            rejection = self._rejection(Headers(scope=scope))
            if rejection is not None:
                log.info(
                    "http_request_rejected",
                    path=scope.get("path"),
                    status_code=rejection.status_code,
                )
                await rejection(scope, receive, send)
                return
        await self.app(scope, receive, send)


def _resolve_auth_key(settings: Settings) -> str | None:
    """Configured key, a fresh random key when auth is on without one, else None."""
    server = settings.server
    if not server.auth_enabled:
        log.warning("http_auth_disabled", transport="http")
        return server.auth_key or None
    if server.auth_key:
        return server.auth_key

    generated = secrets.token_urlsafe(32)
    # Printed once so the operator can hand it to the agent host
    log.warning("http_auth_key_auto_generated", transport="http", auth_key=generated)
    return generated


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve ``mcp`` over streamable HTTP behind MCPSecurityMiddleware. Blocks."""
    app = MCPSecurityMiddleware(
        mcp.streamable_http_app(),
        auth_enabled=settings.server.auth_enabled,
        auth_key=_resolve_auth_key(settings),
    )
    log.info(
        "http_server_starting",
        host=settings.server.host,
        port=settings.server.port,
        auth_enabled=settings.server.auth_enabled,
    )
    # structlog owns logging; keep uvicorn from installing its own handlers
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)
