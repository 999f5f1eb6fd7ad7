"""learnbridge MCP server.

This module only wires things together: logging, the lifespan that builds
AppState from Settings, one thin FastMCP tool per handler in
``learnbridge.tools``, and the transport choice in ``main()``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP

import learnbridge.tools.cache as t_cache
import learnbridge.tools.canvas as t_canvas
import learnbridge.tools.gradescope as t_gradescope
from learnbridge import __version__
from learnbridge.cache import TTLCache
from learnbridge.canvas import CanvasClient
from learnbridge.config import Settings
from learnbridge.gradescope import GradescopeClient
from learnbridge.http import build_http_client
from learnbridge.state import AppState
from learnbridge.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Route structlog to stderr at the configured level. Runs once, first thing in main()."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if settings.logging.format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[settings.log_level]
        ),
        context_class=dict,
        # stdout carries the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Wire cache, HTTP clients and upstream clients from settings."""
    cache = TTLCache(default_ttl=settings.cache.ttl_seconds)

    canvas_http = build_http_client(settings.http)
    canvas = CanvasClient(
        canvas_http,
        cache,
        base_url=settings.canvas.base_url,
        api_key=settings.canvas.api_key.get_secret_value(),
        per_page=settings.canvas.per_page,
        max_pages=settings.canvas.max_pages,
    )
    state = AppState(settings=settings, cache=cache, canvas=canvas, http_clients=[canvas_http])

    gs = settings.gradescope
    if gs.configured and gs.email and gs.password is not None:
        # Separate client so Gradescope session cookies never reach Canvas
        gradescope_http = build_http_client(settings.http)
        state.gradescope = GradescopeClient(
            gradescope_http,
            cache,
            email=gs.email,
            password=gs.password.get_secret_value(),
            base_url=gs.base_url,
        )
        state.http_clients.append(gradescope_http)

    return state


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Yield AppState for the session and close its HTTP clients afterwards."""
    settings = Settings()
    state = build_state(settings)

    if not state.canvas.is_configured:
        log.info("canvas_not_configured")
    if state.gradescope is None:
        log.info("gradescope_not_configured")

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        canvas_base_url=settings.canvas.base_url,
        gradescope_enabled=state.gradescope is not None,
    )

    try:
        yield state
    finally:
        for client in state.http_clients:
            await client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("learnbridge", lifespan=lifespan)
# FastMCP has no version kwarg; the initialize handshake reads it from
# the underlying Server.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _state(ctx: Context) -> AppState:
    return ctx.request_context.lifespan_context


@mcp.tool()
async def get_courses(ctx: Context) -> str:
    """Retrieve all Canvas courses for the current user as a mapping of course name to ID."""
    return await t_canvas.get_courses(_state(ctx))


@mcp.tool()
async def get_canvas_courses(ctx: Context) -> str:
    """Alias for get_courses: retrieve all Canvas courses."""
    return await t_canvas.get_courses(_state(ctx))


@mcp.tool()
async def get_modules(course_id: str, ctx: Context) -> str:
    """Retrieve all modules within a Canvas course."""
    return await t_canvas.get_modules(course_id, _state(ctx))


@mcp.tool()
async def get_module_items(course_id: str, module_id: str, ctx: Context) -> str:
    """Retrieve all items within a module of a Canvas course."""
    return await t_canvas.get_module_items(course_id, module_id, _state(ctx))


@mcp.tool()
async def get_file_url(course_id: str, file_id: str, ctx: Context) -> str:
    """Get the direct download URL for a file stored in Canvas."""
    return await t_canvas.get_file_url(course_id, file_id, _state(ctx))


@mcp.tool()
async def get_course_assignments(course_id: str, ctx: Context, bucket: str | None = None) -> str:
    """Retrieve assignments for a Canvas course.

    bucket filters by status: past, overdue, undated, ungraded, unsubmitted,
    upcoming or future.
    """
    return await t_canvas.get_course_assignments(course_id, bucket, _state(ctx))


@mcp.tool()
async def get_assignments_by_course_name(
    course_name: str, ctx: Context, bucket: str | None = None
) -> str:
    """Retrieve assignments for the first Canvas course whose name contains course_name.

    bucket filters by status: past, overdue, undated, ungraded, unsubmitted,
    upcoming or future.
    """
    return await t_canvas.get_assignments_by_course_name(course_name, bucket, _state(ctx))


@mcp.tool()
async def get_gradescope_courses(ctx: Context) -> str:
    """Retrieve all Gradescope courses, grouped into student and instructor courses."""
    return await t_gradescope.get_courses(_state(ctx))


@mcp.tool()
async def get_gradescope_course_by_name(course_name: str, ctx: Context) -> str:
    """Find a Gradescope course by partial name."""
    return await t_gradescope.get_course_by_name(course_name, _state(ctx))


@mcp.tool()
async def get_gradescope_assignments(course_id: str, ctx: Context) -> str:
    """Retrieve all assignments for a Gradescope course."""
    return await t_gradescope.get_assignments(course_id, _state(ctx))


@mcp.tool()
async def get_gradescope_assignment_by_name(
    course_id: str, assignment_name: str, ctx: Context
) -> str:
    """Find a Gradescope assignment in a course by partial name."""
    return await t_gradescope.get_assignment_by_name(course_id, assignment_name, _state(ctx))


@mcp.tool()
async def search_gradescope(query: str, ctx: Context) -> str:
    """Answer a free-text question about Gradescope courses or assignments."""
    return await t_gradescope.search(query, _state(ctx))


@mcp.tool()
async def get_cache_stats(ctx: Context) -> str:
    """Get cache statistics for debugging."""
    return await t_cache.get_cache_stats(_state(ctx))


@mcp.tool()
async def clear_cache(ctx: Context) -> str:
    """Clear all cached Canvas and Gradescope data."""
    return await t_cache.clear_cache(_state(ctx))


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    if settings.server.transport == "http":
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
