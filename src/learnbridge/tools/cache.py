"""Tool handlers for cache inspection and reset."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from learnbridge.tools import render

if TYPE_CHECKING:
    from learnbridge.state import AppState


async def get_cache_stats(state: AppState) -> str:
    structlog.get_logger().bind(tool="get_cache_stats").info("handler_called")
    return render(state.cache.stats())


async def clear_cache(state: AppState) -> str:
    structlog.get_logger().bind(tool="clear_cache").info("handler_called")
    state.cache.clear()
    return "Cache cleared successfully"
