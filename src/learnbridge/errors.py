"""Error taxonomy for the upstream clients.

``LearnBridgeError`` is raised inside the Canvas and Gradescope clients and
never crosses their public boundary: every public operation is wrapped in
``absent_on_error``, which logs the failure and returns ``None``. Tool
handlers turn ``None`` into a uniform "Failed to retrieve ..." message.
"""

from __future__ import annotations

import functools
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = structlog.get_logger()

T = TypeVar("T")


class ErrorCode(StrEnum):
    CONFIGURATION_ABSENT = "CONFIGURATION_ABSENT"
    INVALID_INPUT = "INVALID_INPUT"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    PARSE_FAILURE = "PARSE_FAILURE"


# Outcomes the caller already anticipates; not worth an error-level line
_EXPECTED_CODES = frozenset(
    {ErrorCode.CONFIGURATION_ABSENT, ErrorCode.INVALID_INPUT, ErrorCode.NOT_FOUND}
)


class LearnBridgeError(Exception):
    """Raised by client internals for every expected failure condition."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


def absent_on_error(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T | None]]]:
    """Convert any failure inside a client operation into a logged ``None``.

    ``asyncio.CancelledError`` is a ``BaseException`` and passes through.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T | None]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T | None:
            try:
                return await func(*args, **kwargs)
            except LearnBridgeError as exc:
                if exc.code in _EXPECTED_CODES:
                    log.info("operation_skipped", operation=operation, code=exc.code)
                else:
                    log.error(
                        "operation_failed",
                        operation=operation,
                        code=exc.code,
                        message=exc.message,
                    )
                return None
            except Exception:
                log.error("operation_unexpected_error", operation=operation, exc_info=True)
                return None

        return wrapper

    return decorator
