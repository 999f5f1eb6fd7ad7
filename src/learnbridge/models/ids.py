"""Upstream record identifiers accepted from tool arguments.

Canvas and Gradescope both use plain decimal IDs. Anything else would end up
verbatim in a URL path and a cache key, so it is rejected before either is
built.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import StringConstraints, TypeAdapter, ValidationError

from learnbridge.errors import ErrorCode, LearnBridgeError

NumericId = Annotated[str, StringConstraints(pattern=r"^\d+$")]

_numeric_id: TypeAdapter[str] = TypeAdapter(NumericId)


def require_id(value: str, field: str) -> str:
    """Return ``value`` unchanged if it is a numeric ID, else raise INVALID_INPUT."""
    try:
        return _numeric_id.validate_python(value)
    except ValidationError as exc:
        raise LearnBridgeError(
            ErrorCode.INVALID_INPUT,
            f"{field} must be a numeric ID, got {value!r}",
        ) from exc
