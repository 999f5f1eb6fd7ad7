from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel


class CacheKey(NamedTuple):
    """Composite cache key. One key identifies exactly one cached artifact."""

    category: str
    sub_key: str | None = None


class CacheEntry(BaseModel):
    """A cached value and the clock reading at which it stops being served."""

    value: Any
    expires_at: float


class CacheStats(BaseModel):
    size: int
    hits: int
    misses: int
    evictions: int = 0  # Stale entries dropped on read
