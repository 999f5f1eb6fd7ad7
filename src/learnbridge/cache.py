"""In-memory TTL cache shared by the Canvas and Gradescope clients.

Upstream fetches are slow (network plus HTML parsing) and their results
rarely change within one agent session, so a minutes-scale TTL absorbs
bursts of repeated tool calls. There is no size bound: the working set is
the courses and assignments of one account.

The cache is the only judge of staleness. An entry is served strictly before
its ``expires_at`` clock reading and evicted the first time it is read after.
No locking: concurrent misses for the same key may both fetch upstream, and
the last write wins.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog

from learnbridge.models.cache import CacheEntry, CacheKey, CacheStats

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

DEFAULT_TTL_SECONDS = 300.0


class TTLCache:
    """Dict-backed cache implementing CacheProtocol."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, category: str, sub_key: str | None = None) -> Any | None:
        """Return the cached value, or ``None`` on miss or expiry."""
        key = CacheKey(category, sub_key)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._misses += 1
            self._evictions += 1
            log.debug("cache_expired", category=category, sub_key=sub_key)
            return None

        self._hits += 1
        log.debug("cache_hit", category=category, sub_key=sub_key)
        return entry.value

    def set(
        self,
        category: str,
        value: Any,
        sub_key: str | None = None,
        ttl: float | None = None,
    ) -> None:
        """Store ``value`` until ``now + ttl``, replacing any existing entry."""
        ttl_seconds = self._default_ttl if ttl is None else ttl
        self._entries[CacheKey(category, sub_key)] = CacheEntry(
            value=value,
            expires_at=self._clock() + ttl_seconds,
        )

    def clear(self) -> None:
        """Drop every entry. Hit/miss counters are kept."""
        dropped = len(self._entries)
        self._entries.clear()
        log.info("cache_cleared", entries=dropped)

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
        )
