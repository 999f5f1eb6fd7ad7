"""Protocol interfaces for swappable components.

The Canvas and Gradescope clients reference these protocols, not the
concrete implementations. This allows:
- Tests to inject a cache driven by a fake clock
- A shared or external cache backend to be swapped in without touching clients
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from learnbridge.models.cache import CacheStats


class CacheProtocol(Protocol):
    """Interface for the in-process response cache."""

    def get(self, category: str, sub_key: str | None = None) -> Any | None: ...

    def set(
        self,
        category: str,
        value: Any,
        sub_key: str | None = None,
        ttl: float | None = None,
    ) -> None: ...

    def clear(self) -> None: ...

    def stats(self) -> CacheStats: ...
