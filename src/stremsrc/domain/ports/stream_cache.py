"""Port for the resolved-stream cache store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from stremsrc.domain.entities.streams import CacheEntry, ResolvedStream


@runtime_checkable
class StreamCachePort(Protocol):
    """Maps a cache key to a previously computed result list."""

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry only while it is fresh; stale entries are misses."""
        ...

    async def put(
        self, key: str, payload: Sequence[ResolvedStream], ttl: int
    ) -> None:
        """Store *payload* for *ttl* seconds. Empty payloads are not stored."""
        ...
