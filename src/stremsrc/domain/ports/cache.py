"""Key-value cache port shared by the stream store and metadata lookups."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async TTL cache, opened and closed with ``async with``.

    Values must be JSON-compatible so every backend (diskcache, redis)
    can hold them.  Adapters namespace their keys; callers use short
    logical keys such as ``streams:moviett0111161``.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store *value*; *ttl* in seconds, adapter default when omitted."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def clear(self) -> None:
        """Drop every key in the adapter's namespace."""
        ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
