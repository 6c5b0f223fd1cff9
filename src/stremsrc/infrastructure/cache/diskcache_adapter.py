"""CachePort on a local diskcache (SQLite) directory."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """diskcache behind the async CachePort interface.

    diskcache is synchronous, so every operation runs in a worker thread;
    a semaphore bounds how many of them touch the SQLite file at once.
    Keys are stored as ``{namespace}:{key}``.

    Args:
        directory: Cache directory (created by diskcache on open).
        ttl_seconds: Expiry used when ``set`` gets no explicit ttl.
        max_concurrent: Parallel operations allowed.
        namespace: Key prefix.
    """

    def __init__(
        self,
        directory: str | Path = "./.cache/stremsrc",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
        namespace: str = "stremsrc",
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self.namespace = namespace
        self._store: DiskCache | None = None
        self._limit = asyncio.Semaphore(max_concurrent)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _opened(self) -> DiskCache:
        if self._store is None:
            raise RuntimeError("DiskcacheAdapter used before 'async with' opened it")
        return self._store

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._store is None:
            self._store = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("diskcache_opened", directory=str(self.directory), namespace=self.namespace)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        store, self._store = self._store, None
        if store is not None:
            await asyncio.to_thread(store.close)
            log.info("diskcache_closed", directory=str(self.directory))

    async def get(self, key: str) -> Any:
        store = self._opened()
        async with self._limit:
            value = await asyncio.to_thread(store.get, self._key(key), None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        store = self._opened()
        expire = self.default_ttl if ttl is None else ttl
        async with self._limit:
            await asyncio.to_thread(store.set, self._key(key), value, expire)
        log.debug("cache_set", key=key, ttl=expire)

    async def delete(self, key: str) -> bool:
        if self._store is None:
            return False
        async with self._limit:
            removed = await asyncio.to_thread(self._store.delete, self._key(key))
        return bool(removed)

    async def clear(self) -> None:
        """Evict only this adapter's namespace."""
        if self._store is None:
            return
        prefix = self._key("")
        async with self._limit:
            removed = await asyncio.to_thread(self._evict_prefix, self._store, prefix)
        log.info("cache_cleared", namespace=self.namespace, removed=removed)

    @staticmethod
    def _evict_prefix(store: DiskCache, prefix: str) -> int:
        doomed = [k for k in store.iterkeys() if isinstance(k, str) and k.startswith(prefix)]
        for k in doomed:
            store.delete(k)
        return len(doomed)
