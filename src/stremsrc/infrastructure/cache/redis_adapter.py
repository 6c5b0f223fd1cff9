"""CachePort on Redis (redis.asyncio), values stored as JSON strings."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Shared cache for several add-on instances.

    Backend errors never propagate from ``get``/``set``/``delete``: a
    failing Redis degrades to cache misses and skipped writes.  Only
    opening the connection (``async with``) raises, so a bad URL is
    noticed at startup.

    Args:
        url: Connection URL, e.g. ``redis://localhost:6379/0``.
        ttl_seconds: Expiry used when ``set`` gets no explicit ttl.
        max_concurrent: Parallel commands allowed.
        namespace: Key prefix; ``clear`` is limited to it.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
        namespace: str = "stremsrc",
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.namespace = namespace
        self._client: Redis | None = None
        self._limit = asyncio.Semaphore(max_concurrent)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _connected(self) -> Redis:
        if self._client is None:
            raise RuntimeError("RedisAdapter used before 'async with' connected it")
        return self._client

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            client = Redis.from_url(self.url, decode_responses=True)
            try:
                await client.ping()
            except RedisError as exc:
                log.error("redis_unreachable", url=self.url, error=str(exc))
                await client.aclose()
                raise
            self._client = client
            log.info("redis_connected", url=self.url, namespace=self.namespace)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            log.info("redis_closed", url=self.url)

    async def get(self, key: str) -> Any:
        client = self._connected()
        try:
            async with self._limit:
                raw = await client.get(self._key(key))
        except RedisError as exc:
            log.warning("redis_get_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("redis_value_not_json", key=key)
            return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._connected()
        expire = self.default_ttl if ttl is None else ttl
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            log.error("redis_value_not_serializable", key=key, error=str(exc))
            return
        try:
            async with self._limit:
                await client.setex(self._key(key), expire, encoded)
        except RedisError as exc:
            log.warning("redis_set_failed", key=key, error=str(exc))
            return
        log.debug("cache_set", key=key, ttl=expire)

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        try:
            async with self._limit:
                removed = await self._client.delete(self._key(key))
        except RedisError as exc:
            log.warning("redis_delete_failed", key=key, error=str(exc))
            return False
        return removed > 0

    async def clear(self) -> None:
        """Delete every key under the namespace (SCAN, not FLUSHDB)."""
        if self._client is None:
            return
        pattern = self._key("*")
        removed = 0
        try:
            async with self._limit:
                async for name in self._client.scan_iter(match=pattern):
                    removed += await self._client.delete(name)
        except RedisError as exc:
            log.warning("redis_clear_failed", namespace=self.namespace, error=str(exc))
            return
        log.info("cache_cleared", namespace=self.namespace, removed=removed)
