"""Cache factory - creates the adapter selected in the configuration."""

from __future__ import annotations

from typing import Literal

import structlog

from stremsrc.domain.ports.cache import CachePort
from stremsrc.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from stremsrc.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/stremsrc",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
    namespace: str = "stremsrc",
) -> CachePort:
    """Create a cache adapter for *backend*.

    Raises:
        ValueError: If `backend` is unknown.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
            namespace=namespace,
        )
    if backend == "redis":
        return RedisAdapter(
            url=redis_url,
            ttl_seconds=ttl_seconds,
            namespace=namespace,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r} (expected diskcache or redis)"
    )
