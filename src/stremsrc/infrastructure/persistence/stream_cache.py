"""Resolved-stream cache store backed by CachePort (diskcache/redis)."""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence

import structlog

from stremsrc.domain.entities.streams import CacheEntry, ResolvedStream
from stremsrc.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_KEY_PREFIX = "streams:"


def _serialize_entry(payload: Sequence[ResolvedStream], expires_at: int) -> str:
    return json.dumps(
        {
            "payload": [stream.to_dict() for stream in payload],
            "expiresAt": expires_at,
        }
    )


def _deserialize_entry(key: str, data: str) -> CacheEntry:
    d = json.loads(data)
    return CacheEntry(
        key=key,
        payload=tuple(ResolvedStream.from_dict(item) for item in d["payload"]),
        expires_at=int(d["expiresAt"]),
    )


class CacheStreamStore:
    """Stores resolution results with an absolute expiry instant.

    Freshness is decided here by comparing the stored ``expiresAt`` against
    the injected clock, not by the backend TTL, so a stale record still
    sitting in the backend reads as a miss.

    Args:
        cache: Backend key-value store.
        clock: Returns the current time in seconds since the epoch.
    """

    def __init__(
        self,
        cache: CachePort,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def get(self, key: str) -> CacheEntry | None:
        data = await self.cache.get(_KEY_PREFIX + key)
        if data is None:
            log.debug("stream_cache_miss", key=key)
            return None

        try:
            entry = _deserialize_entry(key, data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("stream_cache_deserialize_error", key=key, error=str(e))
            return None

        if not entry.is_fresh(self._now_ms()):
            log.debug("stream_cache_stale", key=key, expires_at=entry.expires_at)
            return None

        log.debug("stream_cache_hit", key=key, streams=len(entry.payload))
        return entry

    async def put(
        self, key: str, payload: Sequence[ResolvedStream], ttl: int
    ) -> None:
        if not payload:
            log.debug("stream_cache_skip_empty", key=key)
            return

        expires_at = self._now_ms() + ttl * 1000
        await self.cache.set(
            _KEY_PREFIX + key, _serialize_entry(payload, expires_at), ttl=ttl
        )
        log.debug("stream_cache_saved", key=key, streams=len(payload), ttl=ttl)
