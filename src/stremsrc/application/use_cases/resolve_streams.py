"""Stream resolution use case.

content id -> cache lookup -> all providers concurrently
-> merge in provider order -> cache write.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog

from stremsrc.domain.entities.streams import (
    CacheEntry,
    ContentRequest,
    InvalidContentId,
    ResolvedStream,
)
from stremsrc.domain.ports.stream_cache import StreamCachePort
from stremsrc.domain.ports.stream_provider import StreamProviderPort

log = structlog.get_logger(__name__)


def cache_key(kind: str, content_id: str) -> str:
    """Cache key for one request: content kind followed by content id."""
    return f"{kind}{content_id}"


class ResolveStreamsUseCase:
    """Runs every configured provider and merges their streams.

    Providers settle independently: a provider that raises or exceeds
    *provider_timeout_seconds* contributes nothing, the others are kept.
    A failing cache read is a miss and a failing write is skipped.
    ``resolve`` never raises.

    Args:
        providers: Providers in declaration order (output order).
        stream_cache: Result cache; None disables caching.
        cache_ttl_seconds: Lifetime of a cached result.
        provider_timeout_seconds: Upper bound per provider run.
    """

    def __init__(
        self,
        *,
        providers: Sequence[StreamProviderPort],
        stream_cache: StreamCachePort | None = None,
        cache_ttl_seconds: int = 7200,
        provider_timeout_seconds: float = 45.0,
    ) -> None:
        self._providers = list(providers)
        self._cache = stream_cache
        self._ttl = cache_ttl_seconds
        self._provider_timeout = provider_timeout_seconds

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def resolve(self, content_id: str, kind: str) -> list[ResolvedStream]:
        try:
            return await self._resolve(content_id, kind)
        except Exception:
            log.exception("resolve_unexpected_error", content_id=content_id, kind=kind)
            return []

    async def _resolve(self, content_id: str, kind: str) -> list[ResolvedStream]:
        try:
            request = ContentRequest.parse(content_id, kind)
        except InvalidContentId as exc:
            log.info("resolve_invalid_request", content_id=content_id, kind=kind, error=str(exc))
            return []

        key = cache_key(request.kind, request.content_id)
        entry = await self._cached(key)
        if entry is not None:
            log.info("resolve_cache_hit", key=key, streams=len(entry.payload))
            return list(entry.payload)

        t0 = time.perf_counter_ns()
        outcomes = await asyncio.gather(
            *(self._run_provider(p, request) for p in self._providers),
            return_exceptions=True,
        )

        streams: list[ResolvedStream] = []
        for provider, outcome in zip(self._providers, outcomes):
            if isinstance(outcome, BaseException):
                log.error(
                    "resolve_provider_failed",
                    provider=provider.name,
                    content_id=request.content_id,
                    exc_info=outcome,
                )
                continue
            streams.extend(outcome)

        log.info(
            "resolve_done",
            content_id=request.content_id,
            kind=request.kind,
            streams=len(streams),
            duration_ms=(time.perf_counter_ns() - t0) // 1_000_000,
        )

        if streams:
            await self._store(key, streams)
        return streams

    async def _cached(self, key: str) -> CacheEntry | None:
        """Cache read; a failing backend counts as a miss."""
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception:
            log.warning("resolve_cache_read_failed", key=key, exc_info=True)
            return None

    async def _store(self, key: str, streams: list[ResolvedStream]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.put(key, streams, self._ttl)
        except Exception:
            log.warning("resolve_cache_write_failed", key=key, exc_info=True)

    async def _run_provider(
        self, provider: StreamProviderPort, request: ContentRequest
    ) -> list[ResolvedStream]:
        try:
            streams = await asyncio.wait_for(
                provider.resolve(request), timeout=self._provider_timeout
            )
        except TimeoutError:
            log.warning(
                "resolve_provider_timeout",
                provider=provider.name,
                timeout=self._provider_timeout,
            )
            return []
        log.debug("resolve_provider_done", provider=provider.name, streams=len(streams))
        return list(streams)
