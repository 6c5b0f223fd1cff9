"""Wiring: config -> cache, HTTP client, providers, use case."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from stremsrc.application.use_cases.resolve_streams import ResolveStreamsUseCase
from stremsrc.domain.ports import CachePort, MetadataLookupPort, StreamProviderPort
from stremsrc.infrastructure.cache.cache_factory import create_cache
from stremsrc.infrastructure.config.schema import AppConfig
from stremsrc.infrastructure.hosters import (
    ExtractorRegistry,
    HubCloudExtractor,
    HubDriveExtractor,
)
from stremsrc.infrastructure.manifest.hls_analyzer import HlsManifestAnalyzer
from stremsrc.infrastructure.metadata.imdb_suggest import ImdbSuggestMetadataClient
from stremsrc.infrastructure.metadata.tmdb_client import TmdbMetadataClient
from stremsrc.infrastructure.persistence.stream_cache import CacheStreamStore
from stremsrc.infrastructure.providers import HDHubProvider, VidSrcProvider
from stremsrc.infrastructure.validation.http_link_validator import HttpLinkValidator
from stremsrc.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_cache(config: AppConfig) -> CachePort:
    return create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
        namespace=config.app_name,
    )


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
    )


def _build_metadata(
    config: AppConfig, http_client: httpx.AsyncClient, cache: CachePort
) -> MetadataLookupPort:
    if config.tmdb_api_key:
        log.info("metadata_client_initialized", source="tmdb")
        return TmdbMetadataClient(
            api_key=config.tmdb_api_key,
            http_client=http_client,
            cache=cache,
        )
    log.info("metadata_client_fallback", reason="no API key, using IMDb suggest API")
    return ImdbSuggestMetadataClient(http_client=http_client, cache=cache)


def build_providers(
    config: AppConfig, http_client: httpx.AsyncClient, cache: CachePort
) -> list[StreamProviderPort]:
    """Providers listed in ``providers.enabled``, in that order."""
    user_agents = config.http_user_agents
    analyzer = HlsManifestAnalyzer(http_client)
    providers: list[StreamProviderPort] = []

    for name in config.providers.enabled:
        if name == "vidsrc":
            providers.append(
                VidSrcProvider(
                    http_client,
                    manifest_analyzer=analyzer,
                    embed_base_url=config.vidsrc.embed_base_url,
                    default_base_domain=config.vidsrc.default_base_domain,
                    stagger_ms=config.vidsrc.stagger_ms,
                    server_concurrency=config.vidsrc.server_concurrency,
                    timeout=config.vidsrc.fetch_timeout_seconds,
                    user_agents=user_agents,
                )
            )
        elif name == "hdhub":
            hubcloud = HubCloudExtractor(
                http_client,
                timeout=config.hdhub.fetch_timeout_seconds,
                user_agents=user_agents,
            )
            extractors = ExtractorRegistry(
                [
                    HubDriveExtractor(
                        http_client,
                        hubcloud=hubcloud,
                        timeout=config.hdhub.fetch_timeout_seconds,
                        user_agents=user_agents,
                    ),
                    hubcloud,
                ]
            )
            providers.append(
                HDHubProvider(
                    http_client,
                    metadata=_build_metadata(config, http_client, cache),
                    extractors=extractors,
                    validator=HttpLinkValidator(
                        http_client, trusted_hosts=config.hdhub.trusted_hosts
                    ),
                    manifest_analyzer=analyzer,
                    base_url=config.hdhub.base_url,
                    match_threshold=config.hdhub.match_threshold,
                    timeout=config.hdhub.fetch_timeout_seconds,
                    user_agents=user_agents,
                )
            )
    log.info("providers_initialized", providers=[p.name for p in providers])
    return providers


def build_resolve_use_case(
    config: AppConfig, http_client: httpx.AsyncClient, cache: CachePort
) -> ResolveStreamsUseCase:
    stream_cache = CacheStreamStore(cache) if config.cache.enabled else None
    return ResolveStreamsUseCase(
        providers=build_providers(config, http_client, cache),
        stream_cache=stream_cache,
        cache_ttl_seconds=config.cache.stream_ttl_seconds,
        provider_timeout_seconds=config.providers.timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the cache and HTTP client for the app's lifetime.

    Both are closed again on shutdown, client first.
    """
    state = cast(AppState, app.state)
    config = state.config

    cache = build_cache(config)
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_ready", backend=config.cache.backend)

    http_client: httpx.AsyncClient | None = None
    try:
        http_client = build_http_client(config)
        state.http_client = http_client
        log.info("http_client_initialized", timeout=config.http_timeout_seconds)

        state.resolve_streams_uc = build_resolve_use_case(config, http_client, cache)
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()
        await cache.aclose()
        log.info("resources_closed")
