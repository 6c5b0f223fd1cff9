"""Tests for the composition root."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from stremsrc.infrastructure.config import AppConfig, load_config
from stremsrc.infrastructure.metadata.imdb_suggest import ImdbSuggestMetadataClient
from stremsrc.infrastructure.metadata.tmdb_client import TmdbMetadataClient
from stremsrc.infrastructure.providers import HDHubProvider, VidSrcProvider
from stremsrc.interfaces import composition
from stremsrc.interfaces.composition import (
    _build_metadata,
    build_providers,
    build_resolve_use_case,
    lifespan,
)


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


class TestBuildProviders:
    def test_order_follows_config(
        self, http_client: httpx.AsyncClient, mock_cache: AsyncMock
    ) -> None:
        config = load_config(cli_overrides={"providers_enabled": ["hdhub", "vidsrc"]})

        providers = build_providers(config, http_client, mock_cache)

        assert [type(p) for p in providers] == [HDHubProvider, VidSrcProvider]

    def test_single_provider(
        self, http_client: httpx.AsyncClient, mock_cache: AsyncMock
    ) -> None:
        config = load_config(cli_overrides={"providers_enabled": ["vidsrc"]})

        assert [p.name for p in build_providers(config, http_client, mock_cache)] == [
            "vidsrc"
        ]


class TestBuildMetadata:
    def test_tmdb_with_key(
        self, http_client: httpx.AsyncClient, mock_cache: AsyncMock
    ) -> None:
        config = AppConfig(tmdb_api_key="key")
        assert isinstance(_build_metadata(config, http_client, mock_cache), TmdbMetadataClient)

    def test_imdb_fallback(
        self, http_client: httpx.AsyncClient, mock_cache: AsyncMock
    ) -> None:
        config = AppConfig()
        assert isinstance(
            _build_metadata(config, http_client, mock_cache), ImdbSuggestMetadataClient
        )


class TestBuildResolveUseCase:
    @pytest.mark.asyncio()
    async def test_cache_disabled_skips_store(
        self, http_client: httpx.AsyncClient, mock_cache: AsyncMock
    ) -> None:
        config = load_config(
            cli_overrides={"cache_enabled": False, "providers_enabled": []}
        )

        uc = build_resolve_use_case(config, http_client, mock_cache)

        assert uc.provider_names == []
        assert await uc.resolve("tt0111161", "movie") == []
        mock_cache.get.assert_not_awaited()
        mock_cache.set.assert_not_awaited()


class TestLifespan:
    @pytest.mark.asyncio()
    async def test_cache_closed_when_setup_fails(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        cache = AsyncMock()
        monkeypatch.setattr(composition, "build_cache", lambda config: cache)

        def _broken(*args, **kwargs):
            raise RuntimeError("bad provider config")

        monkeypatch.setattr(composition, "build_resolve_use_case", _broken)
        app = SimpleNamespace(state=SimpleNamespace(config=AppConfig()))

        with pytest.raises(RuntimeError, match="bad provider config"):
            async with lifespan(app):
                pass

        cache.__aenter__.assert_awaited_once()
        cache.aclose.assert_awaited_once()
