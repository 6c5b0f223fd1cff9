"""Shared test fixtures for the stremsrc test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from stremsrc.domain.entities import (
    ContentRequest,
    ManifestInfo,
    QualityVariant,
    ResolvedStream,
    TitleInfo,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> ContentRequest:
    return ContentRequest.parse("tt0111161", "movie")


@pytest.fixture()
def episode_request() -> ContentRequest:
    return ContentRequest.parse("tt0903747:1:2", "series")


@pytest.fixture()
def resolved_stream() -> ResolvedStream:
    """Minimal VidSrc stream without quality info."""
    return ResolvedStream(
        provider_name="VidSrc",
        display_title="[VidSrc] The Shawshank Redemption",
        stream_url="https://cdn.example/a/master.m3u8",
        referer_url="https://player.example",
        content_id="tt0111161",
    )


@pytest.fixture()
def hls_stream() -> ResolvedStream:
    """Stream carrying two HLS variants."""
    return ResolvedStream(
        provider_name="VidSrc",
        display_title="[VidSrc] The Shawshank Redemption",
        stream_url="https://cdn.example/a/master.m3u8",
        referer_url="https://player.example",
        content_id="tt0111161",
        quality_info=ManifestInfo(
            variants=(
                QualityVariant(
                    url="https://cdn.example/a/720.m3u8",
                    label="720p",
                    height=720,
                    bandwidth=2_500_000,
                ),
                QualityVariant(
                    url="https://cdn.example/a/1080.m3u8",
                    label="1080p",
                    height=1080,
                    bandwidth=5_000_000,
                ),
            )
        ),
    )


@pytest.fixture()
def title_info() -> TitleInfo:
    return TitleInfo(title="The Show", year=2020)


# ---------------------------------------------------------------------------
# Port mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_manifest_analyzer() -> AsyncMock:
    """ManifestAnalyzerPort that finds no variants."""
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(return_value=None)
    return analyzer


@pytest.fixture()
def accept_all_validator() -> AsyncMock:
    """LinkValidatorPort that accepts every link."""
    validator = AsyncMock()
    validator.validate = AsyncMock(return_value=True)
    return validator
