"""Tests for the VidSrc provider."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from stremsrc.domain.entities import ContentRequest, ManifestInfo, QualityVariant
from stremsrc.infrastructure.providers.vidsrc import (
    VidSrcProvider,
    build_embed_url,
    normalize_stream_url,
    parse_embed_page,
)

_EMBED = "https://vidsrc.test/embed"
_PLAYER = "https://player.test"

_EMBED_HTML = """<html><head><title>The Shawshank Redemption</title></head>
<body>
<iframe id="player_iframe" src="//player.test/rcp/first"></iframe>
<div class="serversList">
  <div class="server" data-hash="h1">CloudStream Pro</div>
  <div class="server" data-hash="h2">2Embed</div>
  <div class="server">Broken</div>
</div>
</body></html>"""

_RCP_H1 = "<script>var x = { src: '/prorcp/p1', w: 1 };</script>"
_PRORCP_P1 = "<script>new Playerjs({id:'player', file: 'https://cdn.example/a/master.m3u8'});</script>"


@pytest.fixture()
def movie() -> ContentRequest:
    return ContentRequest.parse("tt0111161", "movie")


def _provider(client: httpx.AsyncClient, **kwargs) -> VidSrcProvider:
    kwargs.setdefault("stagger_ms", 0)
    return VidSrcProvider(client, embed_base_url=_EMBED, **kwargs)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestBuildEmbedUrl:
    def test_movie(self, movie: ContentRequest) -> None:
        assert build_embed_url(_EMBED, movie) == f"{_EMBED}/movie/tt0111161"

    def test_series(self) -> None:
        req = ContentRequest.parse("tt0903747:1:5", "series")
        assert build_embed_url(_EMBED + "/", req) == f"{_EMBED}/tv/tt0903747/1-5"


class TestParseEmbedPage:
    def test_servers_and_domain(self) -> None:
        page = parse_embed_page(_EMBED_HTML, "https://fallback.test")

        assert page.title == "The Shawshank Redemption"
        assert page.base_domain == _PLAYER
        assert [s.opaque_handle for s in page.servers] == ["h1", "h2"]
        assert page.servers[0].label == "CloudStream Pro"

    def test_default_domain_without_iframe(self) -> None:
        page = parse_embed_page("<html><body></body></html>", "https://fallback.test/")
        assert page.base_domain == "https://fallback.test"
        assert page.servers == ()

    def test_default_domain_for_unparseable_iframe(self) -> None:
        html = _EMBED_HTML.replace("//player.test/rcp/first", "https://[bad/embed")
        page = parse_embed_page(html, "https://fallback.test")
        assert page.base_domain == "https://fallback.test"
        assert len(page.servers) == 2


class TestNormalizeStreamUrl:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("//cdn.example/x.m3u8", "https://cdn.example/x.m3u8"),
            ("https://cdn.example/x.m3u8", "https://cdn.example/x.m3u8"),
            ("http://cdn.example/x.m3u8", "http://cdn.example/x.m3u8"),
            ("/list/x.m3u8", f"{_PLAYER}/list/x.m3u8"),
            ("x.m3u8", None),
        ],
    )
    def test_normalize(self, value: str, expected: str | None) -> None:
        assert normalize_stream_url(value, _PLAYER) == expected


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestVidSrcResolve:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_slow_server_does_not_block_others(
        self, movie: ContentRequest
    ) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        respx.get(f"{_PLAYER}/rcp/h1").respond(200, text=_RCP_H1)
        respx.get(f"{_PLAYER}/prorcp/p1").respond(200, text=_PRORCP_P1)
        respx.get(f"{_PLAYER}/rcp/h2").mock(side_effect=httpx.ReadTimeout("slow"))

        async with httpx.AsyncClient() as client:
            streams = await _provider(client).resolve(movie)

        assert len(streams) == 1
        stream = streams[0]
        assert stream.stream_url == "https://cdn.example/a/master.m3u8"
        assert stream.provider_name == "VidSrc"
        assert stream.display_title == "[VidSrc] The Shawshank Redemption"
        assert stream.referer_url == _PLAYER
        assert stream.content_id == "tt0111161"
        assert stream.quality_info is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_direct_absolute_source(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        respx.get(f"{_PLAYER}/rcp/h1").respond(
            200, text="src: '//cdn.example/direct/master.m3u8'"
        )
        respx.get(f"{_PLAYER}/rcp/h2").respond(200, text="src: 'relative/path'")

        async with httpx.AsyncClient() as client:
            streams = await _provider(client).resolve(movie)

        assert [s.stream_url for s in streams] == ["https://cdn.example/direct/master.m3u8"]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_sequential_keeps_server_order(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        respx.get(f"{_PLAYER}/rcp/h1").respond(200, text="src: 'https://cdn.example/1.m3u8'")
        respx.get(f"{_PLAYER}/rcp/h2").respond(200, text="src: 'https://cdn.example/2.m3u8'")

        async with httpx.AsyncClient() as client:
            streams = await _provider(client, server_concurrency="sequential").resolve(movie)

        assert [s.stream_url for s in streams] == [
            "https://cdn.example/1.m3u8",
            "https://cdn.example/2.m3u8",
        ]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_rcp_sends_referer(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        route = respx.get(f"{_PLAYER}/rcp/h1").respond(200, text="")
        respx.get(f"{_PLAYER}/rcp/h2").respond(200, text="")

        async with httpx.AsyncClient() as client:
            assert await _provider(client).resolve(movie) == []

        assert route.calls.last.request.headers["Referer"] == f"{_PLAYER}/"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_quality_info_attached(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        respx.get(f"{_PLAYER}/rcp/h1").respond(200, text="src: 'https://cdn.example/1.m3u8'")
        respx.get(f"{_PLAYER}/rcp/h2").respond(404)
        info = ManifestInfo(
            variants=(QualityVariant(url="https://cdn.example/720.m3u8", label="720p"),)
        )
        analyzer = AsyncMock()
        analyzer.analyze = AsyncMock(return_value=info)

        async with httpx.AsyncClient() as client:
            streams = await _provider(client, manifest_analyzer=analyzer).resolve(movie)

        assert len(streams) == 1
        assert streams[0].quality_info == info
        analyzer.analyze.assert_awaited_once_with(
            "https://cdn.example/1.m3u8", referer=_PLAYER
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_analyzer_failure_drops_only_that_server(
        self, movie: ContentRequest
    ) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=_EMBED_HTML)
        respx.get(f"{_PLAYER}/rcp/h1").respond(200, text="src: 'https://cdn.example/1.m3u8'")
        respx.get(f"{_PLAYER}/rcp/h2").respond(200, text="src: 'https://cdn.example/2.m3u8'")
        analyzer = AsyncMock()
        analyzer.analyze = AsyncMock(side_effect=[RuntimeError("boom"), None])

        async with httpx.AsyncClient() as client:
            streams = await _provider(
                client, manifest_analyzer=analyzer, server_concurrency="sequential"
            ).resolve(movie)

        assert [s.stream_url for s in streams] == ["https://cdn.example/2.m3u8"]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_embed_failure(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(500)

        async with httpx.AsyncClient() as client:
            assert await _provider(client).resolve(movie) == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_no_servers(self, movie: ContentRequest) -> None:
        respx.get(f"{_EMBED}/movie/tt0111161").respond(
            200, text="<html><title>x</title></html>"
        )

        async with httpx.AsyncClient() as client:
            assert await _provider(client).resolve(movie) == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_bad_iframe_falls_back_to_default_domain(
        self, movie: ContentRequest
    ) -> None:
        html = _EMBED_HTML.replace("//player.test/rcp/first", "https://[bad/embed")
        respx.get(f"{_EMBED}/movie/tt0111161").respond(200, text=html)
        respx.get("https://cloudnestra.com/rcp/h1").respond(200, text=_RCP_H1)
        respx.get("https://cloudnestra.com/prorcp/p1").respond(200, text=_PRORCP_P1)
        respx.get("https://cloudnestra.com/rcp/h2").respond(404)

        async with httpx.AsyncClient() as client:
            streams = await _provider(client).resolve(movie)

        assert len(streams) == 1
        assert streams[0].stream_url == "https://cdn.example/a/master.m3u8"
        assert streams[0].referer_url == "https://cloudnestra.com"
