"""Tests for HttpLinkValidator."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
import respx

from stremsrc.infrastructure.validation import http_link_validator
from stremsrc.infrastructure.validation.http_link_validator import HttpLinkValidator


class TestTrustedHosts:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://pixeldrain.com/api/file/abc", True),
            ("https://pub-123.r2.dev/movie.mkv", True),
            ("https://dl.user.workers.dev/x", True),
            ("https://fsl.test/movie.mkv", False),
        ],
    )
    def test_is_trusted(self, url: str, expected: bool) -> None:
        validator = HttpLinkValidator(httpx.AsyncClient())
        assert validator.is_trusted(url) is expected


class TestValidate:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_trusted_skips_request(self) -> None:
        route = respx.head("https://pixeldrain.com/api/file/abc")

        async with httpx.AsyncClient() as client:
            assert await HttpLinkValidator(client).validate(
                "https://pixeldrain.com/api/file/abc"
            )

        assert not route.called

    @pytest.mark.asyncio()
    async def test_non_http_rejected(self) -> None:
        async with httpx.AsyncClient() as client:
            assert not await HttpLinkValidator(client).validate("magnet:?xt=urn:btih:abc")

    @respx.mock
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(("status", "expected"), [(200, True), (206, True), (404, False)])
    async def test_head_status(self, status: int, expected: bool) -> None:
        respx.head("https://fsl.test/movie.mkv").respond(status)

        async with httpx.AsyncClient() as client:
            assert await HttpLinkValidator(client).validate("https://fsl.test/movie.mkv") is expected

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout_is_invalid(self) -> None:
        respx.head("https://fsl.test/movie.mkv").mock(side_effect=httpx.ReadTimeout("slow"))

        async with httpx.AsyncClient() as client:
            assert not await HttpLinkValidator(client).validate("https://fsl.test/movie.mkv")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_result_cached(self) -> None:
        route = respx.head("https://fsl.test/movie.mkv").respond(200)

        async with httpx.AsyncClient() as client:
            validator = HttpLinkValidator(client)
            assert await validator.validate("https://fsl.test/movie.mkv")
            assert await validator.validate("https://fsl.test/movie.mkv")

        assert route.call_count == 1

    @pytest.mark.asyncio()
    async def test_custom_trusted_hosts(self) -> None:
        async with httpx.AsyncClient() as client:
            validator = HttpLinkValidator(client, trusted_hosts=["fsl.test"])
            assert await validator.validate("https://fsl.test/movie.mkv")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_expired_verdicts_pruned(self, monkeypatch: pytest.MonkeyPatch) -> None:
        now = [1000.0]
        monkeypatch.setattr(
            http_link_validator, "time", SimpleNamespace(monotonic=lambda: now[0])
        )
        respx.head("https://fsl.test/dead.mkv").respond(404)
        live = respx.head("https://fsl.test/live.mkv").respond(200)

        async with httpx.AsyncClient() as client:
            validator = HttpLinkValidator(client)
            assert not await validator.validate("https://fsl.test/dead.mkv")
            # Dead verdicts expire after 15 minutes
            now[0] += 16 * 60
            assert await validator.validate("https://fsl.test/live.mkv")

        assert list(validator._verdicts) == ["https://fsl.test/live.mkv"]
        assert live.call_count == 1
