"""Tests for the command-line entrypoint."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from stremsrc.domain.entities import ResolvedStream
from stremsrc.interfaces.cli import cli


class TestParseArgs:
    def test_defaults(self) -> None:
        args = cli._parse_args([])

        assert args.resolve is None
        assert args.content_type == "movie"
        assert args.no_cache is False
        assert cli._cli_overrides(args) == {}

    def test_overrides(self) -> None:
        args = cli._parse_args(
            [
                "--providers",
                "vidsrc, hdhub,",
                "--no-cache",
                "--log-level",
                "DEBUG",
                "--log-format",
                "json",
            ]
        )

        assert cli._cli_overrides(args) == {
            "providers_enabled": ["vidsrc", "hdhub"],
            "cache_enabled": False,
            "log_level": "DEBUG",
            "log_format": "json",
        }

    def test_resolve_series(self) -> None:
        args = cli._parse_args(["--resolve", "tt0903747:1:2", "--type", "series"])

        assert args.resolve == "tt0903747:1:2"
        assert args.content_type == "series"

    def test_invalid_type(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args(["--type", "anime"])


class TestStart:
    def test_resolve_prints_json(
        self,
        resolved_stream: ResolvedStream,
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda config: {})
        with patch.object(
            cli, "resolve_once", AsyncMock(return_value=[resolved_stream])
        ) as resolve_once:
            code = cli.start(["--resolve", "tt0111161", "--no-cache"])

        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out == [resolved_stream.to_dict()]
        config, content_id, content_type = resolve_once.await_args.args
        assert config.cache.enabled is False
        assert (content_id, content_type) == ("tt0111161", "movie")

    def test_serve_runs_uvicorn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda config: {"version": 1})
        with patch.object(cli.uvicorn, "run") as run:
            code = cli.start(["--port", "7100", "--host", "127.0.0.1"])

        assert code == 0
        kwargs = run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 7100
        assert kwargs["log_config"] == {"version": 1}
