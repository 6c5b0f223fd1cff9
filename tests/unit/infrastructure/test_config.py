"""Tests for layered configuration loading (defaults < YAML < ENV < CLI)."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from stremsrc.infrastructure.config import AppConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    import os

    for key in list(os.environ):
        if key.startswith("STREMSRC_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    config = {
        "environment": "test",
        "logging": {"level": "DEBUG"},
        "cache": {"dir": str(tmp_path / "cache"), "backend": "redis"},
        "providers": {"enabled": ["hdhub"], "timeout_seconds": 20},
        "vidsrc": {"stagger_ms": 50},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()

        assert config.app_name == "stremsrc"
        assert config.log_level == "INFO"
        assert config.log_format == "console"
        assert config.cache.backend == "diskcache"
        assert config.cache.stream_ttl_seconds == 7200
        assert config.providers.enabled == ["vidsrc", "hdhub"]
        assert config.providers.timeout_seconds == 45.0
        assert config.vidsrc.server_concurrency == "parallel"
        assert config.hdhub.match_threshold == 40.0
        assert len(config.http_user_agents) == 2
        assert config.tmdb_api_key is None

    def test_prod_defaults_to_json_logs(self) -> None:
        assert load_config(cli_overrides={"environment": "prod"}).log_format == "json"


class TestPrecedence:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)

        assert config.environment == "test"
        assert config.log_level == "DEBUG"
        assert config.cache.backend == "redis"
        assert config.cache.directory == tmp_path / "cache"
        assert config.providers.enabled == ["hdhub"]
        assert config.vidsrc.stagger_ms == 50
        # Untouched keys keep their defaults
        assert config.vidsrc.embed_base_url == "https://vidsrc.xyz/embed"

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREMSRC_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("STREMSRC_PROVIDERS_ENABLED", '["vidsrc"]')
        monkeypatch.setenv("STREMSRC_VIDSRC_STAGGER_MS", "0")
        monkeypatch.setenv("STREMSRC_TMDB_API_KEY", "secret")

        config = load_config(config_path=yaml_config)

        assert config.log_level == "WARNING"
        assert config.providers.enabled == ["vidsrc"]
        assert config.vidsrc.stagger_ms == 0
        assert config.tmdb_api_key == "secret"

    def test_cli_overrides_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREMSRC_CACHE_ENABLED", "true")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"cache_enabled": False, "log_format": "json"},
        )

        assert config.cache.enabled is False
        assert config.log_format == "json"

    def test_dotenv_participates_as_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("STREMSRC_HDHUB_BASE_URL=https://mirror.test\n", encoding="utf-8")
        # load_dotenv writes into os.environ; let monkeypatch undo it
        monkeypatch.setenv("STREMSRC_HDHUB_BASE_URL", "")
        monkeypatch.delenv("STREMSRC_HDHUB_BASE_URL")

        config = load_config(dotenv_path=dotenv)

        assert config.hdhub.base_url == "https://mirror.test"


class TestValidation:
    def test_missing_files_raise(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(config_path=path)

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"providers_enabled": ["nope"]})

    def test_non_positive_ttl_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"cache_stream_ttl_seconds": 0})

    def test_sectioned_dump_round_trips(self) -> None:
        config = load_config()
        assert AppConfig.model_validate(config.to_sectioned_dict()) == config
