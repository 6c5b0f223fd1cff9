from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS = ("http", "logging", "cache", "providers", "vidsrc", "hdhub")
_TOP_LEVEL = ("app_name", "environment", "tmdb_api_key")

# Env/CLI spelling -> (section, key) in config.yaml
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_user_agents": ("http", "user_agents"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "cache_enabled": ("cache", "enabled"),
    "cache_backend": ("cache", "backend"),
    "cache_dir": ("cache", "dir"),
    "cache_redis_url": ("cache", "redis_url"),
    "cache_stream_ttl_seconds": ("cache", "stream_ttl_seconds"),
    "providers_enabled": ("providers", "enabled"),
    "provider_timeout_seconds": ("providers", "timeout_seconds"),
    "vidsrc_embed_base_url": ("vidsrc", "embed_base_url"),
    "vidsrc_stagger_ms": ("vidsrc", "stagger_ms"),
    "vidsrc_server_concurrency": ("vidsrc", "server_concurrency"),
    "hdhub_base_url": ("hdhub", "base_url"),
    "hdhub_match_threshold": ("hdhub", "match_threshold"),
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Nested mappings merge key by key; any other value replaces."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the YAML shape.

    Section blocks are copied, top-level scalars kept, and flat keys
    (``cache_backend``, ``vidsrc_stagger_ms``) moved into their section.
    Unknown keys are dropped.
    """
    shaped: dict[str, Any] = {
        section: dict(layer[section])
        for section in _SECTIONS
        if isinstance(layer.get(section), Mapping)
    }
    shaped.update({key: layer[key] for key in _TOP_LEVEL if key in layer})

    for flat, (section, key) in _FLAT_KEYS.items():
        if flat not in layer:
            continue
        value = layer[flat]
        shaped.setdefault(section, {})[key] = str(value) if isinstance(value, Path) else value
    return shaped


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(document).__name__}")
    return document


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Merge defaults < YAML < ``STREMSRC_*`` env < CLI and validate.

    A ``.env`` file only fills variables that are not already set.
    Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
