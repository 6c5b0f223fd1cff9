"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "stremsrc",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agents": [
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36",
        ],
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "enabled": True,
        "backend": "diskcache",
        "dir": "./.cache/stremsrc",
        "redis_url": "redis://localhost:6379/0",
        "ttl_seconds": 3600,
        "stream_ttl_seconds": 7200,
    },
    "providers": {
        "enabled": ["vidsrc", "hdhub"],
        "timeout_seconds": 45.0,
    },
    "vidsrc": {
        "embed_base_url": "https://vidsrc.xyz/embed",
        "default_base_domain": "https://cloudnestra.com",
        "stagger_ms": 200,
        "server_concurrency": "parallel",
        "fetch_timeout_seconds": 15.0,
    },
    "hdhub": {
        "base_url": "https://new1.hdhub4u.fo",
        "match_threshold": 40.0,
        "trusted_hosts": ["pixeldrain", "r2.dev", "workers.dev"],
        "fetch_timeout_seconds": 15.0,
    },
}
