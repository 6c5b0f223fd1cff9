from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from stremsrc.domain.entities.streams import CONTENT_KINDS, ResolvedStream
from stremsrc.infrastructure.config import AppConfig, load_config
from stremsrc.infrastructure.logging.setup import configure_logging
from stremsrc.interfaces.composition import (
    build_cache,
    build_http_client,
    build_resolve_use_case,
)
from stremsrc.interfaces.main import build_app

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="stremsrc")

    # Server options
    parser.add_argument(
        "--host",
        default=None,
        help="Interface to listen on (default: $HOST or 0.0.0.0).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Port to listen on (default: $PORT or 7000).",
    )

    # One-shot resolution instead of serving
    parser.add_argument(
        "--resolve",
        metavar="ID",
        default=None,
        help="Resolve one content id (tt123 or tt123:1:5), print JSON and exit.",
    )
    parser.add_argument(
        "--type",
        dest="content_type",
        default="movie",
        choices=list(CONTENT_KINDS),
        help="Content kind for --resolve.",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help=".env file loaded before reading STREMSRC_* variables.",
    )
    parser.add_argument(
        "--providers",
        default=None,
        help="Comma-separated provider list (e.g. vidsrc,hdhub).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable the stream result cache.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Log renderer.",
    )

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.providers:
        overrides["providers_enabled"] = [
            p.strip() for p in args.providers.split(",") if p.strip()
        ]
    if args.no_cache:
        overrides["cache_enabled"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    return overrides


async def resolve_once(
    config: AppConfig, content_id: str, content_type: str
) -> list[ResolvedStream]:
    """Build a short-lived pipeline, resolve one id, release resources."""
    async with build_cache(config) as cache, build_http_client(config) as http_client:
        use_case = build_resolve_use_case(config, http_client, cache)
        return await use_case.resolve(content_id, content_type)


def start(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint: serve the add-on, or resolve one id with --resolve."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=_cli_overrides(args),
    )
    log_config = configure_logging(config)

    if args.resolve:
        streams = asyncio.run(resolve_once(config, args.resolve, args.content_type))
        json.dump([s.to_dict() for s in streams], sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7000"))
    uvicorn.run(
        build_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
