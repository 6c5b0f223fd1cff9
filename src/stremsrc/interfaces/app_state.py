"""Typed view of ``app.state``."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from stremsrc.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from stremsrc.application.use_cases.resolve_streams import ResolveStreamsUseCase
    from stremsrc.domain.ports import CachePort


class AppState(State):
    """Resources attached to the FastAPI app.

    ``config`` is set by ``build_app``; the rest by ``lifespan``.
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient

    # Application Services
    resolve_streams_uc: ResolveStreamsUseCase
