from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request

from stremsrc.infrastructure.config import AppConfig
from stremsrc.interfaces.app_state import AppState
from stremsrc.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    """FastAPI app serving the Stremio add-on routes.

    No I/O happens here; ``lifespan`` opens the cache and HTTP client.
    """
    app = FastAPI(
        title="stremsrc",
        description="Stremio add-on resolving streams from VidSrc and HDHub",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from stremsrc.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        t0 = time.perf_counter_ns()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status,
                duration_ms=(time.perf_counter_ns() - t0) // 1_000_000,
            )

    return app
