"""Stremio add-on API endpoints (manifest, stream)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from stremsrc.domain.entities.streams import CONTENT_KINDS
from stremsrc.interfaces.api.stremio.presenter import present_streams
from stremsrc.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_ADDON_ID = "xyz.theditor.stremsrc"
_ADDON_VERSION = "0.1.0"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


def build_manifest() -> dict[str, Any]:
    return {
        "id": _ADDON_ID,
        "version": _ADDON_VERSION,
        "name": "stremsrc",
        "description": "A VidSrc and HDHub extractor for Stremio",
        "types": list(CONTENT_KINDS),
        "catalogs": [],
        "resources": [
            {
                "name": "stream",
                "types": list(CONTENT_KINDS),
                "idPrefixes": ["tt"],
            }
        ],
        "behaviorHints": {"configurable": False},
    }


@router.get("/manifest.json")
async def stremio_manifest() -> JSONResponse:
    return JSONResponse(content=build_manifest(), headers=_CORS_HEADERS)


@router.get("/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams for a movie (``tt123``) or episode (``tt123:1:5``)."""
    state = cast(AppState, request.app.state)

    if content_type not in CONTENT_KINDS:
        log.info("stremio_unknown_type", content_type=content_type)
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    log.info("stremio_stream_request", content_type=content_type, stream_id=stream_id)
    streams = await state.resolve_streams_uc.resolve(stream_id, content_type)
    entries = present_streams(streams)
    log.info("stremio_stream_response", stream_id=stream_id, entries=len(entries))
    return JSONResponse(content={"streams": entries}, headers=_CORS_HEADERS)
