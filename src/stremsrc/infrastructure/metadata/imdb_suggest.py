"""IMDb Suggest fallback - title resolution without an API key."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from stremsrc.domain.entities.streams import TitleInfo
from stremsrc.domain.ports.cache import CachePort

from .tmdb_client import title_info_from_dict, title_info_to_dict

log = structlog.get_logger(__name__)

_SUGGEST_URL = "https://v2.sg.media-imdb.com/suggestion/t/{imdb_id}.json"
_TTL_TITLE = 86_400  # 24 hours


class ImdbSuggestMetadataClient:
    """Title resolver using the free IMDb Suggest API.

    Drop-in ``MetadataLookupPort`` used when no TMDB API key is
    configured.  Suggest entries carry the title in ``l`` and the year in
    ``y``; there is no original-language title.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
    ) -> None:
        self._http = http_client
        self._cache = cache

    async def _fetch_entry(self, imdb_id: str) -> dict[str, Any] | None:
        url = _SUGGEST_URL.format(imdb_id=imdb_id)
        try:
            resp = await self._http.get(url, timeout=10.0)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning("imdb_suggest_failed", imdb_id=imdb_id, exc_info=True)
            return None

        entries = data.get("d", []) if isinstance(data, dict) else []
        if not entries:
            return None
        # Prefer the entry matching the requested id
        for entry in entries:
            if entry.get("id") == imdb_id:
                return entry
        return entries[0]

    async def lookup(self, content_id: str, kind: str) -> TitleInfo | None:
        cache_key = f"imdb:suggest:{content_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return title_info_from_dict(cached)

        entry = await self._fetch_entry(content_id)
        if not entry or not entry.get("l"):
            log.info("imdb_title_not_found", content_id=content_id, kind=kind)
            return None

        year = entry.get("y") if isinstance(entry.get("y"), int) else None
        info = TitleInfo(title=entry["l"], year=year)
        await self._cache.set(cache_key, title_info_to_dict(info), ttl=_TTL_TITLE)
        log.debug("imdb_title_resolved", content_id=content_id, title=info.title)
        return info
