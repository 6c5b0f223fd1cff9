"""TMDB metadata client - async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from stremsrc.domain.entities.streams import TitleInfo
from stremsrc.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_TTL_FIND = 86_400  # 24 hours

# /find groups results by media type; preferred group first
_RESULT_GROUPS = {
    "movie": ("movie_results", "tv_results"),
    "series": ("tv_results", "movie_results"),
}


def _year_from_date(date_str: str | None) -> int | None:
    if date_str and len(date_str) >= 4 and date_str[:4].isdigit():
        return int(date_str[:4])
    return None


def title_info_to_dict(info: TitleInfo) -> dict[str, Any]:
    return {
        "title": info.title,
        "original_title": info.original_title,
        "year": info.year,
    }


def title_info_from_dict(data: dict[str, Any]) -> TitleInfo:
    return TitleInfo(
        title=data["title"],
        original_title=data.get("original_title"),
        year=data.get("year"),
    )


class TmdbMetadataClient:
    """Resolves IMDb ids to titles via TMDB ``/find``.

    Implements ``MetadataLookupPort``.  Results are cached through
    CachePort for 24 hours.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        language: str = "en-US",
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._language = language

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{_BASE_URL}{path}"
        params = {"api_key": self._api_key, "language": self._language, **extra}
        try:
            resp = await self._http.get(url, params=params, timeout=10.0)
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None

    @staticmethod
    def _to_title_info(item: dict[str, Any]) -> TitleInfo | None:
        # Movies use title/release_date, TV uses name/first_air_date
        title = item.get("title") or item.get("name")
        if not title:
            return None
        original = item.get("original_title") or item.get("original_name")
        year = _year_from_date(item.get("release_date") or item.get("first_air_date"))
        return TitleInfo(
            title=title,
            original_title=original if original and original != title else None,
            year=year,
        )

    async def lookup(self, content_id: str, kind: str) -> TitleInfo | None:
        cache_key = f"tmdb:find:{kind}:{content_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return title_info_from_dict(cached)

        data = await self._get(f"/find/{content_id}", external_source="imdb_id")
        if data is None:
            return None

        for group in _RESULT_GROUPS.get(kind, _RESULT_GROUPS["movie"]):
            results = data.get(group) or []
            if not results:
                continue
            info = self._to_title_info(results[0])
            if info is None:
                continue
            await self._cache.set(cache_key, title_info_to_dict(info), ttl=_TTL_FIND)
            log.debug("tmdb_title_resolved", content_id=content_id, title=info.title)
            return info

        log.info("tmdb_title_not_found", content_id=content_id, kind=kind)
        return None
