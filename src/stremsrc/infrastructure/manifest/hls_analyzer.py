"""HLS master-playlist analyzer.

Fetches a playlist and lists its renditions.  Parsing is a pure line
scanner over ``#EXT-X-STREAM-INF`` tags; media playlists (no variants)
yield an empty ``ManifestInfo``.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

import httpx
import structlog

from stremsrc.domain.entities.streams import ManifestInfo, QualityVariant
from stremsrc.infrastructure.common.constants import DEFAULT_PROBE_TIMEOUT

log = structlog.get_logger(__name__)

_STREAM_INF = "#EXT-X-STREAM-INF:"
# KEY=value or KEY="quoted, value"
_ATTR_RE = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


def _parse_attributes(raw: str) -> dict[str, str]:
    return {key: value.strip('"') for key, value in _ATTR_RE.findall(raw)}


def _variant_label(height: int | None, name: str, bandwidth: int | None) -> str:
    if height:
        return f"{height}p"
    if name:
        return name
    if bandwidth:
        return f"{bandwidth // 1000} kbps"
    return "Unknown"


def parse_master_playlist(text: str, base_url: str) -> ManifestInfo | None:
    """Parse playlist *text*; variant URIs are resolved against *base_url*.

    Returns None when the body is not an M3U playlist.
    """
    lines = [line.strip() for line in text.splitlines()]
    if not lines or not any(line.startswith("#EXTM3U") for line in lines[:5]):
        return None

    variants: list[QualityVariant] = []
    pending: dict[str, str] | None = None
    for line in lines:
        if not line:
            continue
        if line.startswith(_STREAM_INF):
            pending = _parse_attributes(line[len(_STREAM_INF) :])
            continue
        if line.startswith("#") or pending is None:
            continue

        height: int | None = None
        resolution = pending.get("RESOLUTION", "")
        if "x" in resolution:
            _, _, raw_height = resolution.partition("x")
            if raw_height.isdigit():
                height = int(raw_height)
        raw_bw = pending.get("BANDWIDTH", "")
        bandwidth = int(raw_bw) if raw_bw.isdigit() else None

        variants.append(
            QualityVariant(
                url=urljoin(base_url, line),
                label=_variant_label(height, pending.get("NAME", ""), bandwidth),
                height=height,
                bandwidth=bandwidth,
            )
        )
        pending = None

    return ManifestInfo(variants=tuple(variants))


class HlsManifestAnalyzer:
    """Fetches and parses HLS master playlists.

    Args:
        http_client: Shared httpx.AsyncClient (injected).
        timeout_seconds: Playlist fetch timeout.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds

    async def analyze(self, url: str, referer: str | None = None) -> ManifestInfo | None:
        headers = {"Referer": f"{referer.rstrip('/')}/"} if referer else {}
        try:
            resp = await self._http.get(
                url,
                headers=headers,
                timeout=self._timeout,
                follow_redirects=True,
            )
            resp.raise_for_status()
        except httpx.TimeoutException:
            log.warning("hls_manifest_timeout", url=url[:120])
            return None
        except httpx.HTTPStatusError as exc:
            log.warning(
                "hls_manifest_http_error",
                url=url[:120],
                status=exc.response.status_code,
            )
            return None
        except httpx.HTTPError as exc:
            log.warning("hls_manifest_fetch_error", url=url[:120], error=str(exc))
            return None

        info = parse_master_playlist(resp.text, str(resp.url))
        if info is None:
            log.debug("hls_manifest_not_m3u", url=url[:120])
            return None
        best = info.highest
        log.debug(
            "hls_manifest_parsed",
            url=url[:120],
            variants=len(info.variants),
            best=best.label if best else None,
        )
        return info
