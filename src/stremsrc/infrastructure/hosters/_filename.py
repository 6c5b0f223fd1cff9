"""Filename and quality helpers shared by the host extractors."""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_QUALITY = "1080"

_QUALITY_RE = re.compile(r"(\d{3,4})p", re.IGNORECASE)
# filename*=UTF-8''name.mkv  or  filename="name.mkv"
_CD_EXT_RE = re.compile(r"filename\*\s*=\s*[^']*''([^;]+)", re.IGNORECASE)
_CD_RE = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)
_UNSAFE_RE = re.compile(r"[^\w\s.\-\[\]()]")


def quality_from_header(header: str) -> str:
    """``1080`` from ``"Movie 1080p WEB-DL"``; default ``1080``."""
    m = _QUALITY_RE.search(header)
    return m.group(1) if m else DEFAULT_QUALITY


def filename_from_disposition(value: str) -> str:
    m = _CD_EXT_RE.search(value)
    if m:
        return unquote(m.group(1).strip())
    m = _CD_RE.search(value)
    return m.group(1).strip() if m else ""


def filename_from_url(url: str) -> str:
    """Last path segment when it looks like a file (has an extension)."""
    segment = unquote(urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1])
    return segment if "." in segment.strip(".") else ""


def clean_header(header: str) -> str:
    return " ".join(_UNSAFE_RE.sub(" ", header).split())


async def resolve_filename(
    http_client: httpx.AsyncClient,
    url: str,
    header: str,
    *,
    timeout: float = 8.0,
) -> str:
    """Content-Disposition from HEAD, then URL segment, then cleaned header."""
    try:
        resp = await http_client.head(url, follow_redirects=True, timeout=timeout)
        disposition = resp.headers.get("content-disposition", "")
        if disposition:
            name = filename_from_disposition(disposition)
            if name:
                return name
    except httpx.HTTPError:
        log.debug("filename_head_failed", url=url[:120])

    return filename_from_url(url) or clean_header(header)
