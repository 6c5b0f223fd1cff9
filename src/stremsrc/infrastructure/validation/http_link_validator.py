"""Liveness check for extracted download links."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from urllib.parse import urlsplit

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_TRUSTED_HOSTS: tuple[str, ...] = ("pixeldrain", "r2.dev", "workers.dev")

# Dead links are re-checked sooner than live ones
_LIVE_TTL = 6 * 3600
_DEAD_TTL = 15 * 60
_OK_STATUSES = frozenset({200, 206})


class HttpLinkValidator:
    """Confirms that an extracted link is fetchable.

    Hosts containing any *trusted_hosts* substring are accepted without a
    request.  Everything else must answer HEAD with 200 or 206 (byte-range
    servers).  Verdicts are remembered per instance, keyed by URL;
    expired ones are dropped whenever a new verdict is stored.

    Args:
        http_client: Shared async client.
        trusted_hosts: Host substrings accepted unconditionally.
        timeout_seconds: HEAD timeout.
        max_concurrent: Parallel HEAD requests allowed.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        trusted_hosts: Iterable[str] = DEFAULT_TRUSTED_HOSTS,
        timeout_seconds: float = 8.0,
        max_concurrent: int = 20,
    ) -> None:
        self._http = http_client
        self.trusted_hosts = tuple(h.lower() for h in trusted_hosts)
        self._timeout = timeout_seconds
        self._limit = asyncio.Semaphore(max_concurrent)
        # url -> (verdict, monotonic deadline)
        self._verdicts: dict[str, tuple[bool, float]] = {}

    def is_trusted(self, url: str) -> bool:
        host = (urlsplit(url).hostname or "").lower()
        return any(trusted in host for trusted in self.trusted_hosts)

    def _remembered(self, url: str) -> bool | None:
        verdict = self._verdicts.get(url)
        if verdict is None or time.monotonic() >= verdict[1]:
            return None
        return verdict[0]

    async def validate(self, url: str) -> bool:
        if not url.startswith(("http://", "https://")):
            return False
        if self.is_trusted(url):
            return True

        remembered = self._remembered(url)
        if remembered is not None:
            return remembered

        async with self._limit:
            alive = await self._head_ok(url)
        self._remember(url, alive)
        return alive

    def _remember(self, url: str, alive: bool) -> None:
        now = time.monotonic()
        expired = [u for u, (_, deadline) in self._verdicts.items() if now >= deadline]
        for u in expired:
            del self._verdicts[u]
        ttl = _LIVE_TTL if alive else _DEAD_TTL
        self._verdicts[url] = (alive, now + ttl)

    async def _head_ok(self, url: str) -> bool:
        try:
            resp = await self._http.head(url, timeout=self._timeout, follow_redirects=True)
        except httpx.TimeoutException:
            log.info("link_check_timeout", url=url[:120], timeout=self._timeout)
            return False
        except httpx.HTTPError as exc:
            log.info("link_check_failed", url=url[:120], error=str(exc))
            return False

        alive = resp.status_code in _OK_STATUSES
        log.debug("link_checked", url=url[:120], status=resp.status_code, alive=alive)
        return alive
