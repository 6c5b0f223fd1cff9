"""Shared base class for httpx-based providers and host extractors.

Owns nothing but a reference to the process-wide ``httpx.AsyncClient``
(created and closed by the composition root) and provides the
``_safe_fetch`` helper: every hop either returns a response or ``None``,
logging the failure instead of raising.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

import httpx
import structlog

from .constants import DEFAULT_FETCH_TIMEOUT, DEFAULT_USER_AGENTS


class HttpxClientBase:
    """Shared fetch helpers on top of an injected ``httpx.AsyncClient``.

    Subclasses set ``name``; it prefixes every log event
    (``{name}_timeout``, ``{name}_http_error``, ...).

    Args:
        http_client: Shared async client.
        timeout: Per-request timeout in seconds.
        user_agents: Pool for randomized browser headers.
        rng: Random source for User-Agent selection.
    """

    name: str = ""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        rng: random.Random | None = None,
    ) -> None:
        self._http = http_client
        self._timeout = timeout
        self._user_agents = tuple(user_agents) or DEFAULT_USER_AGENTS
        self._rng = rng or random.Random()
        self._log = structlog.get_logger(self.name or __name__)

    def _browser_headers(self, referer: str = "") -> dict[str, str]:
        """Randomized browser-like headers, with ``Referer: {referer}/``."""
        headers = {
            "accept": "*/*",
            "accept-language": "en-US,en;q=0.9",
            "User-Agent": self._rng.choice(self._user_agents),
        }
        if referer:
            headers["Referer"] = f"{referer.rstrip('/')}/"
        return headers

    async def _safe_fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        context: str = "",
        referer: str = "",
        **kwargs: object,
    ) -> httpx.Response | None:
        """Fetch *url* with structured error logging.

        Returns ``None`` on timeout, network error or non-2xx status.
        """
        kwargs.setdefault("timeout", self._timeout)
        kwargs.setdefault("headers", self._browser_headers(referer))
        try:
            resp = await self._http.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException:
            self._log.warning(f"{self.name}_timeout", url=url, context=context)
        except httpx.HTTPStatusError as exc:
            self._log.warning(
                f"{self.name}_http_error",
                url=url,
                status=exc.response.status_code,
                context=context,
            )
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                f"{self.name}_fetch_error",
                url=url,
                error=str(exc),
                context=context,
            )
        return None
