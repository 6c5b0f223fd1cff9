"""VidSrc provider - embed page -> servers -> RCP -> PRORCP -> stream URL.

The embed page for a content id lists servers, each carrying an opaque
``data-hash``.  Every hash is resolved on the player domain (taken from
the embed page's iframe) through an RCP page and, for most servers, a
second PRORCP page that finally names the HLS file.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlsplit

import httpx

from stremsrc.domain.entities.streams import ContentRequest, ResolvedStream, ServerDescriptor
from stremsrc.domain.ports.manifest import ManifestAnalyzerPort
from stremsrc.infrastructure.common.html_selectors import (
    extract_attr,
    extract_text,
    parse_html,
    select_items,
)
from stremsrc.infrastructure.common.http import HttpxClientBase

DEFAULT_EMBED_BASE_URL = "https://vidsrc.xyz/embed"
DEFAULT_BASE_DOMAIN = "https://cloudnestra.com"

ServerConcurrency = Literal["parallel", "sequential"]

_SRC_RE = re.compile(r"""src:\s*['"]([^'"]*)['"]""")
_FILE_RE = re.compile(r"""file:\s*['"]([^'"]*)['"]""")
_PRORCP_PREFIX = "/prorcp/"


@dataclass(frozen=True)
class EmbedPage:
    """Parsed embed page."""

    title: str
    base_domain: str
    servers: tuple[ServerDescriptor, ...]


def build_embed_url(embed_base_url: str, request: ContentRequest) -> str:
    base = embed_base_url.rstrip("/")
    if request.kind == "series":
        return f"{base}/tv/{request.canonical_id}/{request.season}-{request.episode}"
    return f"{base}/movie/{request.canonical_id}"


def _origin_of(src: str) -> str | None:
    if src.startswith("//"):
        src = f"https:{src}"
    if not src.startswith(("http://", "https://")):
        return None
    try:
        parts = urlsplit(src)
    except ValueError:
        return None
    if not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def parse_embed_page(html: str, default_base_domain: str) -> EmbedPage:
    """Title, player base domain and server list of an embed page.

    Server entries without a ``data-hash`` are skipped.  The base domain
    is the origin of the first iframe, else *default_base_domain*.
    """
    doc = parse_html(html)
    title = extract_text(doc, "title")
    base_domain = _origin_of(extract_attr(doc, "iframe", "src")) or default_base_domain

    servers: list[ServerDescriptor] = []
    for element in select_items(doc, ".serversList .server"):
        handle = extract_attr(element, "", "data-hash")
        if handle:
            servers.append(ServerDescriptor(label=extract_text(element), opaque_handle=handle))
    return EmbedPage(title=title, base_domain=base_domain.rstrip("/"), servers=tuple(servers))


def normalize_stream_url(value: str, base_domain: str) -> str | None:
    """Absolute URL for *value*; None when it cannot be a link."""
    value = value.strip()
    if value.startswith("//"):
        return f"https:{value}"
    if value.startswith(("http://", "https://")):
        return value
    if value.startswith("/"):
        return f"{base_domain.rstrip('/')}{value}"
    return None


class VidSrcProvider(HttpxClientBase):
    """Direct-shape provider for the VidSrc embed network.

    Args:
        http_client: Shared async client.
        manifest_analyzer: Optional HLS analyzer used for quality info.
        embed_base_url: Embed page prefix.
        default_base_domain: Player domain when the embed page has no iframe.
        stagger_ms: Server ``i`` starts ``i * stagger_ms`` after the first.
        server_concurrency: ``parallel`` gathers servers, ``sequential``
            resolves them one after another.
    """

    name = "vidsrc"
    display_name = "VidSrc"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        manifest_analyzer: ManifestAnalyzerPort | None = None,
        embed_base_url: str = DEFAULT_EMBED_BASE_URL,
        default_base_domain: str = DEFAULT_BASE_DOMAIN,
        stagger_ms: int = 200,
        server_concurrency: ServerConcurrency = "parallel",
        **kwargs,
    ) -> None:
        super().__init__(http_client, **kwargs)
        self._manifest = manifest_analyzer
        self._embed_base_url = embed_base_url.rstrip("/")
        self._default_base_domain = default_base_domain.rstrip("/")
        self._stagger = max(stagger_ms, 0) / 1000
        self._concurrency = server_concurrency

    async def _extract(
        self, url: str, pattern: re.Pattern[str], referer: str, context: str
    ) -> str | None:
        resp = await self._safe_fetch(url, referer=referer, context=context)
        if resp is None:
            return None
        m = pattern.search(resp.text)
        return m.group(1) if m and m.group(1) else None

    async def _resolve_server(self, server: ServerDescriptor, base_domain: str) -> str | None:
        """RCP -> optional PRORCP hop -> absolute stream URL."""
        rcp_url = f"{base_domain}/rcp/{server.opaque_handle}"
        src = await self._extract(rcp_url, _SRC_RE, base_domain, "rcp")
        if src is None:
            self._log.debug("vidsrc_rcp_no_source", server=server.label)
            return None

        if src.startswith(_PRORCP_PREFIX):
            prorcp_url = f"{base_domain}{src}"
            src = await self._extract(prorcp_url, _FILE_RE, base_domain, "prorcp")
            if src is None:
                self._log.debug("vidsrc_prorcp_no_file", server=server.label)
                return None
            return normalize_stream_url(src, base_domain)

        # Without a PRORCP hop only a fully-qualified link is final
        if src.startswith(("http://", "https://", "//")):
            return normalize_stream_url(src, base_domain)
        self._log.debug("vidsrc_unusable_source", server=server.label, src=src[:80])
        return None

    async def _process_server(
        self,
        index: int,
        server: ServerDescriptor,
        page: EmbedPage,
        request: ContentRequest,
        *,
        delay: float,
    ) -> ResolvedStream | None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            stream_url = await self._resolve_server(server, page.base_domain)
            if stream_url is None:
                return None
            quality = None
            if self._manifest is not None:
                quality = await self._manifest.analyze(stream_url, referer=page.base_domain)
        except Exception:  # noqa: BLE001
            self._log.warning(
                "vidsrc_server_failed",
                server=server.label,
                handle=server.opaque_handle,
                exc_info=True,
            )
            return None

        self._log.debug("vidsrc_server_resolved", index=index, server=server.label)
        return ResolvedStream(
            provider_name=self.display_name,
            display_title=f"[VidSrc] {page.title}",
            stream_url=stream_url,
            referer_url=page.base_domain,
            content_id=request.content_id,
            quality_info=quality,
        )

    async def resolve(self, request: ContentRequest) -> list[ResolvedStream]:
        url = build_embed_url(self._embed_base_url, request)
        resp = await self._safe_fetch(url, referer=self._embed_base_url, context="embed")
        if resp is None:
            return []

        page = parse_embed_page(resp.text, self._default_base_domain)
        if not page.servers:
            self._log.info("vidsrc_no_servers", content_id=request.content_id)
            return []
        self._log.info(
            "vidsrc_servers_found",
            content_id=request.content_id,
            servers=len(page.servers),
            title=page.title,
        )

        if self._concurrency == "sequential":
            results = []
            for i, server in enumerate(page.servers):
                delay = self._stagger if i else 0.0
                results.append(
                    await self._process_server(i, server, page, request, delay=delay)
                )
        else:
            results = await asyncio.gather(
                *(
                    self._process_server(i, server, page, request, delay=i * self._stagger)
                    for i, server in enumerate(page.servers)
                )
            )

        streams = [r for r in results if r is not None]
        self._log.info(
            "vidsrc_resolve_done",
            content_id=request.content_id,
            streams=len(streams),
        )
        return streams
