"""HDHub provider - metadata lookup, site search, fuzzy match, host extraction.

Flow per request:

1. Resolve the content id to a title via ``MetadataLookupPort``.
2. Search the site with a few query variants and pick the best
   result with the fuzzy title matcher.
3. Load the matched page; collect the movie's download links or the
   requested episode's links.
4. Run each link through the redirect decoder (when marked) and the
   host extractor registry, then validate the final links.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from stremsrc.domain.entities.streams import (
    ContentRequest,
    DownloadLink,
    ExtractedLink,
    ResolvedStream,
    SearchEntry,
    TitleInfo,
)
from stremsrc.domain.ports.link_validator import LinkValidatorPort
from stremsrc.domain.ports.manifest import ManifestAnalyzerPort
from stremsrc.domain.ports.metadata import MetadataLookupPort
from stremsrc.infrastructure.common.html_selectors import (
    extract_attr,
    extract_links,
    extract_text,
    inline_scripts,
    parse_html,
    select_items,
)
from stremsrc.infrastructure.common.http import HttpxClientBase
from stremsrc.infrastructure.decoding.redirect_chain import decode, has_redirect_marker
from stremsrc.infrastructure.hosters.registry import ExtractorRegistry
from stremsrc.infrastructure.matching.title_matcher import DEFAULT_THRESHOLD, find_best_match

DEFAULT_BASE_URL = "https://new1.hdhub4u.fo"

_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
_PAREN_YEAR_RE = re.compile(r"\s*\(\s*(?:19|20)\d{2}\s*\)\s*")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SERIES_BADGE_RE = re.compile(r"\b(series|season|tv)\b", re.IGNORECASE)
_SEASON_RE = re.compile(r"\bS(?:eason)?[\s\-_]*0*(\d+)", re.IGNORECASE)
_EPISODE_RE = re.compile(r"(?:\bEpisode[\s\-_]*|\bE)0*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class ContentPage:
    """Download links found on a matched content page."""

    is_series: bool
    movie_links: tuple[DownloadLink, ...] = ()
    # (season, episode) -> links
    episodes: tuple[tuple[tuple[int, int], tuple[DownloadLink, ...]], ...] = ()

    def episode_links(self, season: int, episode: int) -> tuple[DownloadLink, ...]:
        """Links of every row listing the episode, in page order."""
        return tuple(
            link
            for key, links in self.episodes
            if key == (season, episode)
            for link in links
        )


def build_search_queries(info: TitleInfo) -> list[str]:
    """Query variants for *info*: as-is, punctuation stripped, year removed.

    Built for the title and then the original title; blanks and
    duplicates are dropped, first occurrence wins.
    """
    queries: list[str] = []
    for title in (info.title, info.original_title):
        if not title:
            continue
        for variant in (
            title,
            _PUNCT_RE.sub(" ", title),
            _PAREN_YEAR_RE.sub(" ", title),
        ):
            query = " ".join(variant.split())
            if query and query not in queries:
                queries.append(query)
    return queries


def parse_search_results(html: str, base_url: str = "") -> list[SearchEntry]:
    """``.card-grid a`` entries: title from ``h3``, year from the meta text."""
    entries: list[SearchEntry] = []
    for card in select_items(parse_html(html), ".card-grid a"):
        title = extract_text(card, "h3")
        href = extract_attr(card, "", "href")
        if not title or not href:
            continue
        meta = extract_text(card, ".movie-card-meta")
        year_match = _YEAR_RE.search(meta)
        entries.append(
            SearchEntry(
                title=title,
                url=urljoin(base_url, href) if base_url else href,
                year=int(year_match.group(1)) if year_match else None,
            )
        )
    return entries


def _is_series_page(doc: BeautifulSoup) -> bool:
    badges = select_items(doc, ".movie-card-format", ".badge")
    return any(_SERIES_BADGE_RE.search(extract_text(badge)) for badge in badges)


def parse_content_page(html: str, page_url: str) -> ContentPage:
    """Movie download list or the season/episode hierarchy of a series."""
    doc = parse_html(html)
    if not _is_series_page(doc):
        return ContentPage(
            is_series=False,
            movie_links=tuple(extract_links(doc, ".download-item a[href]", base_url=page_url)),
        )

    episodes: list[tuple[tuple[int, int], tuple[DownloadLink, ...]]] = []
    for group in select_items(doc, ".episode-item"):
        heading = extract_text(
            group, ".episode-header", ".season-title", "h2", "h3", "h4", default=""
        ) or extract_text(group)
        season_match = _SEASON_RE.search(heading)
        if season_match is None:
            continue
        season = int(season_match.group(1))
        for row in select_items(group, ".episode-download-item"):
            episode_match = _EPISODE_RE.search(extract_text(row))
            if episode_match is None:
                continue
            links = tuple(extract_links(row, "a[href]", base_url=page_url))
            if links:
                episodes.append(((season, int(episode_match.group(1))), links))
    return ContentPage(is_series=True, episodes=tuple(episodes))


class HDHubProvider(HttpxClientBase):
    """Search-shape provider for HDHub.

    Args:
        http_client: Shared async client.
        metadata: Title lookup for content ids.
        extractors: Host extractor registry for download links.
        validator: Liveness check for extracted links.
        manifest_analyzer: Optional HLS analyzer for ``.m3u8`` links.
        base_url: Site root.
        match_threshold: Minimum fuzzy score (exclusive).
    """

    name = "hdhub"
    display_name = "HDHub"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        metadata: MetadataLookupPort,
        extractors: ExtractorRegistry,
        validator: LinkValidatorPort,
        manifest_analyzer: ManifestAnalyzerPort | None = None,
        base_url: str = DEFAULT_BASE_URL,
        match_threshold: float = DEFAULT_THRESHOLD,
        **kwargs,
    ) -> None:
        super().__init__(http_client, **kwargs)
        self._metadata = metadata
        self._extractors = extractors
        self._validator = validator
        self._manifest = manifest_analyzer
        self.base_url = base_url.rstrip("/")
        self._threshold = match_threshold

    # ------------------------------------------------------------------
    # Search + match
    # ------------------------------------------------------------------

    async def _search(self, query: str) -> list[SearchEntry]:
        resp = await self._safe_fetch(
            f"{self.base_url}/",
            params={"s": query},
            referer=self.base_url,
            context="search",
        )
        if resp is None:
            return []
        entries = parse_search_results(resp.text, self.base_url)
        self._log.debug("hdhub_search_results", query=query, results=len(entries))
        return entries

    # ------------------------------------------------------------------
    # Link extraction
    # ------------------------------------------------------------------

    async def _unwrap(self, url: str, referer: str) -> str | None:
        """Follow a marked redirect link through the decoder.

        Links a host extractor handles are passed through even with an
        ``id`` parameter (``hubcloud.php?id=...``).
        """
        if not has_redirect_marker(url) or self._extractors.find(url) is not None:
            return url
        resp = await self._safe_fetch(url, referer=referer, context="redirect")
        if resp is None:
            return None
        decoded = decode(inline_scripts(parse_html(resp.text)))
        if decoded is None:
            self._log.debug("hdhub_redirect_undecodable", url=url[:120])
        return decoded

    async def _links_for(self, link: DownloadLink, page_url: str) -> list[ExtractedLink]:
        try:
            url = await self._unwrap(link.url, page_url)
            if url is None:
                return []
            extracted = await self._extractors.extract(url, referer=page_url)
            checks = await asyncio.gather(*(self._validator.validate(e.url) for e in extracted))
        except Exception:  # noqa: BLE001
            self._log.warning("hdhub_link_failed", url=link.url[:120], exc_info=True)
            return []
        return [e for e, ok in zip(extracted, checks) if ok]

    async def _to_stream(
        self, link: ExtractedLink, page_url: str, request: ContentRequest
    ) -> ResolvedStream:
        quality = None
        if self._manifest is not None and ".m3u8" in link.url.lower():
            quality = await self._manifest.analyze(link.url, referer=page_url)
        return ResolvedStream(
            provider_name=self.display_name,
            display_title=f"HDHub - {link.label} - {link.quality}p",
            stream_url=link.url,
            referer_url=page_url,
            content_id=request.content_id,
            quality_info=quality,
            filename=link.filename or None,
        )

    def _select_links(
        self, page: ContentPage, request: ContentRequest
    ) -> Iterable[DownloadLink]:
        # Page type decides, not the requested kind
        if not page.is_series:
            return page.movie_links
        if request.season is None or request.episode is None:
            return ()
        return page.episode_links(request.season, request.episode)

    # ------------------------------------------------------------------
    # StreamProviderPort
    # ------------------------------------------------------------------

    async def resolve(self, request: ContentRequest) -> list[ResolvedStream]:
        info = await self._metadata.lookup(request.canonical_id, request.kind)
        if info is None:
            self._log.info("hdhub_no_metadata", content_id=request.content_id)
            return []

        queries = build_search_queries(info)
        results = await asyncio.gather(*(self._search(q) for q in queries))
        match = find_best_match(results, info.title, info.year, threshold=self._threshold)
        if match is None:
            self._log.info("hdhub_no_match", title=info.title, queries=len(queries))
            return []
        self._log.info("hdhub_matched", title=match.title, score=round(match.score, 1))

        resp = await self._safe_fetch(match.url, referer=self.base_url, context="content")
        if resp is None:
            return []
        page_url = str(resp.url)
        page = parse_content_page(resp.text, page_url)
        links = list(self._select_links(page, request))
        if not links:
            self._log.info(
                "hdhub_no_download_links",
                content_id=request.content_id,
                is_series=page.is_series,
            )
            return []

        per_link = await asyncio.gather(*(self._links_for(link, page_url) for link in links))
        streams = list(
            await asyncio.gather(
                *(
                    self._to_stream(extracted, page_url, request)
                    for group in per_link
                    for extracted in group
                )
            )
        )
        self._log.info(
            "hdhub_resolve_done",
            content_id=request.content_id,
            streams=len(streams),
        )
        return streams
