"""Registry that dispatches download links to host extractors."""

from __future__ import annotations

from urllib.parse import urlsplit

import structlog

from stremsrc.domain.entities.streams import ExtractedLink
from stremsrc.domain.ports.host_extractor import HostExtractorPort

log = structlog.get_logger(__name__)


def _dispatch_key(url: str) -> str:
    """Lower-cased ``host + path`` used for marker matching."""
    parts = urlsplit(url)
    return f"{parts.netloc}{parts.path}".lower()


class ExtractorRegistry:
    """Selects an extractor by substring match on a link's domain/path.

    Extractors are tried in registration order; the first one with a
    matching marker wins.
    """

    def __init__(self, extractors: list[HostExtractorPort] | None = None) -> None:
        self._extractors: list[HostExtractorPort] = []
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: HostExtractorPort) -> None:
        self._extractors.append(extractor)
        log.debug("host_extractor_registered", host=extractor.name)

    @property
    def supported_hosts(self) -> list[str]:
        return [e.name for e in self._extractors]

    def find(self, url: str) -> HostExtractorPort | None:
        key = _dispatch_key(url)
        for extractor in self._extractors:
            if any(marker in key for marker in extractor.markers):
                return extractor
        return None

    async def extract(self, url: str, referer: str = "") -> list[ExtractedLink]:
        """Run the matching extractor; no extractor -> empty list."""
        extractor = self.find(url)
        if extractor is None:
            log.debug("host_extractor_not_found", url=url[:120])
            return []
        links = await extractor.extract(url, referer=referer)
        log.debug("host_extract_done", host=extractor.name, links=len(links))
        return links
