"""Port for host-specific download link extractors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stremsrc.domain.entities.streams import ExtractedLink


@runtime_checkable
class HostExtractorPort(Protocol):
    """Turns a file-host landing page URL into final download links.

    Implementations handle site-specific extraction logic (button
    scraping, header-based redirects, nested hosts).
    """

    @property
    def name(self) -> str:
        """Host name this extractor handles (e.g. 'hubcloud')."""
        ...

    @property
    def markers(self) -> tuple[str, ...]:
        """Substrings of a URL's domain/path that select this extractor."""
        ...

    async def extract(self, url: str, referer: str = "") -> list[ExtractedLink]:
        """Return final links, or an empty list when extraction fails."""
        ...
