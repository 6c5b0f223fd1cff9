"""Port for HLS manifest analysis."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stremsrc.domain.entities.streams import ManifestInfo


@runtime_checkable
class ManifestAnalyzerPort(Protocol):
    """Fetches a playlist and reports its quality variants."""

    async def analyze(
        self, url: str, referer: str | None = None
    ) -> ManifestInfo | None:
        """Return ManifestInfo, or None when *url* is not a readable playlist."""
        ...
