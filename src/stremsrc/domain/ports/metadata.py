"""Port for content metadata lookups (TMDB, IMDb Suggest)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stremsrc.domain.entities.streams import ContentKind, TitleInfo


@runtime_checkable
class MetadataLookupPort(Protocol):
    """Resolves a catalog id to its canonical title and release year."""

    async def lookup(self, content_id: str, kind: ContentKind) -> TitleInfo | None:
        """Return title metadata or None if unknown / lookup failed."""
        ...
