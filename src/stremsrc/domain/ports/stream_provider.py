"""Port for stream providers (one per upstream source)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stremsrc.domain.entities.streams import ContentRequest, ResolvedStream


@runtime_checkable
class StreamProviderPort(Protocol):
    """Resolves a content request into zero or more playable streams.

    Implementations absorb their own network and parse failures and
    return an empty list instead of raising.
    """

    @property
    def name(self) -> str:
        """Provider name (e.g. 'VidSrc')."""
        ...

    async def resolve(self, request: ContentRequest) -> list[ResolvedStream]: ...
