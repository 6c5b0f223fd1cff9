"""Port for validating extracted stream links."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LinkValidatorPort(Protocol):
    """Checks that a link is alive before it is returned to the caller."""

    async def validate(self, url: str) -> bool:
        """True if *url* is trusted or answers HEAD with 200/206."""
        ...
