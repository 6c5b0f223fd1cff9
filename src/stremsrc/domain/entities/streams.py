"""Domain entities for stream resolution.

Frozen value objects passed between the pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ContentKind = Literal["movie", "series"]

CONTENT_KINDS: tuple[ContentKind, ...] = ("movie", "series")


class InvalidContentId(ValueError):
    """Raised when a content id cannot be parsed for the given kind."""


@dataclass(frozen=True)
class ContentRequest:
    """Parsed content request.

    Created from ``tt1234567`` (movie) or ``tt1234567:1:5``
    (series, season 1, episode 5).  ``canonical_id`` is opaque: it may be
    an external catalog id or a raw title, depending on the provider.
    """

    canonical_id: str
    kind: ContentKind
    season: int | None = None
    episode: int | None = None

    def __post_init__(self) -> None:
        if not self.canonical_id:
            raise InvalidContentId("canonical_id must not be empty")
        if self.kind == "series":
            if self.season is None or self.episode is None:
                raise InvalidContentId("series requests need season and episode")
            if self.season < 1 or self.episode < 1:
                raise InvalidContentId("season and episode must be positive")
        elif self.season is not None or self.episode is not None:
            raise InvalidContentId("movie requests carry no season/episode")

    @classmethod
    def parse(cls, content_id: str, kind: str) -> ContentRequest:
        """Parse ``"<id>"`` or ``"<id>:<season>:<episode>"``."""
        if kind not in CONTENT_KINDS:
            raise InvalidContentId(f"unknown content kind: {kind!r}")

        parts = content_id.split(":")
        if kind == "movie":
            if len(parts) != 1:
                raise InvalidContentId(f"movie id has extra parts: {content_id!r}")
            return cls(canonical_id=parts[0], kind="movie")

        if len(parts) != 3:
            raise InvalidContentId(f"series id needs id:season:episode: {content_id!r}")
        raw_id, raw_season, raw_episode = parts
        if not (raw_season.isdigit() and raw_episode.isdigit()):
            raise InvalidContentId(f"non-numeric season/episode: {content_id!r}")
        return cls(
            canonical_id=raw_id,
            kind="series",
            season=int(raw_season),
            episode=int(raw_episode),
        )

    @property
    def content_id(self) -> str:
        """External id form (inverse of :meth:`parse`)."""
        if self.kind == "series":
            return f"{self.canonical_id}:{self.season}:{self.episode}"
        return self.canonical_id


@dataclass(frozen=True)
class ServerDescriptor:
    """One upstream streaming backend listed on a provider's embed page."""

    label: str
    opaque_handle: str


@dataclass(frozen=True)
class QualityVariant:
    """One rendition listed in an HLS master playlist."""

    url: str
    label: str
    height: int | None = None
    bandwidth: int | None = None


@dataclass(frozen=True)
class ManifestInfo:
    """Quality variants of an HLS stream."""

    variants: tuple[QualityVariant, ...] = ()

    @property
    def highest(self) -> QualityVariant | None:
        """Best variant by height, then bandwidth. None when empty."""
        if not self.variants:
            return None
        return max(self.variants, key=lambda v: (v.height or 0, v.bandwidth or 0))


@dataclass(frozen=True)
class ResolvedStream:
    """A playable stream produced by a provider.

    The pipeline's output unit.  ``to_dict``/``from_dict`` round-trip every
    field so entries survive the persistent cache.
    """

    provider_name: str
    display_title: str
    stream_url: str
    referer_url: str
    content_id: str
    quality_info: ManifestInfo | None = None
    filename: str | None = None

    def to_dict(self) -> dict[str, Any]:
        quality: dict[str, Any] | None = None
        if self.quality_info is not None:
            quality = {
                "variants": [
                    {
                        "url": v.url,
                        "label": v.label,
                        "height": v.height,
                        "bandwidth": v.bandwidth,
                    }
                    for v in self.quality_info.variants
                ]
            }
        return {
            "providerName": self.provider_name,
            "displayTitle": self.display_title,
            "streamUrl": self.stream_url,
            "refererUrl": self.referer_url,
            "contentId": self.content_id,
            "qualityInfo": quality,
            "filename": self.filename,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolvedStream:
        quality = data.get("qualityInfo")
        quality_info = None
        if quality is not None:
            quality_info = ManifestInfo(
                variants=tuple(
                    QualityVariant(
                        url=v["url"],
                        label=v["label"],
                        height=v.get("height"),
                        bandwidth=v.get("bandwidth"),
                    )
                    for v in quality.get("variants", [])
                )
            )
        return cls(
            provider_name=data["providerName"],
            display_title=data["displayTitle"],
            stream_url=data["streamUrl"],
            referer_url=data["refererUrl"],
            content_id=data["contentId"],
            quality_info=quality_info,
            filename=data.get("filename"),
        )


@dataclass(frozen=True)
class TitleInfo:
    """Canonical title metadata for a content id."""

    title: str
    original_title: str | None = None
    year: int | None = None


@dataclass(frozen=True)
class SearchEntry:
    """One row of a provider's free-text search results page."""

    title: str
    url: str
    year: int | None = None


@dataclass(frozen=True)
class MatchCandidate:
    """A search entry with its fuzzy-match score (comparable within one run)."""

    title: str
    url: str
    score: float
    year: int | None = None


@dataclass(frozen=True)
class DownloadLink:
    """A download link collected from a provider content page."""

    url: str
    label: str = ""


@dataclass(frozen=True)
class ExtractedLink:
    """Final link produced by a host extractor."""

    url: str
    label: str
    quality: str = "1080"
    filename: str = ""


@dataclass(frozen=True)
class CacheEntry:
    """A cached resolution result with its absolute expiry (epoch ms)."""

    key: str
    payload: tuple[ResolvedStream, ...] = field(default_factory=tuple)
    expires_at: int = 0

    def is_fresh(self, now_ms: int) -> bool:
        return now_ms < self.expires_at
