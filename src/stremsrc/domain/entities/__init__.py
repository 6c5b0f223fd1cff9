from .streams import (
    CONTENT_KINDS,
    CacheEntry,
    ContentKind,
    ContentRequest,
    DownloadLink,
    ExtractedLink,
    InvalidContentId,
    ManifestInfo,
    MatchCandidate,
    QualityVariant,
    ResolvedStream,
    SearchEntry,
    ServerDescriptor,
    TitleInfo,
)

__all__ = [
    "CONTENT_KINDS",
    "CacheEntry",
    "ContentKind",
    "ContentRequest",
    "DownloadLink",
    "ExtractedLink",
    "InvalidContentId",
    "ManifestInfo",
    "MatchCandidate",
    "QualityVariant",
    "ResolvedStream",
    "SearchEntry",
    "ServerDescriptor",
    "TitleInfo",
]
