from .cache import CachePort
from .host_extractor import HostExtractorPort
from .link_validator import LinkValidatorPort
from .manifest import ManifestAnalyzerPort
from .metadata import MetadataLookupPort
from .stream_cache import StreamCachePort
from .stream_provider import StreamProviderPort

__all__ = [
    "CachePort",
    "HostExtractorPort",
    "LinkValidatorPort",
    "ManifestAnalyzerPort",
    "MetadataLookupPort",
    "StreamCachePort",
    "StreamProviderPort",
]
