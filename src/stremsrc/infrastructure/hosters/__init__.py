"""Host extractors for file-host landing pages."""

from .hubcloud import HubCloudExtractor
from .hubdrive import HubDriveExtractor
from .registry import ExtractorRegistry

__all__ = ["ExtractorRegistry", "HubCloudExtractor", "HubDriveExtractor"]
