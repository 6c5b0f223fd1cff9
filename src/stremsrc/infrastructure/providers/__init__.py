"""Stream providers."""

from .hdhub import HDHubProvider
from .vidsrc import VidSrcProvider

__all__ = ["HDHubProvider", "VidSrcProvider"]
