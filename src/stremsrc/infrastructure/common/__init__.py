"""Common infrastructure utilities."""

from __future__ import annotations

from .constants import DEFAULT_FETCH_TIMEOUT, DEFAULT_PROBE_TIMEOUT, DEFAULT_USER_AGENTS
from .http import HttpxClientBase

__all__ = [
    "DEFAULT_FETCH_TIMEOUT",
    "DEFAULT_PROBE_TIMEOUT",
    "DEFAULT_USER_AGENTS",
    "HttpxClientBase",
]
