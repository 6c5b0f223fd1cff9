"""Decoder for obfuscated redirect pages.

Redirect pages hide the destination in inline script calls such as
``s('o','<b64>')`` or ``ck('_wp_http_1','<b64>')``.  The fragments are
concatenated in document order and peeled through a fixed chain of
layers::

    base64 -> rot13 -> base64 -> JSON -> field "o" -> base64

Every layer is a total function returning ``None`` on malformed input,
so a corrupt payload at any depth simply yields no URL.
"""

from __future__ import annotations

import base64
import binascii
import codecs
import json
import re
from collections.abc import Callable
from urllib.parse import parse_qs, urlsplit

import structlog

log = structlog.get_logger(__name__)

_FRAGMENT_RE = re.compile(
    r"""\b(?:s\(\s*['"]o['"]|ck\(\s*['"]_wp_http_\d+['"])\s*,\s*['"]([^'"]*)['"]\s*\)"""
)

REDIRECT_PARAM = "id"
PAYLOAD_FIELD = "o"

Layer = Callable[[str], "str | None"]


def extract_fragments(text: str) -> list[str]:
    """Return encoded fragments in document order."""
    return [m.group(1) for m in _FRAGMENT_RE.finditer(text)]


def b64_layer(value: str) -> str | None:
    """Strict base64 -> UTF-8 text. Missing padding is tolerated."""
    cleaned = value.strip()
    if not cleaned:
        return None
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def rot13_layer(value: str) -> str | None:
    return codecs.encode(value, "rot13") if value else None


def field_layer(value: str) -> str | None:
    """Parse *value* as a JSON object and return its payload field."""
    try:
        record = json.loads(value)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(record, dict):
        return None
    field = record.get(PAYLOAD_FIELD)
    if not isinstance(field, str) or not field:
        return None
    return field


DECODE_CHAIN: tuple[Layer, ...] = (
    b64_layer,
    rot13_layer,
    b64_layer,
    field_layer,
    b64_layer,
)


def decode_payload(payload: str, chain: tuple[Layer, ...] = DECODE_CHAIN) -> str | None:
    """Run *payload* through *chain*; ``None`` as soon as a layer fails."""
    value: str | None = payload
    for depth, layer in enumerate(chain):
        if value is None:
            break
        value = layer(value)
        if value is None:
            log.debug("redirect_decode_failed", layer=layer.__name__, depth=depth)
    return value


def decode(raw_html_or_payload: str) -> str | None:
    """Decode a redirect page (or a bare payload) into its destination URL.

    Input without script fragments is decoded as one payload.  Returns
    ``None`` when any layer fails or the result is not an absolute
    http(s) URL.
    """
    fragments = extract_fragments(raw_html_or_payload)
    payload = "".join(fragments) if fragments else raw_html_or_payload.strip()
    if not payload:
        return None

    url = decode_payload(payload)
    if url is None:
        return None
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        log.debug("redirect_decode_not_http", value=url[:80])
        return None
    return url


def has_redirect_marker(url: str) -> bool:
    """True when *url* has an ``id`` query parameter (``?id=...``)."""
    try:
        query = urlsplit(url).query
    except ValueError:
        return False
    return REDIRECT_PARAM in parse_qs(query, keep_blank_values=True)
