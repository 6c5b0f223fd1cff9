"""CSS-selector-based HTML querying for provider pages.

Thin helpers over BeautifulSoup used by the providers and host
extractors.  Every selector helper accepts optional *fallback_selectors*:
the first selector yielding at least one match wins, so a renamed class
on the upstream site only needs a new fallback, not new parsing code.
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from stremsrc.domain.entities.streams import DownloadLink


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the ``lxml`` parser."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Select elements via CSS with a fallback chain."""
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_text(
    element: BeautifulSoup | Tag,
    selector: str = "",
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Stripped text of the first matching child (``""`` = element itself)."""
    if selector == "":
        return element.get_text(" ", strip=True) or default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(" ", strip=True)
            if text:
                return text
    return default


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Attribute of the first matching child (``""`` = element itself)."""
    if selector == "":
        val = element.get(attr)
        return str(val) if val else default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            val = match.get(attr)
            if val:
                return str(val)
    return default


def extract_links(
    element: BeautifulSoup | Tag,
    selector: str = "a[href]",
    *fallback_selectors: str,
    base_url: str = "",
) -> list[DownloadLink]:
    """Collect ``DownloadLink`` records for every matching anchor.

    Anchors without ``href`` are skipped; relative hrefs are joined with
    *base_url* when one is given.
    """
    links: list[DownloadLink] = []
    for tag in select_items(element, selector, *fallback_selectors):
        href = tag.get("href")
        if not href:
            continue
        url = urljoin(base_url, str(href)) if base_url else str(href)
        links.append(DownloadLink(url=url, label=tag.get_text(" ", strip=True)))
    return links


def inline_scripts(root: BeautifulSoup | Tag) -> str:
    """Concatenated text of all inline ``<script>`` blocks, in document order."""
    return "\n".join(
        script.get_text() for script in root.find_all("script") if not script.get("src")
    )
