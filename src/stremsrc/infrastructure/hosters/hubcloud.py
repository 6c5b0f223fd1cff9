"""HubCloud extractor.

A HubCloud drive link leads (via a ``#download`` button) to a
``hubcloud.php`` page that lists several named download servers.  Most
buttons are direct links; BuzzServer needs one extra same-origin hop
whose destination is returned in the ``hx-redirect`` response header,
and pixeldrain viewer links are rewritten to the file API.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

import httpx

from stremsrc.domain.entities.streams import ExtractedLink
from stremsrc.infrastructure.common.html_selectors import (
    extract_attr,
    extract_text,
    parse_html,
    select_items,
)
from stremsrc.infrastructure.common.http import HttpxClientBase

from ._filename import quality_from_header, resolve_filename

_DIRECT_BUTTONS = ("FSL Server", "S3 Server", "10Gbps", "Download File")
_PIXELDRAIN_API = "https://pixeldrain.com/api/file/{file_id}"


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def pixeldrain_api_url(href: str) -> str | None:
    """``https://pixeldrain.com/u/abc`` -> ``https://pixeldrain.com/api/file/abc``."""
    file_id = urlsplit(href).path.rstrip("/").rsplit("/", 1)[-1]
    if not file_id:
        return None
    return _PIXELDRAIN_API.format(file_id=file_id)


class HubCloudExtractor(HttpxClientBase):
    """Extracts download-server links from HubCloud pages."""

    name = "hubcloud"
    markers: tuple[str, ...] = ("hubcloud",)

    async def _buzz_redirect(self, href: str) -> str | None:
        """Read the ``hx-redirect`` header of ``{href}/download``."""
        try:
            resp = await self._http.get(
                f"{href.rstrip('/')}/download",
                headers={**self._browser_headers(), "Referer": href},
                follow_redirects=False,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            self._log.warning("hubcloud_buzz_failed", url=href, error=str(exc))
            return None
        target = resp.headers.get("hx-redirect", "")
        if not target:
            self._log.debug("hubcloud_buzz_no_redirect", url=href, status=resp.status_code)
            return None
        return urljoin(_origin(href) + "/", target)

    async def _button_target(self, label: str, href: str) -> str | None:
        lowered = label.lower()
        if "buzzserver" in lowered.replace(" ", ""):
            return await self._buzz_redirect(href)
        if "pixeldra" in lowered or "pixeldra" in href.lower():
            return pixeldrain_api_url(href)
        if any(button.lower() in lowered for button in _DIRECT_BUTTONS):
            return href
        return None

    async def extract(self, url: str, referer: str = "") -> list[ExtractedLink]:
        page_url = url
        if "hubcloud.php" not in url:
            resp = await self._safe_fetch(url, referer=referer, context="drive_page")
            if resp is None:
                return []
            download = extract_attr(parse_html(resp.text), "#download", "href")
            if not download:
                self._log.debug("hubcloud_no_download_button", url=url)
                return []
            page_url = urljoin(str(resp.url), download)

        resp = await self._safe_fetch(page_url, referer=url, context="server_page")
        if resp is None:
            return []
        doc = parse_html(resp.text)
        header = extract_text(doc, ".card-header")
        quality = quality_from_header(header)

        links: list[ExtractedLink] = []
        for button in select_items(doc, "a.btn"):
            href = extract_attr(button, "", "href")
            label = extract_text(button)
            if not href or not label:
                continue
            target = await self._button_target(label, urljoin(page_url, href))
            if not target:
                continue
            filename = await resolve_filename(self._http, target, header)
            links.append(
                ExtractedLink(url=target, label=label, quality=quality, filename=filename)
            )

        self._log.debug("hubcloud_extracted", url=url, links=len(links))
        return links
