"""HubDrive extractor - single button, possibly chained into HubCloud."""

from __future__ import annotations

from urllib.parse import urljoin

from stremsrc.domain.entities.streams import ExtractedLink
from stremsrc.domain.ports.host_extractor import HostExtractorPort
from stremsrc.infrastructure.common.html_selectors import (
    extract_attr,
    extract_text,
    parse_html,
)
from stremsrc.infrastructure.common.http import HttpxClientBase

from ._filename import quality_from_header, resolve_filename


class HubDriveExtractor(HttpxClientBase):
    """Follows the ``.btn-success1`` button of a HubDrive file page.

    When the button targets HubCloud, extraction is delegated to
    *hubcloud*; otherwise the button target is the final link.
    """

    name = "hubdrive"
    markers: tuple[str, ...] = ("hubdrive",)

    def __init__(self, *args, hubcloud: HostExtractorPort, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._hubcloud = hubcloud

    async def extract(self, url: str, referer: str = "") -> list[ExtractedLink]:
        resp = await self._safe_fetch(url, referer=referer, context="file_page")
        if resp is None:
            return []
        doc = parse_html(resp.text)
        href = extract_attr(doc, ".btn-success1", "href")
        if not href:
            self._log.debug("hubdrive_no_button", url=url)
            return []
        target = urljoin(str(resp.url), href)

        if any(marker in target.lower() for marker in self._hubcloud.markers):
            self._log.debug("hubdrive_chained_hubcloud", url=url, target=target)
            return await self._hubcloud.extract(target, referer=url)

        header = extract_text(doc, ".card-header", "h1", "title")
        filename = await resolve_filename(self._http, target, header)
        return [
            ExtractedLink(
                url=target,
                label="HubDrive",
                quality=quality_from_header(header),
                filename=filename,
            )
        ]
