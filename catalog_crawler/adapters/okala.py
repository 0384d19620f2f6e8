from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin

from aiohttp import ClientSession
from bs4 import BeautifulSoup

from ..models import CrawlState, ImageRef, ProductRecord, SiteMapSection
from ..utils.http import fetch_text
from ..utils.parsing import inner_html, is_number, path_of, text_of


BRAND_LABEL = "برند"

_TITLE = ".h4.line-height-sm.font-weight-bold"
_SUBTITLE = ".subtitle2.text-muted"
_PRICE_BOX = ".description-list.description-list-horizontal.description-list-horizontal-sm.mb-0"
_ATTRIBUTES = ".description-list.description-list-horizontal:not(.description-list-horizontal-sm)"


class OkalaParser:
    """okala.com: one static sitemap, server-rendered product pages."""

    name = "okala.com"
    sitemap_url = "https://okala.com/sitemap.xml"

    def describe(self) -> CrawlState:
        return CrawlState(website=self.name, sections=[SiteMapSection(url=self.sitemap_url)])

    def is_candidate_url(self, url: str) -> bool:
        # Product pages live at https://okala.com/<numeric id>
        return is_number(path_of(url).replace("/", ""))

    async def fetch_product(self, session: ClientSession, url: str) -> ProductRecord:
        html = await fetch_text(session, url)
        if not html:
            return ProductRecord.placeholder(url)
        return self.parse(url, html)

    # ---- Extraction -------------------------------------------------------

    def parse(self, url: str, html: str) -> ProductRecord:
        soup = BeautifulSoup(html, "html.parser")
        attributes = self._attributes(soup)
        return ProductRecord(
            url=url,
            pid=path_of(url).replace("/", ""),
            title=text_of(soup.select_one(_TITLE)),
            description=text_of(soup.select_one(_SUBTITLE)),
            price=text_of(soup.select_one(f"{_PRICE_BOX} .text-primary span")),
            old_price=text_of(soup.select_one(f"{_PRICE_BOX} .text-muted del")),
            brand=self._brand(attributes) or "",
            category=self._categories(soup),
            meta={"attributes": attributes},
            content=inner_html(soup.select_one("#description")),
            images=self._images(url, soup),
            parsed_at=datetime.now(timezone.utc),
        )

    def _attributes(self, soup: BeautifulSoup) -> List[List[str]]:
        """Label/value pairs from the first attribute list (children alternate label, value)."""
        box = soup.select_one(_ATTRIBUTES)
        if box is None:
            return []
        cells = [inner_html(child).strip() for child in box.find_all(recursive=False)]
        return [[cells[i], cells[i + 1]] for i in range(0, len(cells) - 1, 2)]

    def _brand(self, attributes: List[List[str]]) -> Optional[str]:
        for label, value in attributes:
            if BRAND_LABEL in label:
                return BeautifulSoup(value, "html.parser").get_text(strip=True)
        return None

    def _images(self, url: str, soup: BeautifulSoup) -> List[ImageRef]:
        images: List[ImageRef] = []
        for img in soup.select(".gallery-top img"):
            src = img.get("data-zoom-image") or ""
            if src.startswith("/"):
                src = urljoin(url, src)
            images.append(ImageRef(url=src))
        return images

    def _categories(self, soup: BeautifulSoup) -> List[str]:
        breadcrumb = soup.select_one(".breadcrumb")
        if breadcrumb is None:
            return []
        crumbs = [text_of(item.find("a")) for item in breadcrumb.find_all(recursive=False)]
        # The last crumb is the product itself.
        return crumbs[:-1]
