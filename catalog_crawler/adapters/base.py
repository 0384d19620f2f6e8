from __future__ import annotations

from typing import Protocol

from aiohttp import ClientSession

from ..models import CrawlState, ProductRecord


class SiteParser(Protocol):
    """
    Interface for site-specific logic.
    The engine owns sitemaps, concurrency and persistence; a parser only knows
    where a site's sitemaps live and how to turn one product URL into a record.
    """

    name: str  # target identity, e.g. "okala.com"

    def describe(self) -> CrawlState:
        """Fresh state skeleton: either static sections or a sitemap index URL."""
        ...

    async def fetch_product(self, session: ClientSession, url: str) -> ProductRecord:
        """
        Fetch and extract one product.
        Must not raise for network or parse failures; return ProductRecord.placeholder(url).
        """
        ...

    def is_candidate_url(self, url: str) -> bool:
        """Return True if a sitemap entry is a product page worth fetching."""
        ...
