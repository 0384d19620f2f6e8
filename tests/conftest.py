from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Optional, Set, Union

import aiohttp
import pytest

from catalog_crawler.config import CrawlConfig
from catalog_crawler.models import CrawlState, ImageRef, ProductRecord, SiteMapSection


class FakeResponse:
    def __init__(self, body: Union[str, bytes] = b"", status: int = 200, content_type: str = "text/html") -> None:
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.status = status
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientConnectionError(f"HTTP {self.status}")

    async def text(self) -> str:
        return self.body.decode("utf-8")

    async def json(self, content_type: Optional[str] = None):
        return json.loads(self.body.decode("utf-8"))

    async def read(self) -> bytes:
        return self.body


class _RequestContext:
    def __init__(self, outcome) -> None:
        self.outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        await asyncio.sleep(0)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeSession:
    """In-memory stand-in for aiohttp.ClientSession; unknown URLs fail to connect."""

    def __init__(self, routes: Optional[Dict[str, object]] = None) -> None:
        self.routes = dict(routes or {})
        self.requests: List[str] = []
        self.closed = False

    def get(self, url: str, **kwargs) -> _RequestContext:
        self.requests.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            outcome = aiohttp.ClientConnectionError(f"cannot connect to {url}")
        return _RequestContext(outcome)

    async def close(self) -> None:
        self.closed = True

    def factory(self, **kwargs) -> "FakeSession":
        return self


class FakeParser:
    """
    Site parser for the imaginary shop.test.
    Product pages contain "/p/"; URLs listed in `invalid` come back without a title.
    """

    name = "shop.test"

    def __init__(
        self,
        sections: Optional[List[str]] = None,
        index_url: str = "",
        invalid: Optional[Set[str]] = None,
        images: Optional[Dict[str, List[str]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.sections = sections or []
        self.index_url = index_url
        self.invalid = invalid or set()
        self.images = images or {}
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.peak = 0

    def describe(self) -> CrawlState:
        return CrawlState(
            website=self.name,
            sections=[SiteMapSection(url=u) for u in self.sections],
            sitemap_index_url=self.index_url,
        )

    def is_candidate_url(self, url: str) -> bool:
        return "/p/" in url

    async def fetch_product(self, session, url: str) -> ProductRecord:
        self.calls.append(url)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if url in self.invalid:
            return ProductRecord.placeholder(url)
        pid = url.rstrip("/").rsplit("/", 1)[-1]
        return ProductRecord(
            url=url,
            pid=pid,
            title=f"Product {pid}",
            price="1000",
            category=["Shop", "Things"],
            images=[ImageRef(url=i) for i in self.images.get(url, [])],
        )


def urlset(urls: List[str]) -> str:
    locs = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{locs}</urlset>'
    )


def sitemapindex(urls: List[str]) -> str:
    locs = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{locs}</sitemapindex>'
    )


def product_urls(count: int, section: str = "a") -> List[str]:
    return [f"https://shop.test/{section}/p/{i}" for i in range(1, count + 1)]


@pytest.fixture
def config(tmp_path) -> CrawlConfig:
    return CrawlConfig(run_id=1, website="shop.test", workers=3, output_root=str(tmp_path))
