from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aiohttp import ClientSession

from ..models import CrawlState, ImageRef, ProductRecord
from ..utils.http import fetch_json
from ..utils.parsing import is_number, path_of


API_URL = "https://core.snapp.market/api/v1/vendors/0r5ryz/products/{pid}"


def product_id(url: str) -> Optional[str]:
    """Numeric id following the `products` segment of a product URL."""
    parts = [p for p in path_of(url).split("/") if p]
    for i, part in enumerate(parts[:-1]):
        if part == "products" and is_number(parts[i + 1]):
            return parts[i + 1]
    return None


class SnappMarketParser:
    """snapp.market: sections come from a sitemap index, products from the vendor JSON API."""

    name = "snapp.market"
    sitemap_index_url = "https://core.snapp.market/sitemap.xml"

    def describe(self) -> CrawlState:
        return CrawlState(website=self.name, sitemap_index_url=self.sitemap_index_url)

    def is_candidate_url(self, url: str) -> bool:
        return product_id(url) is not None

    async def fetch_product(self, session: ClientSession, url: str) -> ProductRecord:
        pid = product_id(url)
        if pid is None:
            return ProductRecord.placeholder(url)
        payload = await fetch_json(session, API_URL.format(pid=pid))
        if not isinstance(payload, dict):
            return ProductRecord.placeholder(url)
        return self.to_record(url, payload)

    def to_record(self, url: str, payload: Dict[str, Any]) -> ProductRecord:
        product = payload.get("product") or {}
        breadcrumb: List[Dict[str, Any]] = payload.get("breadcrumb") or []
        return ProductRecord(
            url=url,
            pid=str(product.get("id", "")),
            title=product.get("title") or "",
            description=product.get("description") or "",
            short_description=product.get("html_description") or "",
            price=_price(product.get("discounted_price")),
            old_price=_price(product.get("price")),
            brand=product.get("brand") or "",
            category=[c.get("title", "") for c in breadcrumb],
            meta={"meta_description": product.get("meta_description") or ""},
            content=product.get("content") or "",
            images=[ImageRef(url=i.get("image") or "") for i in product.get("images") or []],
            parsed_at=datetime.now(timezone.utc),
        )


def _price(value: Any) -> str:
    return "" if value is None else str(value)
