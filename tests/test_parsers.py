import asyncio
import json

import pytest

from catalog_crawler.adapters.okala import OkalaParser
from catalog_crawler.adapters.registry import ParserRegistry
from catalog_crawler.adapters.snapp_market import API_URL, SnappMarketParser, product_id
from catalog_crawler.errors import UnknownSiteError

from conftest import FakeParser, FakeResponse, FakeSession

OKALA_PAGE = """
<html><body>
<ol class="breadcrumb">
  <li><a href="/c/1">Dairy</a></li>
  <li><a href="/c/2">Milk</a></li>
  <li><a>Low fat milk</a></li>
</ol>
<h1 class="h4 line-height-sm font-weight-bold"> Low fat milk </h1>
<div class="subtitle2 text-muted">1 litre bottle</div>
<dl class="description-list description-list-horizontal description-list-horizontal-sm mb-0">
  <dt class="text-muted"><del>52,000</del></dt>
  <dd class="text-primary"><span>48,000</span></dd>
</dl>
<dl class="description-list description-list-horizontal">
  <dt>برند</dt><dd><a href="/b/9">Pegah</a></dd>
  <dt>Weight</dt><dd>1 kg</dd>
</dl>
<div class="gallery-top">
  <img data-zoom-image="/images/1.jpg">
  <img data-zoom-image="https://cdn.okala.com/2.jpg">
</div>
<div id="description"><p>Fresh</p></div>
</body></html>
"""


def test_okala_product_page_extraction():
    record = OkalaParser().parse("https://okala.com/12345", OKALA_PAGE)

    assert record.pid == "12345"
    assert record.title == "Low fat milk"
    assert record.description == "1 litre bottle"
    assert record.price == "48,000"
    assert record.old_price == "52,000"
    assert record.brand == "Pegah"
    assert record.category == ["Dairy", "Milk"]
    assert record.content == "<p>Fresh</p>"
    assert record.meta["attributes"][1] == ["Weight", "1 kg"]
    assert [i.url for i in record.images] == ["https://okala.com/images/1.jpg", "https://cdn.okala.com/2.jpg"]
    assert record.is_valid


def test_okala_page_without_product_is_invalid():
    record = OkalaParser().parse("https://okala.com/1", "<html><body>Not found</body></html>")
    assert not record.is_valid
    assert record.images == [] and record.category == []


@pytest.mark.parametrize(
    "url,expected",
    [("https://okala.com/12345", True), ("https://okala.com/12345/", True),
     ("https://okala.com/about", False), ("https://okala.com/", False),
     ("https://okala.com/+5", False), ("https://okala.com/1_0", False)],
)
def test_okala_candidates(url, expected):
    assert OkalaParser().is_candidate_url(url) is expected


def test_okala_fetch_failure_yields_placeholder():
    record = asyncio.run(OkalaParser().fetch_product(FakeSession(), "https://okala.com/5"))
    assert record.url == "https://okala.com/5"
    assert not record.is_valid


def test_okala_uses_static_sitemap():
    state = OkalaParser().describe()
    assert state.website == "okala.com"
    assert [s.url for s in state.sections] == ["https://okala.com/sitemap.xml"]
    assert state.sitemap_index_url == ""


SNAPP_PAYLOAD = {
    "product": {
        "id": 123,
        "title": "Milk",
        "description": "Fresh milk",
        "content": "<p>long</p>",
        "price": 50000,
        "discounted_price": 45000,
        "images": [{"image": "https://cdn.snapp.market/1.jpg", "thumb": "https://cdn.snapp.market/t1.jpg"}],
        "brand": "Pegah",
        "html_description": "<b>milk</b>",
        "meta_description": "milk 1l",
    },
    "breadcrumb": [{"id": 1, "title": "Dairy", "slug": "dairy"}, {"id": 2, "title": "Milk", "slug": "milk"}],
}


def test_snapp_product_from_api():
    url = "https://snapp.market/v/products/123/milk"
    session = FakeSession({API_URL.format(pid="123"): FakeResponse(json.dumps(SNAPP_PAYLOAD),
                                                                   content_type="application/json")})

    record = asyncio.run(SnappMarketParser().fetch_product(session, url))

    assert record.url == url
    assert record.pid == "123"
    assert record.title == "Milk"
    assert record.price == "45000"
    assert record.old_price == "50000"
    assert record.short_description == "<b>milk</b>"
    assert record.category == ["Dairy", "Milk"]
    assert [i.url for i in record.images] == ["https://cdn.snapp.market/1.jpg"]


def test_snapp_api_failure_yields_placeholder():
    url = "https://snapp.market/v/products/123/milk"
    session = FakeSession({API_URL.format(pid="123"): FakeResponse("<html>oops</html>")})
    record = asyncio.run(SnappMarketParser().fetch_product(session, url))
    assert not record.is_valid


def test_snapp_candidates():
    parser = SnappMarketParser()
    assert product_id("https://snapp.market/products/456") == "456"
    assert parser.is_candidate_url("https://snapp.market/v/products/123/milk")
    assert not parser.is_candidate_url("https://snapp.market/v/categories/12")
    assert not parser.is_candidate_url("https://snapp.market/v/products/")
    assert parser.describe().sitemap_index_url == "https://core.snapp.market/sitemap.xml"


def test_registry_resolves_site_names():
    registry = ParserRegistry()
    assert registry.names == ["okala.com", "snapp.market"]
    assert isinstance(registry.create("snapp.market"), SnappMarketParser)

    registry.register(FakeParser)
    assert registry.create("shop.test").name == "shop.test"

    with pytest.raises(UnknownSiteError):
        registry.create("nope.example")
