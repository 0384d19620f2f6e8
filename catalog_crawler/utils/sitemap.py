from __future__ import annotations

import warnings
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from .parsing import normalize_url


def _locs(xml: str, selector: str) -> List[str]:
    # html.parser lowercases tag names, which is harmless for sitemap elements.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        soup = BeautifulSoup(xml, "html.parser")
    out: List[str] = []
    for loc in soup.select(selector):
        text = loc.get_text(strip=True)
        if text:
            out.append(normalize_url(text))
    return out


def parse_sitemap_index(xml: str) -> List[str]:
    """Return the sitemap URLs listed by a <sitemapindex> document, in document order."""
    return _locs(xml, "sitemapindex > sitemap > loc")


def parse_sitemap(xml: str, is_candidate: Optional[Callable[[str], bool]] = None) -> List[str]:
    """
    Return page URLs listed by a <urlset> document, in document order.
    `is_candidate` filters the raw entries; duplicates keep their first position.
    """
    seen = set()
    out: List[str] = []
    for url in _locs(xml, "urlset > url > loc"):
        if url in seen:
            continue
        if is_candidate is not None and not is_candidate(url):
            continue
        seen.add(url)
        out.append(url)
    return out
