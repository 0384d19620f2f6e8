from __future__ import annotations

import hashlib
import mimetypes
from typing import Optional
from urllib.parse import urlparse, urlunparse

from bs4 import Tag


def normalize_url(url: str) -> str:
    """
    Normalize URL by stripping surrounding whitespace and the fragment.
    """
    parts = list(urlparse(url.strip()))
    parts[5] = ""  # strip fragment
    return urlunparse(parts)


def host_of(url: str) -> str:
    return urlparse(url).hostname or ""


def path_of(url: str) -> str:
    return urlparse(url).path


def is_number(text: str) -> bool:
    """Plain ASCII digits only; signs, spaces and underscores are rejected."""
    return text.isascii() and text.isdigit()


def is_fetchable_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host; anything else is skipped without a request."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def hash_url(url: str) -> str:
    """Content-addressed file stem for a downloaded resource."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def extension_for(content_type: Optional[str], default: str = ".jpg") -> str:
    """
    Map a Content-Type header to a file extension, falling back to `default`.
    """
    if not content_type:
        return default
    mime = content_type.split(";")[0].strip().lower()
    ext = mimetypes.guess_extension(mime) if mime else None
    if ext in (".jpe", ".jpeg"):
        ext = ".jpg"
    return ext or default


# ---- BeautifulSoup helpers -------------------------------------------------

def text_of(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.get_text(strip=True)


def inner_html(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.decode_contents()
