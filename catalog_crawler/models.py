from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _dt_from_str(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class ImageRef:
    """One product image. `local_path` stays unset until the file is on disk."""

    url: str
    local_path: Optional[str] = None
    parsed_at: Optional[datetime] = None

    @property
    def resolved(self) -> bool:
        return self.local_path is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "local_path": self.local_path,
            "parsed_at": _dt_to_str(self.parsed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRef":
        return cls(
            url=data["url"],
            local_path=data.get("local_path"),
            parsed_at=_dt_from_str(data.get("parsed_at")),
        )


@dataclass
class ProductRecord:
    """
    Extracted result for one product URL.
    A record with an empty title marks a failed fetch and is never accumulated.
    """

    url: str
    pid: str = ""
    title: str = ""
    description: str = ""
    short_description: str = ""
    price: str = ""
    old_price: str = ""
    brand: str = ""
    category: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    content: str = ""
    images: List[ImageRef] = field(default_factory=list)
    parsed_at: Optional[datetime] = None

    @classmethod
    def placeholder(cls, url: str) -> "ProductRecord":
        return cls(url=url)

    @property
    def is_valid(self) -> bool:
        return bool(self.title)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "pid": self.pid,
            "title": self.title,
            "description": self.description,
            "short_description": self.short_description,
            "price": self.price,
            "old_price": self.old_price,
            "brand": self.brand,
            "category": list(self.category),
            "meta": self.meta,
            "content": self.content,
            "images": [i.to_dict() for i in self.images],
            "parsed_at": _dt_to_str(self.parsed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductRecord":
        return cls(
            url=data["url"],
            pid=data.get("pid", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            short_description=data.get("short_description", ""),
            price=data.get("price", ""),
            old_price=data.get("old_price", ""),
            brand=data.get("brand", ""),
            category=list(data.get("category") or []),
            meta=dict(data.get("meta") or {}),
            content=data.get("content", ""),
            images=[ImageRef.from_dict(i) for i in data.get("images") or []],
            parsed_at=_dt_from_str(data.get("parsed_at")),
        )


@dataclass
class SiteMapSection:
    """
    One sitemap document: its candidate product URLs, the products collected
    from them so far and the cursor of the next URL to fetch.
    """

    url: str
    candidate_urls: List[str] = field(default_factory=list)
    products: List[ProductRecord] = field(default_factory=list)
    resume_position: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.resume_position <= len(self.candidate_urls):
            raise ValueError(
                f"resume_position {self.resume_position} outside 0..{len(self.candidate_urls)} for {self.url}"
            )

    @property
    def is_consumed(self) -> bool:
        return self.resume_position >= len(self.candidate_urls)

    def pending_urls(self) -> Iterator[str]:
        for i in range(self.resume_position, len(self.candidate_urls)):
            yield self.candidate_urls[i]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "candidate_urls": list(self.candidate_urls),
            "products": [p.to_dict() for p in self.products],
            "resume_position": self.resume_position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteMapSection":
        position = data.get("resume_position", 0)
        if not isinstance(position, int):
            raise TypeError(f"resume_position must be an integer, got {position!r}")
        return cls(
            url=data["url"],
            candidate_urls=list(data.get("candidate_urls") or []),
            products=[ProductRecord.from_dict(p) for p in data.get("products") or []],
            resume_position=position,
        )


@dataclass
class CrawlState:
    """Root persisted object for one target website."""

    website: str
    sections: List[SiteMapSection] = field(default_factory=list)
    sitemap_index_url: str = ""

    @property
    def accumulated(self) -> int:
        return sum(len(s.products) for s in self.sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "website": self.website,
            "sitemap_index_url": self.sitemap_index_url,
            "sections": [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlState":
        if not isinstance(data, dict):
            raise TypeError(f"Crawl state must be an object, got {type(data).__name__}")
        return cls(
            website=data["website"],
            sitemap_index_url=data.get("sitemap_index_url") or "",
            sections=[SiteMapSection.from_dict(s) for s in data.get("sections") or []],
        )
