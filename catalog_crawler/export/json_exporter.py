from __future__ import annotations

import json
from pathlib import Path

from ..models import CrawlState
from .base import Exporter


class JSONExporter:
    """Flat list of accumulated products, each tagged with its sitemap."""

    def export(self, state: CrawlState, path: str) -> int:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        rows = [
            {"website": state.website, "sitemap": section.url, **product.to_dict()}
            for section in state.sections
            for product in section.products
        ]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        return len(rows)
