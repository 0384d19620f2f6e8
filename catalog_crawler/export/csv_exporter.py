from __future__ import annotations

import csv
from pathlib import Path

from ..models import CrawlState
from .base import Exporter


class CSVExporter:
    """
    Writes one row per accumulated product; list fields are joined.
    """

    _headers = [
        "website",
        "sitemap",
        "url",
        "pid",
        "title",
        "brand",
        "price",
        "old_price",
        "category",
        "description",
        "images",
    ]

    def export(self, state: CrawlState, path: str) -> int:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for section in state.sections:
                for product in section.products:
                    w.writerow(
                        [
                            state.website,
                            section.url,
                            product.url,
                            product.pid,
                            product.title,
                            product.brand,
                            product.price,
                            product.old_price,
                            " > ".join(product.category),
                            product.description,
                            "|".join(i.local_path or i.url for i in product.images),
                        ]
                    )
                    count += 1
        return count
