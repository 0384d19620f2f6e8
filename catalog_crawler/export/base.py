from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import CrawlState


@runtime_checkable
class Exporter(Protocol):
    def export(self, state: CrawlState, path: str) -> int:
        """Write every accumulated product of `state` to `path`; return the product count."""
        ...
