from __future__ import annotations

from dataclasses import dataclass
from abc import ABC, abstractmethod

from ..models import CrawlState


@dataclass
class CrawlReport:
    state: CrawlState
    sections_processed: int = 0
    collected: int = 0  # records received by collectors during this run
    invalid: int = 0  # of which had an empty title
    checkpoint_path: str = ""

    @property
    def accumulated(self) -> int:
        return self.state.accumulated


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
