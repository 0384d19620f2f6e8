from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..models import ProductRecord, SiteMapSection
from ..utils.logging import PROGRESS_LOGGER

logger = logging.getLogger(__name__)
progress_logger = logging.getLogger(PROGRESS_LOGGER)


class ResultCollector:
    """
    The only writer of a section while it is being fetched.

    Records arrive in completion order. Every record, valid or not, advances
    the section cursor by one, so the cursor always equals the number of URLs
    collected and a restart skips everything already attempted. `None` on the
    inbox closes the collector, which then writes one last checkpoint.
Checkpoints are awaited in place, so no record is taken while one is written.
    """

    def __init__(
        self,
        section: SiteMapSection,
        inbox: "asyncio.Queue[Optional[ProductRecord]]",
        checkpoint: Callable[[], Awaitable[None]],
        every: int = 50,
    ) -> None:
        self.section = section
        self.inbox = inbox
        self.checkpoint = checkpoint
        self.every = every
        self.total = section.resume_position
        self.received = 0
        self.invalid = 0

    async def run(self) -> int:
        while True:
            product = await self.inbox.get()
            if product is None:
                break
            await self.collect(product)
        await self.checkpoint()
        return self.received

    async def collect(self, product: ProductRecord) -> None:
        section = self.section
        self.total += 1
        self.received += 1
        progress_logger.info(
            "Total downloaded => %s , Sitemap links => %s , Current sitemap downloaded products => %s",
            self.total, len(section.candidate_urls), len(section.products),
        )
        if product.is_valid:
            section.products.append(product)
        else:
            self.invalid += 1
            logger.debug("Dropping %s: no title extracted", product.url)
        section.resume_position += 1
        if self.total % self.every == 0:
            await self.checkpoint()
