from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from aiohttp import ClientSession

from ..adapters.base import SiteParser
from ..errors import CrawlerError
from ..models import ProductRecord
from .images import ImageDownloader

logger = logging.getLogger(__name__)


class FetchPool:
    """
    Bounded set of in-flight product fetches.
    - `submit` waits for an admission token, then schedules the fetch and returns.
    - A task holds its token while the product and all of its images download.
    - The token is released before the record is queued, so a slow consumer
      never keeps a worker slot busy.
    """

    def __init__(
        self,
        parser: SiteParser,
        session: ClientSession,
        images: ImageDownloader,
        outbox: "asyncio.Queue[Optional[ProductRecord]]",
        workers: int,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.parser = parser
        self.session = session
        self.images = images
        self.outbox = outbox
        self._tokens = asyncio.Semaphore(workers)
        self._tasks: Set[asyncio.Task[None]] = set()
        self._failure: Optional[BaseException] = None
        self.in_flight = 0
        self.peak_in_flight = 0
        self.submitted = 0

    async def submit(self, url: str) -> None:
        self._raise_failure()
        await self._tokens.acquire()
        if self._failure is not None:
            self._tokens.release()
            self._raise_failure()
        self.submitted += 1
        task = asyncio.create_task(self._run(url), name=f"fetch:{url}")
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    async def join(self) -> None:
        """Wait for every submitted task; the first fatal error is re-raised."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._raise_failure()

    async def cancel(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _finished(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and self._failure is None:
            self._failure = exc

    def _raise_failure(self) -> None:
        if self._failure is not None:
            raise self._failure

    # ---- Worker -----------------------------------------------------------

    async def _run(self, url: str) -> None:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            product = await self._fetch(url)
        finally:
            self.in_flight -= 1
            self._tokens.release()
        await self.outbox.put(product)

    async def _fetch(self, url: str) -> ProductRecord:
        try:
            product = await self.parser.fetch_product(self.session, url)
        except CrawlerError:
            raise
        except Exception:
            logger.exception("Parser %s failed on %s", self.parser.name, url)
            return ProductRecord.placeholder(url)

        if product.images:
            resolved = await self.images.download_all(product)
            logger.debug("%s: %s/%s images stored", url, resolved, len(product.images))
        return product
