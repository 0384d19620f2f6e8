from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from aiohttp import ClientSession

from .base import CrawlEngine, CrawlReport
from .collector import ResultCollector
from .fetch_pool import FetchPool
from .images import ImageDownloader
from ..adapters.base import SiteParser
from ..config import CrawlConfig
from ..models import CrawlState, ProductRecord, SiteMapSection
from ..storage.checkpoint import CheckpointStore
from ..storage.images import ImageStore
from ..utils.http import create_session, fetch_text
from ..utils.sitemap import parse_sitemap, parse_sitemap_index

logger = logging.getLogger(__name__)


class SitemapCrawlEngine(CrawlEngine):
    """
    Resumable sitemap crawl of one website.
    - Discovery turns sitemaps into a fixed list of candidate URLs per section.
    - Sections are processed one after another, each with its own collector.
    - Progress is checkpointed so a restart continues at each section's cursor.
    """
    def __init__(
        self,
        config: CrawlConfig,
        parser: SiteParser,
        *,
        store: Optional[CheckpointStore] = None,
        image_store: Optional[ImageStore] = None,
        session_factory: Callable[..., ClientSession] = create_session,
    ) -> None:
        self.config = config
        self.parser = parser
        self.store = store or CheckpointStore(config.run_root, parser.name)
        self.image_store = image_store or ImageStore(
            config.run_root, parser.name, config.default_image_extension
        )
        self.session_factory = session_factory
        self.state: Optional[CrawlState] = None

    async def crawl(self) -> CrawlReport:
        cfg = self.config
        session = self.session_factory(timeout=cfg.request_timeout, user_agent=cfg.user_agent)
        try:
            state = await self.load_or_discover(session)
            self.state = state
            report = CrawlReport(state=state, checkpoint_path=str(self.store.path))
            for index, section in enumerate(state.sections):
                if not section.candidate_urls:
                    logger.info("Section %s (%s) is empty, skipping", index, section.url)
                    continue
                if section.is_consumed:
                    logger.debug("Section %s (%s) already complete", index, section.url)
                    continue
                collector = await self._process_section(session, state, section)
                report.sections_processed += 1
                report.collected += collector.received
                report.invalid += collector.invalid
        finally:
            await session.close()
        return report

    # ---- Discovery ----

    async def load_or_discover(self, session: ClientSession) -> CrawlState:
        """
        Resume from the checkpoint when one exists; otherwise read the sitemaps
        and persist the discovered candidate lists before any product is fetched.
        """
        if self.store.exists():
            return self.store.load()

        state = self.parser.describe()
        if state.sitemap_index_url:
            state.sections = await self._discover_sections(session, state.sitemap_index_url)
        for section in state.sections:
            section.candidate_urls = await self._discover_candidates(session, section.url)
        logger.info(
            "Discovered %s sections with %s candidate URLs for %s",
            len(state.sections), sum(len(s.candidate_urls) for s in state.sections), state.website,
        )
        await self._save(state)
        return state

    async def _discover_sections(self, session: ClientSession, index_url: str) -> List[SiteMapSection]:
        xml = await fetch_text(session, index_url)
        if xml is None:
            logger.warning("Sitemap index %s unavailable; no sections discovered", index_url)
            return []
        return [SiteMapSection(url=url) for url in parse_sitemap_index(xml)]

    async def _discover_candidates(self, session: ClientSession, sitemap_url: str) -> List[str]:
        xml = await fetch_text(session, sitemap_url)
        if xml is None:
            logger.warning("Sitemap %s unavailable; section left empty", sitemap_url)
            return []
        return parse_sitemap(xml, self.parser.is_candidate_url)

    # ---- Per-section pipeline ----

    async def _process_section(
        self, session: ClientSession, state: CrawlState, section: SiteMapSection
    ) -> ResultCollector:
        cfg = self.config
        # Unbounded: records are handed over in the order fetches finish.
        queue: "asyncio.Queue[Optional[ProductRecord]]" = asyncio.Queue()
        collector = ResultCollector(
            section, queue, lambda: self._save(state), every=cfg.checkpoint_every
        )
        pool = FetchPool(
            self.parser, session, ImageDownloader(session, self.image_store), queue, cfg.workers
        )
        logger.info(
            "Section %s: %s candidates, resuming at %s",
            section.url, len(section.candidate_urls), section.resume_position,
        )

        collector_task = asyncio.create_task(collector.run(), name=f"collector:{section.url}")
        admit_task = asyncio.create_task(self._admit(pool, section), name=f"admit:{section.url}")
        try:
            await asyncio.wait({admit_task, collector_task}, return_when=asyncio.FIRST_COMPLETED)
            if collector_task.done():
                # Before the close sentinel the collector can only stop by failing.
                collector_task.result()
            await admit_task
            await queue.put(None)
            await collector_task
        except BaseException:
            admit_task.cancel()
            await pool.cancel()
            collector_task.cancel()
            await asyncio.gather(admit_task, collector_task, return_exceptions=True)
            raise

        await self._save(state)
        logger.info(
            "Section %s done: %s collected, %s accumulated, peak concurrency %s",
            section.url, collector.received, len(section.products), pool.peak_in_flight,
        )
        return collector

    async def _admit(self, pool: FetchPool, section: SiteMapSection) -> None:
        for url in list(section.pending_urls()):
            await pool.submit(url)
        await pool.join()

    async def _save(self, state: CrawlState) -> None:
        # Off the event loop: a full snapshot grows with the catalog.
        await asyncio.to_thread(self.store.save, state)
