from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from aiohttp import ClientSession

from ..errors import CrawlerError
from ..models import ImageRef, ProductRecord
from ..storage.images import ImageStore
from ..utils.parsing import is_fetchable_url

logger = logging.getLogger(__name__)


class ImageDownloader:
    """
    Downloads every image of a product concurrently, one task per image.
    Failures leave the ImageRef unresolved; only storage errors propagate.
    """

    def __init__(self, session: ClientSession, store: ImageStore) -> None:
        self.session = session
        self.store = store

    async def download_all(self, product: ProductRecord) -> int:
        if not product.images:
            return 0
        await asyncio.gather(*(self.download(product, image) for image in product.images))
        return sum(1 for image in product.images if image.resolved)

    async def download(self, product: ProductRecord, image: ImageRef) -> None:
        if not is_fetchable_url(image.url):
            logger.debug("Skipping invalid image url %r of %s", image.url, product.url)
            return
        try:
            async with self.session.get(image.url) as resp:
                resp.raise_for_status()
                content_type = resp.headers.get("Content-Type", "")
                data = await resp.read()
        except CrawlerError:
            raise
        except Exception as exc:
            # Bad hosts surface as UnicodeError or ValueError, not ClientError.
            logger.warning("Failed to fetch image %s: %r", image.url, exc)
            return

        path = await asyncio.to_thread(self.store.write, product.pid, image.url, content_type, data)
        image.local_path = str(path)
        image.parsed_at = datetime.now(timezone.utc)
