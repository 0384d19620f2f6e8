from __future__ import annotations

from typing import Any, Optional
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

logger = logging.getLogger(__name__)


async def fetch_text(session: ClientSession, url: str) -> Optional[str]:
    """
    Fetch a URL and return body text. Returns None on failure; nothing is retried.
    """
    try:
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.text()
    except Exception as exc:  # broad catch to keep crawler moving
        logger.warning("fetch_text failed for %s: %r", url, exc)
        return None


async def fetch_json(session: ClientSession, url: str) -> Optional[Any]:
    """
    Fetch a URL and decode its JSON body regardless of the declared content type.
    Returns None on transport or decoding failure.
    """
    try:
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)
    except Exception as exc:  # broad catch to keep crawler moving
        logger.warning("fetch_json failed for %s: %r", url, exc)
        return None


def create_session(*, timeout: float = 10.0, user_agent: Optional[str] = None) -> ClientSession:
    """
    Create the shared aiohttp ClientSession.
    Every request made through it is bounded by `timeout` seconds so a stalled
    server cannot hold an admission token forever.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=0)  # unlimited; concurrency managed via semaphore
    headers = {"User-Agent": user_agent} if user_agent else None
    return aiohttp.ClientSession(
        connector=connector,
        timeout=ClientTimeout(total=timeout),
        headers=headers,
    )
