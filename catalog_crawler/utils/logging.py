from __future__ import annotations

import logging
import os
import sys

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

#: Logger carrying one line per collected product.
PROGRESS_LOGGER = "catalog_crawler.progress"


def setup_logging(level: str | int | None = None) -> None:
    """
    Configure application logging on stdout, where progress lines are expected.
    """
    if level is None:
        level = os.getenv("CRAWLER_LOG_LEVEL", "INFO")

    if isinstance(level, str):
        level = _LEVELS.get(level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # aiohttp is chatty at DEBUG about connection reuse.
    logging.getLogger("aiohttp").setLevel(max(level, logging.INFO))
