from __future__ import annotations

import logging
from typing import Dict, List, Type
from importlib import metadata

from .base import SiteParser
from .okala import OkalaParser
from .snapp_market import SnappMarketParser
from ..errors import UnknownSiteError

logger = logging.getLogger(__name__)


class ParserRegistry:
    """
    Registry of available site parsers, keyed by target identity.
    Supports built-ins, config-defined dotted classes, and entry-point plugins.
    """
    def __init__(self) -> None:
        self._parsers: Dict[str, Type[SiteParser]] = {}
        for parser_cls in (OkalaParser, SnappMarketParser):
            self.register(parser_cls)

    # ---- Introspection / Management ----

    def register(self, parser_cls: Type[SiteParser]) -> None:
        self._parsers[parser_cls.name] = parser_cls

    @property
    def names(self) -> List[str]:
        return sorted(self._parsers)

    def create(self, website: str) -> SiteParser:
        try:
            parser_cls = self._parsers[website]
        except KeyError:
            raise UnknownSiteError(website, self.names) from None
        return parser_cls()

    # ---- Discovery ----

    def discover_entry_points(self, group: str = "catalog_crawler.parsers") -> int:
        """
        Discover third-party parsers installed as entry points.
        Returns count of newly registered parsers.
        """
        added = 0
        for ep in metadata.entry_points().select(group=group):
            try:
                parser_cls = ep.load()
            except Exception as exc:
                # Plugins are optional; a broken one must not block the built-ins.
                logger.warning("Skipping parser plugin %s: %r", ep.name, exc)
                continue
            self.register(parser_cls)
            added += 1
        return added
