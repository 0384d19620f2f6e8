from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import CrawlConfig
from ..errors import CrawlerError
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..adapters.registry import ParserRegistry
from ..engines.base import CrawlReport
from ..engines.sitemap_engine import SitemapCrawlEngine
from ..export.base import Exporter

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Resumable sitemap-driven product catalog crawler")
    p.add_argument("--uid", type=int, default=None,
                   help="Run id; reuse it to resume an interrupted download (default: current unix time)")
    p.add_argument("--website", type=str, default=None, help="Website to be downloaded (default okala.com)")
    p.add_argument("--workers", type=int, default=None, help="Concurrent product downloads (default 10)")
    p.add_argument("--path", type=str, default=None, help="Output root for checkpoints and images")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    p.add_argument("--export", type=str, default=None, help="Write accumulated products to this file")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--extra-parsers", type=str, default=None,
                   help="Comma-separated dotted paths for additional site parsers")
    p.add_argument("--list-sites", action="store_true", help="Print the supported websites and exit")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    cfg = CrawlConfig.from_file(args.config) if args.config else CrawlConfig.from_env()
    extra = None
    if args.extra_parsers:
        extra = [a.strip() for a in args.extra_parsers.split(",") if a.strip()]
    cfg = cfg.with_overrides(
        run_id=args.uid,
        website=args.website,
        workers=args.workers,
        output_root=args.path,
        request_timeout=args.timeout,
        export_path=args.export,
        exporter=args.exporter,
        extra_parsers=extra,
    )
    cfg.validate()
    return cfg


def build_registry(cfg: CrawlConfig) -> ParserRegistry:
    registry = ParserRegistry()
    registry.discover_entry_points()
    # Parsers named in config are required: a bad path is a configuration error.
    for dotted in cfg.extra_parsers:
        registry.register(load_symbol(dotted))
    return registry


def crawl(cfg: CrawlConfig) -> CrawlReport:
    parser = build_registry(cfg).create(cfg.website)
    logger.info(
        "Scraping website %s with %s workers. Output folder: %s (run %s)",
        cfg.website, cfg.workers, cfg.output_root, cfg.run_id,
    )
    engine = SitemapCrawlEngine(cfg, parser)
    report = asyncio.run(engine.crawl())

    if cfg.export_path:
        exporter: Exporter = load_symbol(cfg.exporter)()
        count = exporter.export(report.state, cfg.export_path)
        logger.info("Exported %s products to %s", count, cfg.export_path)
    return report


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = _load_config(args)
        if args.list_sites:
            for name in build_registry(cfg).names:
                print(name)
            return 0
        report = crawl(cfg)
    except CrawlerError as exc:
        logger.error("Aborting: %s", exc)
        logger.debug("Fatal error details", exc_info=exc)
        return 1
    except OSError as exc:
        logger.error("Aborting on I/O error: %s", exc)
        return 1

    logger.info("Sections: %s | Collected: %s | Invalid: %s | Products: %s | Checkpoint: %s",
                report.sections_processed,
                report.collected,
                report.invalid,
                report.accumulated,
                report.checkpoint_path)
    return 0
