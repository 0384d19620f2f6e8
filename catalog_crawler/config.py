from __future__ import annotations

from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, Optional, Tuple
from pathlib import Path
import os
import json
import time

from .errors import ConfigError
from .version import __version__, CONFIG_SCHEMA_VERSION


@dataclass(frozen=True)
class CrawlConfig:
    """
    Canonical configuration object, built once at startup and passed to the engine.
    Frozen: use `with_overrides` to derive a changed copy.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    # Identifies a download so it can be resumed later.
    run_id: int = field(default_factory=lambda: int(time.time()))
    website: str = "okala.com"
    workers: int = 10
    output_root: str = "websites"
    request_timeout: float = 10.0
    checkpoint_every: int = 50
    user_agent: str = f"catalog_crawler/{__version__}"
    default_image_extension: str = ".jpg"
    # Extra parsers (dotted class paths) to register at startup
    extra_parsers: Tuple[str, ...] = ()
    exporter: str = "catalog_crawler.export.json_exporter:JSONExporter"
    export_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["extra_parsers"] = list(self.extra_parsers)
        return data

    @property
    def run_root(self) -> Path:
        return Path(self.output_root) / str(self.run_id)

    def with_overrides(self, **changes: Any) -> "CrawlConfig":
        """Return a copy with every non-None value in `changes` applied."""
        applied = {k: v for k, v in changes.items() if v is not None}
        if "extra_parsers" in applied:
            applied["extra_parsers"] = tuple(applied["extra_parsers"])
        return replace(self, **applied)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        defaults = cls()
        try:
            return cls(
                run_id=int(_get("CRAWLER_RUN_ID", str(defaults.run_id))),
                website=_get("CRAWLER_WEBSITE", defaults.website),
                workers=int(_get("CRAWLER_WORKERS", str(defaults.workers))),
                output_root=_get("CRAWLER_OUTPUT_ROOT", defaults.output_root),
                request_timeout=float(_get("CRAWLER_REQUEST_TIMEOUT", str(defaults.request_timeout))),
                checkpoint_every=int(_get("CRAWLER_CHECKPOINT_EVERY", str(defaults.checkpoint_every))),
                user_agent=_get("CRAWLER_USER_AGENT", defaults.user_agent),
                extra_parsers=tuple(
                    p.strip() for p in _get("CRAWLER_EXTRA_PARSERS", "").split(",") if p.strip()
                ),
                exporter=_get("CRAWLER_EXPORTER", defaults.exporter),
                export_path=os.getenv("CRAWLER_EXPORT_PATH") or None,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid crawler environment variable: {exc}") from exc

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for future versions.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        data = migrate_config(data)
        if "extra_parsers" in data:
            data["extra_parsers"] = tuple(data["extra_parsers"])
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConfigError(f"Unexpected key in config file {path}: {exc}") from exc

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.website:
            raise ConfigError("website cannot be empty")
        if self.workers <= 0:
            raise ConfigError("workers must be > 0")
        if self.checkpoint_every <= 0:
            raise ConfigError("checkpoint_every must be > 0")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be > 0")
        if not self.default_image_extension.startswith("."):
            raise ConfigError("default_image_extension must start with '.'")


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)
    if schema > CONFIG_SCHEMA_VERSION:
        raise ConfigError(f"Config schema {schema} is newer than supported {CONFIG_SCHEMA_VERSION}")

    # Flag names used by the command line are accepted as aliases.
    for alias, name in (("uid", "run_id"), ("path", "output_root")):
        if alias in raw:
            raw.setdefault(name, raw.pop(alias))

    raw["schema_version"] = CONFIG_SCHEMA_VERSION
    return raw
