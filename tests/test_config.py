import json
from pathlib import Path

import pytest

from catalog_crawler.config import CrawlConfig, migrate_config
from catalog_crawler.errors import ConfigError
from catalog_crawler.version import CONFIG_SCHEMA_VERSION


def test_defaults():
    cfg = CrawlConfig(run_id=5)
    cfg.validate()
    assert cfg.website == "okala.com"
    assert cfg.workers == 10
    assert cfg.checkpoint_every == 50
    assert cfg.run_root == Path("websites") / "5"


def test_config_is_immutable():
    cfg = CrawlConfig(run_id=5)
    with pytest.raises(AttributeError):
        cfg.workers = 3  # type: ignore[misc]


def test_overrides_skip_unset_values():
    cfg = CrawlConfig(run_id=5).with_overrides(workers=4, website=None, extra_parsers=["a.b:C"])
    assert cfg.workers == 4
    assert cfg.website == "okala.com"
    assert cfg.extra_parsers == ("a.b:C",)


def test_from_file_accepts_flag_aliases(tmp_path):
    path = tmp_path / "crawl.json"
    path.write_text(json.dumps({"uid": 7, "path": "out", "workers": 4, "website": "snapp.market"}), encoding="utf-8")

    cfg = CrawlConfig.from_file(path)

    assert cfg.run_id == 7
    assert cfg.output_root == "out"
    assert cfg.workers == 4
    assert cfg.schema_version == CONFIG_SCHEMA_VERSION


def test_from_file_rejects_unknown_keys(tmp_path):
    path = tmp_path / "crawl.json"
    path.write_text(json.dumps({"max_depth": 3}), encoding="utf-8")
    with pytest.raises(ConfigError):
        CrawlConfig.from_file(path)


def test_newer_schema_is_refused():
    with pytest.raises(ConfigError):
        migrate_config({"schema_version": CONFIG_SCHEMA_VERSION + 1})


def test_from_env(monkeypatch):
    monkeypatch.setenv("CRAWLER_RUN_ID", "42")
    monkeypatch.setenv("CRAWLER_WORKERS", "3")
    monkeypatch.setenv("CRAWLER_EXTRA_PARSERS", "pkg.mod:One, pkg.mod:Two")

    cfg = CrawlConfig.from_env()

    assert cfg.run_id == 42
    assert cfg.workers == 3
    assert cfg.extra_parsers == ("pkg.mod:One", "pkg.mod:Two")


def test_from_env_rejects_garbage(monkeypatch):
    monkeypatch.setenv("CRAWLER_WORKERS", "many")
    with pytest.raises(ConfigError):
        CrawlConfig.from_env()


@pytest.mark.parametrize("changes", [{"workers": 0}, {"checkpoint_every": 0}, {"website": ""},
                                     {"request_timeout": 0}, {"default_image_extension": "jpg"}])
def test_validate(changes):
    with pytest.raises(ConfigError):
        CrawlConfig(run_id=1, **changes).validate()
