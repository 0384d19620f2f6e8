from __future__ import annotations


class CrawlerError(Exception):
    """
    Base class for fatal crawler conditions.
    Anything raised as a CrawlerError aborts the run with a non-zero exit status.
    """


class ConfigError(CrawlerError):
    pass


class UnknownSiteError(CrawlerError):
    def __init__(self, website: str, known: list[str]) -> None:
        super().__init__(f"No parser registered for {website!r} (known: {', '.join(sorted(known)) or 'none'})")
        self.website = website


class CheckpointError(CrawlerError):
    """A checkpoint exists but cannot be trusted to resume from."""


class PersistenceError(CrawlerError):
    """Writing a checkpoint or a downloaded file failed."""
