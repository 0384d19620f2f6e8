from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import CheckpointError, PersistenceError
from ..models import CrawlState
from ..version import CHECKPOINT_SCHEMA_VERSION

logger = logging.getLogger(__name__)


class CheckpointStore:
    """
    One JSON snapshot of a CrawlState per website per run, overwritten on every save.
    """

    def __init__(self, run_root: str | os.PathLike[str], website: str) -> None:
        self.path = Path(run_root) / f"info-{website}.json"
        self.saves = 0

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> CrawlState:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise CheckpointError(f"Cannot read checkpoint {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CheckpointError(f"Checkpoint {self.path} is not valid JSON: {exc}") from exc

        if not isinstance(raw, dict):
            raise CheckpointError(f"Checkpoint {self.path} does not hold an object")
        schema = raw.get("schema_version", 1)
        if not isinstance(schema, int) or schema > CHECKPOINT_SCHEMA_VERSION:
            raise CheckpointError(
                f"Checkpoint {self.path} has schema {schema!r}; this version reads up to {CHECKPOINT_SCHEMA_VERSION}"
            )
        try:
            state = CrawlState.from_dict(raw.get("state"))
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointError(f"Checkpoint {self.path} is malformed: {exc!r}") from exc
        logger.info("Resuming from checkpoint %s", self.path)
        return state

    def save(self, state: CrawlState) -> None:
        """
        Replace the checkpoint atomically so a crash never leaves a half-written document.
        """
        document = {"schema_version": CHECKPOINT_SCHEMA_VERSION, "state": state.to_dict()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, ensure_ascii=False)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Cannot write checkpoint {self.path}: {exc}") from exc
        self.saves += 1
        logger.debug("Checkpoint #%s written to %s", self.saves, self.path)
