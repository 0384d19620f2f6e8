from __future__ import annotations

import os
from pathlib import Path

from ..errors import PersistenceError
from ..utils.parsing import extension_for, hash_url


class ImageStore:
    """
    Lays out downloaded images as <run_root>/<website>/<pid>/<md5(url)><ext>.
    """

    def __init__(self, run_root: str | os.PathLike[str], website: str, default_extension: str = ".jpg") -> None:
        self.root = Path(run_root) / website
        self.default_extension = default_extension

    def path_for(self, pid: str, url: str, content_type: str | None) -> Path:
        folder = pid.replace("/", "_").strip(".") or "_unknown"
        return self.root / folder / (hash_url(url) + extension_for(content_type, self.default_extension))

    def write(self, pid: str, url: str, content_type: str | None, data: bytes) -> Path:
        path = self.path_for(pid, url, content_type)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise PersistenceError(f"Cannot write image {url} to {path}: {exc}") from exc
        return path
