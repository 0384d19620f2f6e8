from __future__ import annotations

import logging
import sys

from .ui.cli import run_cli


def main() -> int:
    # Entry point only: delegate to the CLI layer.
    try:
        return run_cli(sys.argv[1:])
    except KeyboardInterrupt:
        # The last checkpoint on disk is intact; the same --uid picks up from it.
        logging.getLogger(__name__).warning("Interrupted; rerun with the same --uid to resume")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
