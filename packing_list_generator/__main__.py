"""Module entrypoint for running the packing-list API server."""

from __future__ import annotations

import logging
import os
import sys

from .config import LOG_LEVEL, env_int
from .server import DependencyError, run


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("PACKING_LIST_HOST", "0.0.0.0")
    port = env_int("PACKING_LIST_PORT", 8080, minimum=1)
    try:
        run(host, port)
    except DependencyError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
