"""Process-wide logging configuration.

Called once at start-up (API lifespan or CLI entry-point).  Every other
module just does ``logger = logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    """Attach a console handler (and optionally a file handler) to the root logger.

    The console handler writes to *stream*, stdout by default.  The CLI passes
    stderr so that stdout carries only the event stream.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO; the pipeline already does that with context.
    logging.getLogger("httpx").setLevel(logging.WARNING)
