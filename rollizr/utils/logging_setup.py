"""Logging setup for Rollizr runs.

Console output always; a ``rollizr.log`` file beside the run outputs when a
directory is given. ``LOG_LEVEL=DEBUG`` turns on the per-call agent records
(timing, token usage and a truncated input preview) emitted by the runners.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "rollizr.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP and SDK loggers that flood DEBUG output with transport details
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def _with_format(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def resolve_level(level: Optional[str] = None) -> int:
    """Map an explicit level name, else ``LOG_LEVEL``, to a logging level."""
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> None:
    """Install console (and optional file) handlers on the root logger.

    Parameters
    ----------
    log_dir: Optional[str]
        Output directory for ``rollizr.log``; ``None`` logs to console only.
    level: Optional[str]
        Level name overriding ``LOG_LEVEL``.
    """
    log_level = resolve_level(level)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(log_level)
    root.addHandler(_with_format(logging.StreamHandler()))

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_with_format(logging.FileHandler(directory / LOG_FILE_NAME, encoding="utf-8")))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))
