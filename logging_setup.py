#!/usr/bin/env python3
"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``traffic.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup before any other ``import``
triggers ``logging.getLogger()``.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from config import LOG_FILE, SAFETY_LOG_FILE


def setup_logging(
    level: int = logging.INFO,
    extra_handlers: Optional[Iterable[logging.Handler]] = None,
) -> None:
    """Apply a unified log format to console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    extra_handlers : iterable of logging.Handler or None
        Additional root handlers, e.g. the pygame log pane.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)

    fh = RotatingFileHandler(LOG_FILE, maxBytes=1_000_000, backupCount=2)
    fh.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)
    for handler in extra_handlers or ():
        root.addHandler(handler)

    # ── Dedicated file for violations and accidents ───────────────────
    safety_logger = logging.getLogger("safety")
    for handler in list(safety_logger.handlers):
        safety_logger.removeHandler(handler)
        handler.close()
    sfh = RotatingFileHandler(SAFETY_LOG_FILE, maxBytes=5_000_000, backupCount=2)
    sfh.setLevel(logging.INFO)
    sfh.setFormatter(fmt)
    safety_logger.addHandler(sfh)
