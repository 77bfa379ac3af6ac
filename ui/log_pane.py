"""
ui/log_pane.py
==============
:class:`LogPaneHandler` keeps the most recent log records in memory so
the HUD can draw them as an on-screen event log.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, List, Tuple


class LogPaneHandler(logging.Handler):
    """Logging handler retaining the last *capacity* formatted lines.

    Records arrive from the simulation thread and are read by the UI
    thread, so access goes through a lock.
    """

    def __init__(self, capacity: int = 20, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self._lines: Deque[Tuple[str, str]] = deque(maxlen=capacity)
        self._pane_lock = threading.Lock()
        self.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._pane_lock:
            self._lines.append((record.levelname, line))

    def lines(self) -> List[Tuple[str, str]]:
        """``(levelname, text)`` pairs, oldest first."""
        with self._pane_lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._pane_lock:
            self._lines.clear()
