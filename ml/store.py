"""
ml/store.py
===========
Append-only files written by the backend.

* :class:`SampleStore` keeps labelled traffic samples in a CSV that the
  scheduling model trains on.
* :func:`append_json_line` writes one safety record per line to
  ``violations.log`` / ``accidents.log``.
"""

import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict

import pandas as pd

SAMPLE_COLUMNS = ("timestamp", "cars_present", "emergency_vehicle", "scheduling_model")

_WRITE_LOCK = threading.Lock()


class SampleStore:
    """CSV of ``timestamp, cars_present, emergency_vehicle, scheduling_model``."""

    def __init__(self, csv_path: str) -> None:
        self.csv_path = csv_path

    def append(self, sample: Dict[str, Any]) -> None:
        """Append one row, writing the header when the file is new."""
        row = pd.DataFrame([{col: sample.get(col) for col in SAMPLE_COLUMNS}])
        with _WRITE_LOCK:
            folder = os.path.dirname(os.path.abspath(self.csv_path))
            os.makedirs(folder, exist_ok=True)
            exists = os.path.exists(self.csv_path) and os.path.getsize(self.csv_path) > 0
            row.to_csv(self.csv_path, mode="a", header=not exists, index=False)

    def count(self) -> int:
        if not os.path.exists(self.csv_path):
            return 0
        return len(pd.read_csv(self.csv_path))


def append_json_line(path: str, record: Dict[str, Any]) -> None:
    """Append *record* with a ``logged_at`` stamp as one JSON line."""
    entry = {"logged_at": datetime.now(timezone.utc).isoformat(), **record}
    with _WRITE_LOCK:
        folder = os.path.dirname(os.path.abspath(path))
        os.makedirs(folder, exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry) + "\n")
