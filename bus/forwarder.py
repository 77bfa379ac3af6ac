"""
TelemetryForwarder: Ships EventBus records to the scheduling backend over HTTP.

Runs on its own daemon thread so that a slow or unreachable backend never
delays a simulation tick.  Every failure is logged and the record dropped;
nothing is retried.

Routes:
    - 'safety.violation'  -> POST /api/log-violation
    - 'safety.accident'   -> POST /api/log-accident
    - 'telemetry.sample'  -> POST /api/log-data
    - every train_interval_s -> POST /api/train-model
"""

import time
import logging
import threading
from typing import Dict, Optional

import requests

from .event_bus import EventBus
from .utils import TOPIC_ACCIDENT, TOPIC_SAMPLE, TOPIC_VIOLATION

log = logging.getLogger("telemetry")

_ROUTES: Dict[str, str] = {
    TOPIC_VIOLATION: "/api/log-violation",
    TOPIC_ACCIDENT: "/api/log-accident",
    TOPIC_SAMPLE: "/api/log-data",
}


class TelemetryForwarder:
    """
    Background poster for simulation records.

    Attributes:
        base_url (str): Backend root, e.g. 'http://127.0.0.1:8000'.
        poll_interval_s (float): Seconds between two bus drains.
        train_interval_s (float): Seconds between two training requests (0 disables).
        sent (int): Records successfully posted.
        failed (int): Records or training requests that failed.
    """

    def __init__(
        self,
        bus: EventBus,
        base_url: str,
        poll_interval_s: float = 0.5,
        train_interval_s: float = 5.0,
        timeout_s: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize a TelemetryForwarder.

        Args:
            bus (EventBus): Source of records.
            base_url (str): Backend root URL.
            poll_interval_s (float): Drain period.
            train_interval_s (float): Training period; 0 disables training requests.
            timeout_s (float): Per-request timeout.
            session (requests.Session): Optional shared HTTP session.
        """
        self.bus = bus
        self.base_url = base_url.rstrip("/")
        self.poll_interval_s = poll_interval_s
        self.train_interval_s = train_interval_s
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_train = time.monotonic()
        self.sent = 0
        self.failed = 0

    # ---------- lifecycle ----------
    def start(self):
        """Spawn the forwarding thread (no-op if already running)."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="TelemetryForwarder"
        )
        self._thread.start()
        log.info("TelemetryForwarder posting to %s", self.base_url)

    def stop(self):
        """Signal the thread to stop, drain once more, and join."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
        self._thread = None

    # ---------- work ----------
    def flush(self) -> int:
        """
        Post every queued record once.

        Returns:
            int: Number of records posted successfully.
        """
        ok = 0
        for topic, path in _ROUTES.items():
            for msg in self.bus.poll(topic):
                if self._post(path, msg.payload):
                    ok += 1
        return ok

    def request_training(self) -> bool:
        """
        Ask the backend to retrain its scheduling model.

        Returns:
            bool: True when the backend accepted the request.
        """
        try:
            resp = self._session.post(
                f"{self.base_url}/api/train-model", timeout=self.timeout_s
            )
            resp.raise_for_status()
            message = resp.json().get("message", "")
        except (requests.RequestException, ValueError) as exc:
            self.failed += 1
            log.warning("Model training request failed: %s", exc)
            return False
        log.info("Model training completed: %s", message)
        return True

    def _post(self, path: str, payload: dict) -> bool:
        try:
            resp = self._session.post(
                f"{self.base_url}{path}", json=payload, timeout=self.timeout_s
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            self.failed += 1
            log.warning("POST %s failed: %s", path, exc)
            return False
        self.sent += 1
        log.debug("POST %s ok", path)
        return True

    def _loop(self):
        while not self._stop_event.wait(self.poll_interval_s):
            try:
                self._tick()
            except Exception:
                log.exception("TelemetryForwarder tick error")
        try:
            self.flush()
        except Exception:
            log.exception("TelemetryForwarder final flush error")

    def _tick(self):
        self.flush()
        now = time.monotonic()
        if self.train_interval_s > 0 and now - self._last_train >= self.train_interval_s:
            self._last_train = now
            self.request_training()
