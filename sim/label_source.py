#!/usr/bin/env python3
"""
sim/label_source.py
===================
Scheduling-label port used by :class:`sim.world.Simulation`.

The simulation only ever calls :meth:`SchedulingLabelSource.current_label`,
which returns the last cached label immediately.  Polling sources refresh
that cache on their own daemon thread; a failed or slow request never
reaches the tick loop, the previous label (or Round Robin) simply stays
in place.

Implementations
---------------
* :class:`StaticLabelSource`   fixed label, no thread (tests, offline runs)
* :class:`HttpLabelSource`     ``POST /api/predict`` via :mod:`requests`
* :class:`ModelLabelSource`    in-process predictor callable
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import requests

from sim.types import SchedulingLabel

log = logging.getLogger("label_source")

RequestFactory = Callable[[], Dict[str, Any]]


def default_request() -> Dict[str, Any]:
    """Prediction payload used until a simulation binds its own factory."""
    ahead = datetime.now(timezone.utc) + timedelta(seconds=10)
    return {
        "timestamp": ahead.isoformat(),
        "cars_present": 0,
        "emergency_vehicle": 0,
    }


class SchedulingLabelSource(ABC):
    """Cached, non-blocking access to the current scheduling label."""

    def __init__(self, default: SchedulingLabel = SchedulingLabel.ROUND_ROBIN) -> None:
        self._default = default
        self._label = default
        self._predictions = 0
        self._generation = 0
        self._lock = threading.Lock()
        self._request_factory: RequestFactory = default_request

    def current_label(self) -> SchedulingLabel:
        with self._lock:
            return self._label

    @property
    def predictions(self) -> int:
        """Number of labels successfully received since the last reset."""
        with self._lock:
            return self._predictions

    def bind(self, factory: RequestFactory) -> None:
        """Install the callable that builds each prediction payload."""
        self._request_factory = factory

    def reset(self) -> None:
        """Forget the cached label and the prediction counter.

        Answers to requests issued before the reset are discarded.
        """
        with self._lock:
            self._generation += 1
            self._label = self._default
            self._predictions = 0

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def _current_generation(self) -> int:
        with self._lock:
            return self._generation

    def _store(self, label: SchedulingLabel, generation: Optional[int] = None) -> bool:
        """Cache *label*; False when a reset happened since *generation*."""
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._label = label
            self._predictions += 1
            return True


class StaticLabelSource(SchedulingLabelSource):
    """Always returns the label it was built with."""

    def __init__(self, label: SchedulingLabel = SchedulingLabel.ROUND_ROBIN) -> None:
        super().__init__(default=label)

    def set_label(self, label: SchedulingLabel) -> None:
        self._store(label)


class PollingLabelSource(SchedulingLabelSource):
    """Base class for sources that refresh on a background thread.

    Parameters
    ----------
    interval_s : float
        Seconds between two refreshes.
    """

    def __init__(self, interval_s: float = 10.0) -> None:
        super().__init__()
        self.interval_s = interval_s
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @abstractmethod
    def fetch(self, payload: Dict[str, Any]) -> Optional[str]:
        """Return the raw label for *payload*, or ``None`` for no answer."""

    def refresh(self) -> bool:
        """Fetch once and update the cache; True when a label was stored.

        Every failure is logged and swallowed here so the caller keeps
        running with the previous label.
        """
        generation = self._current_generation()
        try:
            payload = self._request_factory()
            raw = self.fetch(payload)
        except Exception as exc:
            log.warning("Prediction request failed: %s", exc)
            return False

        label = SchedulingLabel.parse(raw)
        if label is None:
            log.warning("Ignoring unknown scheduling label %r", raw)
            return False
        if not self._store(label, generation):
            log.info("Discarding %s, source was reset during the request", label.value)
            return False
        log.info(
            "ML prediction: %s (%s cars predicted)",
            label.value, payload.get("cars_present"),
        )
        return True

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name=type(self).__name__
        )
        self._thread.start()
        log.info("%s polling every %.1f s", type(self).__name__, self.interval_s)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            self.refresh()


class HttpLabelSource(PollingLabelSource):
    """Polls ``POST {base_url}/api/predict``.

    Parameters
    ----------
    base_url : str
        Backend root, e.g. ``http://127.0.0.1:8000``.
    timeout_s : float
        Per-request timeout handed to :mod:`requests`.
    session : requests.Session or None
        Reused HTTP session; a private one is created when omitted.
    """

    def __init__(
        self,
        base_url: str,
        interval_s: float = 10.0,
        timeout_s: float = 2.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(interval_s=interval_s)
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def fetch(self, payload: Dict[str, Any]) -> Optional[str]:
        resp = self._session.post(
            f"{self.base_url}/api/predict", json=payload, timeout=self.timeout_s
        )
        resp.raise_for_status()
        body = resp.json()
        if not body.get("success", True):
            log.info("Backend answered with fallback label %s", body.get("scheduling_model"))
        return body.get("scheduling_model")


class ModelLabelSource(PollingLabelSource):
    """Asks an in-process predictor instead of going over HTTP.

    *predict* receives the prediction payload and returns a label string.
    """

    def __init__(
        self,
        predict: Callable[[Dict[str, Any]], Optional[str]],
        interval_s: float = 10.0,
    ) -> None:
        super().__init__(interval_s=interval_s)
        self._predict = predict

    def fetch(self, payload: Dict[str, Any]) -> Optional[str]:
        return self._predict(payload)
