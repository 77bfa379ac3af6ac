#!/usr/bin/env python3
"""
sim/sim_bridge.py
=================
Background-thread driver tying :mod:`sim.world`, the scheduling-label
source and the :class:`bus.event_bus.EventBus` together.  The UI polls
the bridge for the latest snapshot without blocking.

Public API consumed by :mod:`ui.pygame_view` and :mod:`main`
------------------------------------------------------------
* ``get_snapshot()``               -> ``SimulationSnapshot``
* ``start_simulation()``           -> ``None``
* ``stop_simulation()``            -> ``None``
* ``reset_simulation()``           -> ``None``
* ``spawn(direction, emergency)``  -> ``Optional[str]``
* ``step(delta_ms)``               -> ``None``
"""

from __future__ import annotations

import threading
import time
import logging
from typing import Any, Dict, Optional

from bus.event_bus import EventBus
from bus.utils import TOPIC_ACCIDENT, TOPIC_SAMPLE, TOPIC_VIOLATION, to_payload
from sim.label_source import SchedulingLabelSource
from sim.records import AccidentRecord, SimulationSnapshot
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, Movement
from sim.world import Simulation

log = logging.getLogger("sim_bridge")

# Longest tick the loop will feed the core after a stall (ms).
_MAX_DELTA_MS = 250.0


class SimBridge:
    """Simulation driver running in a background thread.

    The thread measures the elapsed wall time with
    :func:`time.perf_counter` and calls :meth:`Simulation.advance` at
    roughly ``tick_rate_hz``.  New violation and accident records are
    published on the bus; a labelled data sample is published every
    ``data_log_interval_s`` while the simulation runs.

    Parameters
    ----------
    tick_rate_hz : float
        Target ticks per second.
    policy : SimulationPolicy or None
        Tunable constants.
    label_source : SchedulingLabelSource or None
        Scheduling-label collaborator; started and stopped with the bridge.
    bus : EventBus or None
        Record transport.  A private bus is created when omitted.
    random_seed : int or None
        Seed for reproducibility.
    data_log_interval_s : float
        Seconds between two ``telemetry.sample`` messages (0 disables).
    """

    def __init__(
        self,
        tick_rate_hz: float = 60.0,
        policy: Optional[SimulationPolicy] = None,
        label_source: Optional[SchedulingLabelSource] = None,
        bus: Optional[EventBus] = None,
        random_seed: Optional[int] = None,
        data_log_interval_s: float = 5.0,
    ) -> None:
        self._tick_rate_hz = tick_rate_hz
        self._data_log_interval_s = data_log_interval_s
        self._sim = Simulation(policy=policy, label_source=label_source, seed=random_seed)
        self._sim.label_source.bind(self._prediction_request)
        self.bus = bus or EventBus()

        self._lock = threading.Lock()
        self._snapshot: SimulationSnapshot = self._sim.snapshot()
        self._since_sample_s = 0.0

        self._thread: Optional[threading.Thread] = None
        self._running = False

    @property
    def simulation(self) -> Simulation:
        return self._sim

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, threaded: bool = True) -> None:
        """Start the label source and, unless *threaded* is False, the tick thread.

        A host that calls :meth:`step` from its own frame loop passes
        ``threaded=False``.
        """
        if self._running:
            return
        self._running = True
        self._sim.label_source.start()
        if not threaded:
            log.info("SimBridge started, ticks driven by the host loop")
            return
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="SimBridge"
        )
        self._thread.start()
        log.info("SimBridge started at %.1f Hz", self._tick_rate_hz)

    def stop(self) -> None:
        """Signal the thread to stop and wait for it to join."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
        self._thread = None
        self._sim.label_source.stop()
        log.info("SimBridge stopped")

    # ── Commands ──────────────────────────────────────────────────────────────

    def start_simulation(self) -> None:
        with self._lock:
            self._sim.start()
            self._snapshot = self._sim.snapshot()

    def stop_simulation(self) -> None:
        with self._lock:
            self._sim.stop()
            self._snapshot = self._sim.snapshot()

    def reset_simulation(self) -> None:
        with self._lock:
            self._sim.reset()
            self._since_sample_s = 0.0
            self._snapshot = self._sim.snapshot()

    def spawn(
        self,
        direction: Direction,
        emergency: bool = False,
        movement: Movement = Movement.STRAIGHT,
    ) -> Optional[str]:
        """Queue a manual spawn; returns the new vehicle id or ``None``."""
        with self._lock:
            if emergency:
                vehicle = self._sim.spawn_emergency_vehicle(direction)
            else:
                vehicle = self._sim.spawn_vehicle(direction, movement)
            self._snapshot = self._sim.snapshot()
        return vehicle.id if vehicle else None

    # ── Queries ───────────────────────────────────────────────────────────────

    def get_snapshot(self) -> SimulationSnapshot:
        with self._lock:
            return self._snapshot

    def is_running(self) -> bool:
        with self._lock:
            return self._sim.running

    def bus_metrics(self) -> Dict[str, Any]:
        return self.bus.metrics.report()

    # ── Tick ──────────────────────────────────────────────────────────────────

    def step(self, delta_ms: float) -> None:
        """Advance the simulation once and publish what it produced."""
        with self._lock:
            records = self._sim.advance(delta_ms)
            sample = None
            if self._sim.running and self._data_log_interval_s > 0:
                self._since_sample_s += delta_ms / 1000.0
                if self._since_sample_s >= self._data_log_interval_s:
                    self._since_sample_s = 0.0
                    sample = self._sim.data_sample()
            snapshot = self._sim.snapshot()
            self._snapshot = snapshot

        for record in records:
            topic = TOPIC_ACCIDENT if isinstance(record, AccidentRecord) else TOPIC_VIOLATION
            self.bus.publish(topic=topic, sender="sim", payload=to_payload(record))
        if sample is not None:
            self.bus.publish(topic=TOPIC_SAMPLE, sender="sim", payload=sample)
            log.info(
                "Data logged: %d cars, emergency %s, model %s",
                sample["cars_present"],
                "yes" if sample["emergency_vehicle"] else "no",
                sample["scheduling_model"],
            )

    def _prediction_request(self) -> Dict[str, Any]:
        with self._lock:
            return self._sim.prediction_request()

    def _loop(self) -> None:
        period = 1.0 / self._tick_rate_hz
        last = time.perf_counter()
        while self._running:
            t0 = time.perf_counter()
            delta_ms = min(_MAX_DELTA_MS, (t0 - last) * 1000.0)
            last = t0
            try:
                self.step(delta_ms)
            except Exception:
                log.exception("SimBridge tick error")
            time.sleep(max(0.0, period - (time.perf_counter() - t0)))
