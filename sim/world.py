#!/usr/bin/env python3
"""
sim/world.py
============
Single-intersection traffic simulation.

:class:`Simulation` owns every piece of mutable state (vehicle store,
light controller, safety monitor, clocks and counters) and exposes one
tick entry point, :meth:`Simulation.advance`.  Any host loop can drive
it: the threaded :class:`sim.sim_bridge.SimBridge`, the pygame view, or
a unit test stepping a fixed ``delta_ms``.

Order of work inside one tick:

1. read the cached scheduling label,
2. clear accidents whose clearance time has come,
3. safety checks (violations, braking, collisions, following),
4. auto-spawn,
5. light update,
6. vehicle kinematics and arrivals,
7. stats.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from sim.label_source import SchedulingLabelSource, StaticLabelSource
from sim.lights import LightController
from sim.physics import spawn_geometry, spawn_overhang
from sim.records import (
    AccidentRecord,
    SimulationSnapshot,
    SimulationStats,
    ViolationRecord,
)
from sim.safety import SafetyMonitor
from sim.scheduling import determine_scheduling_label
from sim.traffic_policy import SimulationPolicy, efficiency_score
from sim.types import Direction, LightState, Movement, SchedulingLabel
from sim.vehicles import Vehicle, VehicleStore, step_vehicle

log = logging.getLogger("world")

Record = Union[ViolationRecord, AccidentRecord]


class Simulation:
    """Four-way intersection aggregate.

    Parameters
    ----------
    policy : SimulationPolicy or None
        Tunable constants; uses defaults when *None*.
    label_source : SchedulingLabelSource or None
        Where the scheduling label comes from.  A Round Robin
        :class:`StaticLabelSource` is used when omitted.
    seed : int or None
        Random seed for spawn directions, movements and speeds.
    """

    def __init__(
        self,
        policy: Optional[SimulationPolicy] = None,
        label_source: Optional[SchedulingLabelSource] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.policy = policy or SimulationPolicy()
        self.label_source = label_source or StaticLabelSource()
        self._seed = seed
        self._rng = random.Random(seed)
        # Payloads are built from other threads; keep them off the spawn stream.
        self._payload_rng = random.Random(seed)

        self.vehicles = VehicleStore()
        self.lights = LightController(self.policy)
        self.safety = SafetyMonitor(self.policy)

        self.running = False
        self.time_ms = 0.0
        self.label = SchedulingLabel.ROUND_ROBIN
        self.stats = SimulationStats()

        self._next_id = 0
        self._total_vehicles = 0
        self._vehicles_passed = 0
        self._emergency_vehicles = 0
        self._spawn_elapsed = 0.0
        self._emergency_elapsed = 0.0

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        log.info("Simulation started")

    def stop(self) -> None:
        """Halt ticking; calling it again is a no-op."""
        if not self.running:
            return
        self.running = False
        log.info("Simulation stopped")

    def reset(self) -> None:
        """Stop, then reinitialise every piece of state."""
        self.stop()
        self._rng = random.Random(self._seed)
        self._payload_rng = random.Random(self._seed)
        self.vehicles.clear()
        self.lights.reset()
        self.safety.reset()
        self.label_source.reset()
        self.time_ms = 0.0
        self.label = SchedulingLabel.ROUND_ROBIN
        self._next_id = 0
        self._total_vehicles = 0
        self._vehicles_passed = 0
        self._emergency_vehicles = 0
        self._spawn_elapsed = 0.0
        self._emergency_elapsed = 0.0
        self.stats = self._compute_stats()
        log.info("Simulation reset")

    # ── Spawning ──────────────────────────────────────────────────────────────

    def spawn_vehicle(
        self,
        direction: Direction,
        movement: Movement = Movement.STRAIGHT,
    ) -> Optional[Vehicle]:
        """Manual spawn; ignored while the simulation is not running."""
        if not self.running:
            return None
        return self._spawn(Direction(direction), movement)

    def spawn_emergency_vehicle(
        self,
        direction: Optional[Direction] = None,
    ) -> Optional[Vehicle]:
        """Manual emergency spawn; random approach when *direction* is None."""
        if not self.running:
            return None
        return self._spawn_emergency(direction)

    def _spawn(self, direction: Direction, movement: Movement) -> Optional[Vehicle]:
        p = self.policy
        same_approach = self.vehicles.in_direction(direction)
        if len(same_approach) >= p.max_vehicles_per_direction:
            log.warning(
                "Cannot spawn vehicle - %s already holds %d vehicles",
                direction.label, len(same_approach),
            )
            return None

        offset = 0.0
        if same_approach:
            overhang = max(spawn_overhang(direction, v.x, v.y, p) for v in same_approach)
            offset = overhang + p.spawn_safe_distance

        x, y, tx, ty, angle = spawn_geometry(direction, movement, offset, p)
        speed = max(
            p.min_spawn_speed,
            min(p.speed_limit, p.base_speed + self._rng.random() * p.speed_jitter),
        )
        vehicle = Vehicle(
            id=f"CAR_{self._next_id:03d}",
            x=x,
            y=y,
            target_x=tx,
            target_y=ty,
            angle=angle,
            direction=direction,
            movement=movement,
            speed=speed,
        )
        self._next_id += 1
        self.vehicles.add(vehicle)
        self._total_vehicles += 1
        log.debug("Spawned %s on %s (%s)", vehicle.id, direction.label, movement.value)
        return vehicle

    def _spawn_emergency(self, direction: Optional[Direction]) -> Optional[Vehicle]:
        if direction is None:
            direction = Direction(self._rng.randrange(4))
        vehicle = self._spawn(Direction(direction), Movement.STRAIGHT)
        if vehicle is None:
            return None
        p = self.policy
        vehicle.is_emergency = True
        vehicle.speed = min(p.speed_limit * p.emergency_speed_factor,
                            vehicle.speed * p.emergency_speed_factor)
        vehicle.original_speed = vehicle.speed
        self._emergency_vehicles += 1
        log.warning("Emergency vehicle approaching from %s", vehicle.direction_name)
        return vehicle

    def _auto_spawn(self, delta_ms: float) -> None:
        p = self.policy
        if not p.auto_spawn_enabled:
            return
        self._spawn_elapsed += delta_ms
        self._emergency_elapsed += delta_ms
        if self._spawn_elapsed > p.spawn_interval_ms:
            self._spawn_elapsed = 0.0
            direction = Direction(self._rng.randrange(4))
            movement = self._rng.choice(list(Movement))
            self._spawn(direction, movement)
        if self._emergency_elapsed > p.emergency_interval_ms:
            self._emergency_elapsed = 0.0
            self._spawn_emergency(None)

    # ── Tick ──────────────────────────────────────────────────────────────────

    def _refresh_label(self) -> None:
        try:
            self.label = self.label_source.current_label()
        except Exception:
            log.exception("Label source failed, keeping %s", self.label.value)

    def advance(self, delta_ms: float) -> List[Record]:
        """Run one tick of *delta_ms* milliseconds.

        Returns the violation and accident records created during the
        tick.  Does nothing while the simulation is stopped.
        """
        if not self.running:
            return []
        delta_ms = max(0.0, float(delta_ms))
        self.time_ms += delta_ms
        now = self.time_ms

        self._refresh_label()
        self.safety.clear_due(self.vehicles, self.lights, now)
        records: List[Record] = list(self.safety.check(self.vehicles, self.lights, now))
        self._auto_spawn(delta_ms)
        self.lights.update(delta_ms, self.vehicles, self.label)
        self._update_vehicles(delta_ms)
        self.stats = self._compute_stats()
        return records

    def _update_vehicles(self, delta_ms: float) -> None:
        arrived: List[Vehicle] = []
        for vehicle in self.vehicles:
            if vehicle.wrecked:
                continue
            light_state = self.lights.state_of(vehicle.direction)
            if step_vehicle(vehicle, light_state, delta_ms, self.policy):
                arrived.append(vehicle)
        for vehicle in arrived:
            self.vehicles.remove(vehicle)
            self._vehicles_passed += 1
            log.debug("%s left the intersection", vehicle.id)

    def _compute_stats(self) -> SimulationStats:
        safety = self.safety
        violations = len(safety.violations)
        accidents = len(safety.accidents)
        return SimulationStats(
            total_vehicles=self._total_vehicles,
            vehicles_passed=self._vehicles_passed,
            emergency_vehicles=self._emergency_vehicles,
            current_waiting=len(self.vehicles.waiting()),
            rule_violations=violations,
            speeding_violations=safety.speeding_count,
            red_light_violations=safety.red_light_count,
            accidents=accidents,
            ml_predictions=self.label_source.predictions,
            average_wait_time=self.vehicles.average_wait_time(),
            traffic_efficiency=efficiency_score(
                self._total_vehicles, self._vehicles_passed, violations, accidents,
            ),
        )

    # ── Views ─────────────────────────────────────────────────────────────────

    def light_state(self, direction: Direction) -> LightState:
        return self.lights.state_of(direction)

    def snapshot(self) -> SimulationSnapshot:
        """Read-only copy of the current state for renderers and loggers."""
        emergency_on_green = self.vehicles.has_emergency(self.lights.current_green)
        return SimulationSnapshot(
            time_ms=self.time_ms,
            running=self.running,
            scheduling_label=self.label.value,
            current_green=int(self.lights.current_green),
            vehicles=tuple(v.as_dict() for v in self.vehicles),
            lights=tuple(self.lights.views(emergency_on_green)),
            violations=tuple(self.safety.violations),
            accidents=tuple(self.safety.accidents),
            pending_accidents=tuple(a.id for a in self.safety.pending_clearances),
            stats=self.stats,
        )

    # ── Collaborator payloads ─────────────────────────────────────────────────

    def data_sample(self) -> Dict[str, Any]:
        """Labelled sample for ``/api/log-data``."""
        label = determine_scheduling_label(
            total_vehicles=len(self.vehicles),
            emergency_present=self.vehicles.has_emergency(),
            car_counts=self.lights.car_counts(),
        )
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cars_present": len(self.vehicles),
            "emergency_vehicle": int(self.vehicles.has_emergency()),
            "scheduling_model": label.value,
        }

    def prediction_request(self) -> Dict[str, Any]:
        """Payload for ``/api/predict``: traffic expected ten seconds ahead."""
        ahead = datetime.now(timezone.utc) + timedelta(seconds=10)
        return {
            "timestamp": ahead.isoformat(),
            "cars_present": len(self.vehicles) + self._payload_rng.randint(0, 4),
            "emergency_vehicle": int(self.vehicles.has_emergency()),
        }
