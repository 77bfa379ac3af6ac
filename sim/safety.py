#!/usr/bin/env python3
"""
sim/safety.py
=============
Per-tick safety scan over the vehicle store.

The :class:`SafetyMonitor` performs, in order:

1. **Violation detection**: speeding and red-light running, each recorded
   at most once per vehicle (``has_violated_rules`` is sticky).
2. **Pair scan** over every unordered pair in store order:

   a. near-collision braking (both vehicles, re-applied every tick),
   b. collision detection (one :class:`AccidentRecord` per pair),
   c. car-following for same-approach pairs.

3. **Clearance**: wrecked vehicles are removed ``accident_clearance_ms``
   after the collision, and the light hold for that accident is released.

Clearance is scheduled on the simulation clock, so stopping or resetting
the simulation never leaves a pending callback behind.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Set

from sim.lights import LightController
from sim.physics import distance, in_intersection, is_ahead
from sim.records import AccidentRecord, ViolationRecord
from sim.traffic_policy import SimulationPolicy
from sim.types import LightState, ViolationType
from sim.vehicles import Vehicle, VehicleStore

log = logging.getLogger("safety")


class SafetyMonitor:
    """Violation, braking, following and collision logic.

    Parameters
    ----------
    policy : SimulationPolicy or None
        Thresholds; defaults to :class:`SimulationPolicy`.
    """

    def __init__(self, policy: Optional[SimulationPolicy] = None) -> None:
        self.policy = policy or SimulationPolicy()
        self.violations: List[ViolationRecord] = []
        self.accidents: List[AccidentRecord] = []
        self._pending: List[AccidentRecord] = []
        self._active_pairs: Set[FrozenSet[str]] = set()
        self._accident_seq = 0

    def reset(self) -> None:
        self.violations = []
        self.accidents = []
        self._pending = []
        self._active_pairs = set()
        self._accident_seq = 0

    @property
    def pending_clearances(self) -> List[AccidentRecord]:
        return list(self._pending)

    @property
    def speeding_count(self) -> int:
        return sum(1 for v in self.violations if v.type is ViolationType.SPEEDING)

    @property
    def red_light_count(self) -> int:
        return sum(
            1 for v in self.violations
            if v.type is ViolationType.RED_LIGHT_VIOLATION
        )

    # ── Violations ────────────────────────────────────────────────────────────

    def detect_violations(
        self,
        vehicles: VehicleStore,
        lights: LightController,
        now_ms: float,
    ) -> List[ViolationRecord]:
        """Flag speeding and red-light running; return the new records."""
        limit = self.policy.speed_limit
        found: List[ViolationRecord] = []
        for vehicle in vehicles:
            if vehicle.has_violated_rules:
                continue

            if vehicle.speed > limit:
                vehicle.has_violated_rules = True
                record = ViolationRecord(
                    type=ViolationType.SPEEDING,
                    vehicle_id=vehicle.id,
                    timestamp=now_ms,
                    direction=vehicle.direction_name,
                    speed=vehicle.speed,
                    limit=limit,
                )
                found.append(record)
                log.warning(
                    "VIOLATION: %s speeding at %.1f in %s",
                    vehicle.id, vehicle.speed, vehicle.direction_name,
                )
                continue

            if (
                not vehicle.is_emergency
                and lights.state_of(vehicle.direction) is LightState.RED
                and in_intersection(vehicle.x, vehicle.y, self.policy)
            ):
                vehicle.has_violated_rules = True
                record = ViolationRecord(
                    type=ViolationType.RED_LIGHT_VIOLATION,
                    vehicle_id=vehicle.id,
                    timestamp=now_ms,
                    direction=vehicle.direction_name,
                )
                found.append(record)
                log.error(
                    "VIOLATION: %s ran red light from %s",
                    vehicle.id, vehicle.direction_name,
                )

        self.violations.extend(found)
        return found

    # ── Pair scan ─────────────────────────────────────────────────────────────

    def _brake(self, vehicle: Vehicle) -> None:
        if vehicle.wrecked:
            return
        p = self.policy
        vehicle.speed = max(p.min_speed, vehicle.speed * p.brake_factor)

    def _follow(self, leader: Vehicle, follower: Vehicle) -> None:
        if follower.wrecked:
            return
        p = self.policy
        cap = max(p.min_speed, leader.speed * p.following_factor)
        follower.speed = min(follower.speed, cap)

    def scan_pairs(
        self,
        vehicles: VehicleStore,
        lights: LightController,
        now_ms: float,
    ) -> List[AccidentRecord]:
        """Run braking, collision and following over all pairs.

        Within a pair, braking is applied before the following cap.
        Returns the accidents detected during this scan.
        """
        p = self.policy
        found: List[AccidentRecord] = []
        ordered = vehicles.all()
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                gap = distance(first, second)

                if gap < p.safety_distance:
                    self._brake(first)
                    self._brake(second)
                    if gap < p.collision_distance:
                        pair = frozenset((first.id, second.id))
                        if pair not in self._active_pairs:
                            found.append(self._record_accident(first, second, lights, now_ms))

                if first.direction is second.direction and gap < p.following_distance:
                    if is_ahead(first.direction, first, second):
                        self._follow(first, second)
                    elif is_ahead(first.direction, second, first):
                        self._follow(second, first)
        return found

    def _record_accident(
        self,
        first: Vehicle,
        second: Vehicle,
        lights: LightController,
        now_ms: float,
    ) -> AccidentRecord:
        self._accident_seq += 1
        record = AccidentRecord(
            id=f"ACC_{self._accident_seq:03d}",
            vehicles=(first.id, second.id),
            location=((first.x + second.x) / 2.0, (first.y + second.y) / 2.0),
            timestamp=now_ms,
            directions=(first.direction_name, second.direction_name),
            clear_at=now_ms + self.policy.accident_clearance_ms,
        )
        self.accidents.append(record)
        self._pending.append(record)
        self._active_pairs.add(frozenset(record.vehicles))

        for vehicle in (first, second):
            vehicle.speed = 0.0
            vehicle.wrecked = True
        lights.hold(record.id)

        log.error(
            "ACCIDENT %s: %s (%s) and %s (%s) collided",
            record.id, first.id, first.direction_name,
            second.id, second.direction_name,
        )
        return record

    # ── Clearance ─────────────────────────────────────────────────────────────

    def clear_due(
        self,
        vehicles: VehicleStore,
        lights: LightController,
        now_ms: float,
    ) -> List[AccidentRecord]:
        """Remove wrecks whose clearance time has come; release their holds."""
        due = [a for a in self._pending if now_ms >= a.clear_at]
        if not due:
            return []
        self._pending = [a for a in self._pending if now_ms < a.clear_at]
        for accident in due:
            removed = vehicles.remove_ids(accident.vehicles)
            self._active_pairs.discard(frozenset(accident.vehicles))
            lights.release(accident.id)
            log.info(
                "Accident %s cleared (%d vehicles removed), traffic resuming",
                accident.id, removed,
            )
        return due

    def check(
        self,
        vehicles: VehicleStore,
        lights: LightController,
        now_ms: float,
    ) -> List[object]:
        """Violations followed by the pair scan; returns all new records."""
        records: List[object] = list(self.detect_violations(vehicles, lights, now_ms))
        records.extend(self.scan_pairs(vehicles, lights, now_ms))
        return records
