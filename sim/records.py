#!/usr/bin/env python3
"""
sim/records.py
==============
Immutable domain records produced by the simulation core and the
read-only snapshot handed to renderers and logging collaborators.

Records stay typed inside the core; :meth:`as_dict` is the only place
they become plain mappings (JSON, bus payloads, HTTP bodies).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from sim.types import ViolationType


@dataclass(frozen=True)
class ViolationRecord:
    """A single rule violation, recorded at most once per vehicle."""

    type: ViolationType
    vehicle_id: str
    timestamp: float
    direction: str
    speed: Optional[float] = None
    limit: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "vehicle_id": self.vehicle_id,
            "timestamp": self.timestamp,
            "direction": self.direction,
        }
        if self.type is ViolationType.SPEEDING:
            data["speed"] = self.speed
            data["limit"] = self.limit
        return data


@dataclass(frozen=True)
class AccidentRecord:
    """A collision between two vehicles.

    ``clear_at`` is the simulation time (ms) at which both wrecked
    vehicles are removed and the light hold is released.
    """

    id: str
    vehicles: Tuple[str, str]
    location: Tuple[float, float]
    timestamp: float
    directions: Tuple[str, str]
    clear_at: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vehicles": list(self.vehicles),
            "location": {"x": self.location[0], "y": self.location[1]},
            "timestamp": self.timestamp,
            "directions": list(self.directions),
        }


@dataclass(frozen=True)
class SimulationStats:
    """Derived counters, recomputed at the end of every tick."""

    total_vehicles: int = 0
    vehicles_passed: int = 0
    emergency_vehicles: int = 0
    current_waiting: int = 0
    rule_violations: int = 0
    speeding_violations: int = 0
    red_light_violations: int = 0
    accidents: int = 0
    ml_predictions: int = 0
    average_wait_time: float = 0.0
    traffic_efficiency: float = 100.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LightView:
    """Read-only copy of one traffic light for rendering."""

    direction: str
    x: float
    y: float
    state: str
    timer: float
    car_count: int
    ml_weight: float
    remaining_ms: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SimulationSnapshot:
    """Everything a renderer or logger needs after one tick."""

    time_ms: float
    running: bool
    scheduling_label: str
    current_green: int
    vehicles: Tuple[Dict[str, Any], ...] = ()
    lights: Tuple[LightView, ...] = ()
    violations: Tuple[ViolationRecord, ...] = ()
    accidents: Tuple[AccidentRecord, ...] = ()
    pending_accidents: Tuple[str, ...] = ()
    stats: SimulationStats = field(default_factory=SimulationStats)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "time_ms": self.time_ms,
            "running": self.running,
            "scheduling_label": self.scheduling_label,
            "current_green": self.current_green,
            "vehicles": [dict(v) for v in self.vehicles],
            "lights": [light.as_dict() for light in self.lights],
            "violations": [v.as_dict() for v in self.violations],
            "accidents": [a.as_dict() for a in self.accidents],
            "pending_accidents": list(self.pending_accidents),
            "stats": self.stats.as_dict(),
        }
