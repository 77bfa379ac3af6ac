#!/usr/bin/env python3
"""
sim/vehicles.py
===============
Vehicle entity, the ordered :class:`VehicleStore`, and per-tick
kinematics.

A vehicle drives in a straight line from its spawn point to its exit
point at ``speed`` pixels per tick.  It halts only when its approach light
is not green and it sits inside the approach window; emergency vehicles
never halt for lights.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sim.physics import in_approach_window
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, LightState, Movement


@dataclass
class Vehicle:
    """A single car or emergency vehicle in transit.

    Attributes
    ----------
    id : str
        Unique identifier (e.g. ``CAR_007``).
    x, y : float
        Canvas position in pixels.
    target_x, target_y : float
        Exit point the vehicle drives toward.
    angle : float
        Heading in radians (0 = east, y axis pointing down).
    speed : float
        Pixels per tick.
    direction : Direction
        Approach the vehicle travels on.
    movement : Movement
        Intended manoeuvre.
    wait_time : float
        Milliseconds spent stopped at a light.
    original_speed : float
        Cruise speed at spawn; the safety monitor only ever lowers
        ``speed`` below it.
    """

    id: str
    x: float
    y: float
    target_x: float
    target_y: float
    direction: Direction
    movement: Movement = Movement.STRAIGHT
    speed: float = 1.5
    angle: float = 0.0
    original_speed: float = 0.0
    is_emergency: bool = False
    stopped: bool = False
    has_violated_rules: bool = False
    wrecked: bool = False
    wait_time: float = 0.0

    def __post_init__(self) -> None:
        if self.original_speed <= 0.0:
            self.original_speed = self.speed

    @property
    def direction_name(self) -> str:
        return self.direction.label

    def remaining_distance(self) -> float:
        return math.hypot(self.target_x - self.x, self.target_y - self.y)

    @property
    def braking(self) -> bool:
        """Held at a light or slowed below the speed it spawned with."""
        if self.wrecked:
            return False
        return self.stopped or self.speed < self.original_speed

    def as_dict(self) -> Dict[str, Any]:
        """Serialisable mapping for the UI and the logging backend."""
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "target_x": self.target_x,
            "target_y": self.target_y,
            "angle": self.angle,
            "speed": self.speed,
            "original_speed": self.original_speed,
            "braking": self.braking,
            "direction": self.direction_name,
            "movement": self.movement.value,
            "is_emergency": self.is_emergency,
            "stopped": self.stopped,
            "has_violated_rules": self.has_violated_rules,
            "wrecked": self.wrecked,
            "wait_time": self.wait_time,
        }


class VehicleStore:
    """Ordered collection of live vehicles.

    Insertion order is preserved; it decides which emergency vehicle
    preempts first and the pair order used by the safety scan.
    """

    def __init__(self) -> None:
        self._vehicles: List[Vehicle] = []

    def __iter__(self) -> Iterator[Vehicle]:
        return iter(self._vehicles)

    def __len__(self) -> int:
        return len(self._vehicles)

    def all(self) -> List[Vehicle]:
        return list(self._vehicles)

    def add(self, vehicle: Vehicle) -> None:
        self._vehicles.append(vehicle)

    def remove(self, vehicle: Vehicle) -> None:
        self._vehicles = [v for v in self._vehicles if v is not vehicle]

    def remove_ids(self, vehicle_ids: Sequence[str]) -> int:
        """Drop every vehicle whose id is in *vehicle_ids*; return how many."""
        before = len(self._vehicles)
        wanted = set(vehicle_ids)
        self._vehicles = [v for v in self._vehicles if v.id not in wanted]
        return before - len(self._vehicles)

    def clear(self) -> None:
        self._vehicles = []

    def in_direction(self, direction: Direction) -> List[Vehicle]:
        return [v for v in self._vehicles if v.direction is direction]

    def waiting(self, direction: Optional[Direction] = None) -> List[Vehicle]:
        """Stopped vehicles, optionally restricted to one approach."""
        return [
            v for v in self._vehicles
            if v.stopped and (direction is None or v.direction is direction)
        ]

    def average_wait_time(self, direction: Optional[Direction] = None) -> float:
        waiting = self.waiting(direction)
        if not waiting:
            return 0.0
        return sum(v.wait_time for v in waiting) / len(waiting)

    def has_emergency(self, direction: Optional[Direction] = None) -> bool:
        return any(
            v.is_emergency and (direction is None or v.direction is direction)
            for v in self._vehicles
        )


# ── Kinematics ────────────────────────────────────────────────────────────────

def should_stop(
    vehicle: Vehicle,
    light_state: LightState,
    policy: SimulationPolicy,
) -> bool:
    """Stop condition for one vehicle against its approach light."""
    if light_state is LightState.GREEN:
        return False
    if vehicle.is_emergency:
        return False
    return in_approach_window(vehicle.direction, vehicle.x, vehicle.y, policy)


def step_vehicle(
    vehicle: Vehicle,
    light_state: LightState,
    delta_ms: float,
    policy: SimulationPolicy,
) -> bool:
    """Advance *vehicle* by one tick.

    Returns
    -------
    bool
        True once the vehicle has reached its exit point and should be
        removed from the store.
    """
    vehicle.stopped = should_stop(vehicle, light_state, policy)
    if vehicle.stopped:
        vehicle.wait_time += delta_ms
        return False

    dist = vehicle.remaining_distance()
    if dist <= policy.arrival_epsilon:
        return True

    dx = vehicle.target_x - vehicle.x
    dy = vehicle.target_y - vehicle.y
    vehicle.x += dx / dist * vehicle.speed
    vehicle.y += dy / dist * vehicle.speed
    vehicle.angle = math.atan2(dy, dx)
    return False
