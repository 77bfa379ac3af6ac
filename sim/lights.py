#!/usr/bin/env python3
"""
sim/lights.py
=============
Four-way traffic-light controller.

Each approach owns one :class:`TrafficLight`; the
:class:`LightController` keeps exactly one of them green and cycles
``green -> yellow -> red`` with a dynamic green duration.  The next green
approach is chosen by :func:`sim.scheduling.select_next_direction`.

Two overrides sit on top of the normal cycle:

* **Emergency preemption**: an emergency vehicle close to the centre
  whose approach is not green forces all lights red, then its approach
  green, resetting the phase timer.
* **Accident hold**: :meth:`LightController.hold` forces all four lights
  red until every outstanding hold is released, after which the green
  approach that was active before the first hold is restored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from sim.physics import distance_to_center
from sim.records import LightView
from sim.scheduling import scheduling_weights, select_next_direction
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, LightState
from sim.vehicles import Vehicle, VehicleStore

log = logging.getLogger("lights")


@dataclass
class TrafficLight:
    """Mutable state of a single approach light.

    Attributes
    ----------
    direction : Direction
        Approach the light controls.
    x, y : float
        Fixed screen anchor used by renderers.
    timer : float
        Milliseconds spent in the current yellow phase.
    car_count : int
        Vehicles currently stopped on the approach.
    ml_weight : float
        Scheduling weight from the current label.
    """

    direction: Direction
    x: float
    y: float
    state: LightState = LightState.RED
    timer: float = 0.0
    car_count: int = 0
    ml_weight: float = 1.0

    @property
    def label(self) -> str:
        return self.direction.label


def _light_anchors(policy: SimulationPolicy) -> Dict[Direction, tuple]:
    cx, cy = policy.center_x, policy.center_y
    return {
        Direction.NORTH: (cx - 15.0, cy - 80.0),
        Direction.EAST: (cx + 80.0, cy - 15.0),
        Direction.SOUTH: (cx + 15.0, cy + 80.0),
        Direction.WEST: (cx - 80.0, cy + 15.0),
    }


class LightController:
    """State machine over the four approach lights.

    Parameters
    ----------
    policy : SimulationPolicy or None
        Timing constants; defaults to :class:`SimulationPolicy`.
    initial_green : Direction
        Approach that starts green.
    """

    def __init__(
        self,
        policy: Optional[SimulationPolicy] = None,
        initial_green: Direction = Direction.NORTH,
    ) -> None:
        self.policy = policy or SimulationPolicy()
        self._initial_green = initial_green
        self.lights: List[TrafficLight] = []
        self.current_green = initial_green
        self.phase_elapsed = 0.0
        self._holds: Set[str] = set()
        self._held_green: Optional[Direction] = None
        self.reset()

    def reset(self) -> None:
        """Recreate all four lights with only the initial approach green."""
        anchors = _light_anchors(self.policy)
        self.lights = [
            TrafficLight(direction=d, x=anchors[d][0], y=anchors[d][1])
            for d in Direction
        ]
        self.current_green = self._initial_green
        self.lights[self.current_green].state = LightState.GREEN
        self.phase_elapsed = 0.0
        self._holds = set()
        self._held_green = None

    # ── Queries ───────────────────────────────────────────────────────────────

    def state_of(self, direction: Direction) -> LightState:
        return self.lights[direction].state

    def green_lights(self) -> List[Direction]:
        return [l.direction for l in self.lights if l.state is LightState.GREEN]

    @property
    def on_hold(self) -> bool:
        return bool(self._holds)

    def car_counts(self) -> List[int]:
        return [light.car_count for light in self.lights]

    def green_duration(self, emergency_on_green: bool = False) -> float:
        """Dynamic green duration of the current approach, in ms."""
        p = self.policy
        light = self.lights[self.current_green]
        duration = (
            p.min_green_ms
            + light.car_count * p.queue_bonus_ms
            + light.ml_weight * p.weight_bonus_ms
        )
        if emergency_on_green:
            duration += p.emergency_green_bonus_ms
        return min(p.max_green_ms, duration)

    def remaining_ms(
        self,
        light: TrafficLight,
        emergency_on_green: bool = False,
    ) -> float:
        """Time left in *light*'s current phase (0 for red)."""
        if light.state is LightState.GREEN:
            return max(0.0, self.green_duration(emergency_on_green) - self.phase_elapsed)
        if light.state is LightState.YELLOW:
            return max(0.0, self.policy.yellow_ms - light.timer)
        return 0.0

    def views(self, emergency_on_green: bool = False) -> List[LightView]:
        return [
            LightView(
                direction=light.label,
                x=light.x,
                y=light.y,
                state=light.state.value,
                timer=light.timer,
                car_count=light.car_count,
                ml_weight=light.ml_weight,
                remaining_ms=self.remaining_ms(light, emergency_on_green),
            )
            for light in self.lights
        ]

    # ── Transitions ───────────────────────────────────────────────────────────

    def switch_light(self, direction: Direction) -> None:
        """Force every light red, then *direction* green; reset the phase."""
        for light in self.lights:
            light.state = LightState.RED
            light.timer = 0.0
        self.lights[direction].state = LightState.GREEN
        self.current_green = Direction(direction)
        self.phase_elapsed = 0.0
        log.info("%s light is now GREEN", self.lights[direction].label)

    def switch_to_next(self, vehicles: VehicleStore) -> Direction:
        """End the yellow phase and hand green to the best approach."""
        current = self.lights[self.current_green]
        current.state = LightState.RED
        current.timer = 0.0

        nxt = select_next_direction(
            current=int(self.current_green),
            car_counts=self.car_counts(),
            weights=[light.ml_weight for light in self.lights],
            emergency_flags=[vehicles.has_emergency(d) for d in Direction],
            average_waits=[vehicles.average_wait_time(d) for d in Direction],
            policy=self.policy,
        )
        self.current_green = nxt
        self.lights[nxt].state = LightState.GREEN
        self.phase_elapsed = 0.0
        light = self.lights[nxt]
        log.info(
            "Switched to %s (%d vehicles, weight %.1f)",
            light.label, light.car_count, light.ml_weight,
        )
        return nxt

    def hold(self, hold_id: str) -> None:
        """Force all lights red until :meth:`release` is called for *hold_id*."""
        if not self._holds:
            self._held_green = self.current_green
        self._holds.add(hold_id)
        for light in self.lights:
            light.state = LightState.RED
            light.timer = 0.0
        log.warning("All lights RED (hold %s)", hold_id)

    def release(self, hold_id: str) -> None:
        """Drop *hold_id*; restore the remembered green once no holds remain."""
        if hold_id not in self._holds:
            return
        self._holds.discard(hold_id)
        if self._holds:
            return
        restored = self._held_green if self._held_green is not None else self.current_green
        self._held_green = None
        self.switch_light(restored)
        log.info("Hold released, %s restored", self.lights[restored].label)

    # ── Tick ──────────────────────────────────────────────────────────────────

    def emergency_candidate(self, vehicles: Iterable[Vehicle]) -> Optional[Direction]:
        """First emergency vehicle within the preemption radius, by store order."""
        for vehicle in vehicles:
            if not vehicle.is_emergency or vehicle.wrecked:
                continue
            if distance_to_center(vehicle.x, vehicle.y, self.policy) < self.policy.preemption_radius:
                return vehicle.direction
        return None

    def update(self, delta_ms: float, vehicles: VehicleStore, label: object) -> None:
        """Advance the controller by *delta_ms*.

        Recomputes queue counts and weights, then applies emergency
        preemption or the normal green/yellow/red cycle.  Nothing but the
        bookkeeping runs while a hold is active.
        """
        for light in self.lights:
            light.car_count = len(vehicles.waiting(light.direction))
        weights = scheduling_weights(self.car_counts(), label)
        for light, weight in zip(self.lights, weights):
            light.ml_weight = weight

        if self._holds:
            return

        emergency_dir = self.emergency_candidate(vehicles)
        if emergency_dir is not None and self.lights[emergency_dir].state is not LightState.GREEN:
            log.warning("Emergency override: switching to %s", emergency_dir.label)
            self.switch_light(emergency_dir)
            return

        self.phase_elapsed += delta_ms
        current = self.lights[self.current_green]
        duration = self.green_duration(vehicles.has_emergency(self.current_green))

        if current.state is LightState.GREEN and self.phase_elapsed >= duration:
            current.state = LightState.YELLOW
            current.timer = 0.0
            log.info("%s switching to yellow", current.label)

        if current.state is LightState.YELLOW:
            current.timer += delta_ms
            if current.timer >= self.policy.yellow_ms:
                self.switch_to_next(vehicles)
