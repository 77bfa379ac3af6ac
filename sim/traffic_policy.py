#!/usr/bin/env python3
"""
sim/traffic_policy.py
=====================
Tunable geometry, kinematic, safety and signal-timing parameters for the
intersection simulation.  Every constant lives in the frozen
:class:`SimulationPolicy` dataclass so that tests and experiments can swap
policies without touching code.

Units follow the canvas the simulation was designed for: positions in
pixels, speeds in pixels per tick, durations in milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: canvas geometry, approach geometry, kinematics, safety
    envelope, signal timing, emergency handling, spawn envelope.
    """

    # ── Canvas geometry ───────────────────────────────────────────────────
    canvas_width: float = 800.0
    canvas_height: float = 600.0

    road_width: float = 120.0
    """Width of each road; the intersection box is ``road_width`` square."""

    lane_offset: float = 15.0
    """Perpendicular offset of each lane centre from the road axis."""

    exit_margin: float = 30.0
    """How far beyond the canvas edge vehicles spawn and exit."""

    # ── Approach window ───────────────────────────────────────────────────
    stop_line_offset: float = 40.0
    """Distance from the intersection centre to each stop line."""

    approach_window: float = 80.0
    """Length of the stretch before the stop line where non-green stops."""

    # ── Kinematics ────────────────────────────────────────────────────────
    speed_limit: float = 3.0
    """Posted speed limit (pixels per tick)."""

    base_speed: float = 1.5
    speed_jitter: float = 0.5
    """Spawn speed is ``base_speed + U[0, speed_jitter)``, clamped."""

    min_spawn_speed: float = 0.5

    min_speed: float = 0.1
    """Speed floor for any vehicle that is not wrecked."""

    arrival_epsilon: float = 5.0
    """Remaining distance at which a vehicle counts as arrived."""

    emergency_speed_factor: float = 1.3
    """Emergency vehicles may run this much faster than the limit."""

    # ── Safety envelope ───────────────────────────────────────────────────
    safety_distance: float = 25.0
    """Pair distance below which both vehicles brake sharply."""

    collision_distance: float = 15.0
    """Pair distance below which an accident is recorded."""

    following_margin: float = 10.0
    """Added to ``safety_distance`` for same-direction car-following."""

    brake_factor: float = 0.3
    following_factor: float = 0.8

    accident_clearance_ms: float = 400.0
    """Delay between a collision and removal of the wrecked vehicles."""

    # ── Signal timing ─────────────────────────────────────────────────────
    min_green_ms: float = 4000.0
    max_green_ms: float = 10000.0
    yellow_ms: float = 2000.0

    queue_bonus_ms: float = 1000.0
    """Extra green per vehicle queued on the green approach."""

    weight_bonus_ms: float = 1000.0
    """Extra green per unit of scheduling weight."""

    emergency_green_bonus_ms: float = 3000.0
    """Extra green while an emergency vehicle travels on the green approach."""

    # ── Emergency handling ────────────────────────────────────────────────
    preemption_radius: float = 100.0
    """Emergency vehicles within this radius of the centre preempt."""

    emergency_score_bonus: float = 100.0
    """Scheduler bonus for an approach carrying an emergency vehicle."""

    # ── Spawn envelope ────────────────────────────────────────────────────
    max_vehicles_per_direction: int = 10
    spawn_safe_distance: float = 35.0

    auto_spawn_enabled: bool = True
    spawn_interval_ms: float = 2000.0
    emergency_interval_ms: float = 15000.0

    @property
    def center_x(self) -> float:
        return self.canvas_width / 2.0

    @property
    def center_y(self) -> float:
        return self.canvas_height / 2.0

    @property
    def following_distance(self) -> float:
        """Distance below which a trailing vehicle matches its leader."""
        return self.safety_distance + self.following_margin


def efficiency_score(
    total: int,
    passed: int,
    violations: int,
    accidents: int,
) -> float:
    """Traffic efficiency in percent.

    Share of spawned vehicles that made it through, minus 2 points per
    rule violation and 10 points per accident, clamped to ``[0, 100]``.
    """
    ratio = passed / (total or 1)
    raw = ratio * 100.0 - violations * 2.0 - accidents * 10.0
    return max(0.0, min(100.0, raw))
