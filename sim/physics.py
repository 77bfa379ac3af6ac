#!/usr/bin/env python3
"""
sim/physics.py
==============
Low-level geometry helpers used by :mod:`sim.world`, :mod:`sim.safety`
and :mod:`sim.lights`.

Keeping these in a separate module avoids circular imports and makes unit
testing straightforward.  All coordinates are canvas pixels with the origin
in the top-left corner and *y* growing downwards.
"""

from __future__ import annotations

import math
from typing import Any, Tuple

from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, Movement


def distance(a: Any, b: Any) -> float:
    """Euclidean distance between two objects exposing ``x`` and ``y``."""
    return math.hypot(a.x - b.x, a.y - b.y)


def distance_to_center(x: float, y: float, policy: SimulationPolicy) -> float:
    return math.hypot(x - policy.center_x, y - policy.center_y)


def in_intersection(x: float, y: float, policy: SimulationPolicy) -> bool:
    """True when *(x, y)* lies inside the intersection box (edges included)."""
    half = policy.road_width / 2.0
    return (
        policy.center_x - half <= x <= policy.center_x + half
        and policy.center_y - half <= y <= policy.center_y + half
    )


def in_approach_window(
    direction: Direction,
    x: float,
    y: float,
    policy: SimulationPolicy,
) -> bool:
    """True when a vehicle is on the stretch just before its stop line.

    The window starts at the stop line (``stop_line_offset`` from the
    centre) and extends ``approach_window`` pixels back along the approach.
    Both bounds are exclusive.
    """
    cx, cy = policy.center_x, policy.center_y
    line = policy.stop_line_offset
    window = policy.approach_window
    if direction is Direction.NORTH:      # driving up, stop line below centre
        stop_line = cy + line
        return stop_line < y < stop_line + window
    if direction is Direction.EAST:       # driving right, stop line left of centre
        stop_line = cx - line
        return stop_line - window < x < stop_line
    if direction is Direction.SOUTH:      # driving down, stop line above centre
        stop_line = cy - line
        return stop_line - window < y < stop_line
    stop_line = cx + line                 # WEST: driving left
    return stop_line < x < stop_line + window


def is_ahead(direction: Direction, a: Any, b: Any) -> bool:
    """True when *a* is further along *direction* of travel than *b*."""
    if direction is Direction.NORTH:
        return a.y < b.y
    if direction is Direction.EAST:
        return a.x > b.x
    if direction is Direction.SOUTH:
        return a.y > b.y
    return a.x < b.x


def spawn_overhang(
    direction: Direction,
    x: float,
    y: float,
    policy: SimulationPolicy,
) -> float:
    """How far a vehicle still sits beyond the canvas edge it entered from."""
    if direction is Direction.NORTH and y > policy.canvas_height:
        return y - policy.canvas_height
    if direction is Direction.EAST and x < 0.0:
        return -x
    if direction is Direction.SOUTH and y < 0.0:
        return -y
    if direction is Direction.WEST and x > policy.canvas_width:
        return x - policy.canvas_width
    return 0.0


def spawn_geometry(
    direction: Direction,
    movement: Movement,
    offset: float,
    policy: SimulationPolicy,
) -> Tuple[float, float, float, float, float]:
    """Return ``(x, y, target_x, target_y, angle)`` for a new vehicle.

    *offset* pushes the spawn point further off-canvas so it does not
    overlap vehicles already queued on the same approach.
    """
    w, h = policy.canvas_width, policy.canvas_height
    cx, cy = policy.center_x, policy.center_y
    lane = policy.lane_offset
    margin = policy.exit_margin

    # Exit points shared by every approach.
    exit_top = (cx - lane, -margin)
    exit_bottom = (cx + lane, h + margin)
    exit_left = (-margin, cy + lane)
    exit_right = (w + margin, cy - lane)

    if direction is Direction.NORTH:
        x, y, angle = cx - lane, h + offset, -math.pi / 2
        targets = {Movement.STRAIGHT: exit_top, Movement.RIGHT: exit_right,
                   Movement.LEFT: exit_left}
    elif direction is Direction.EAST:
        x, y, angle = -margin - offset, cy - lane, 0.0
        targets = {Movement.STRAIGHT: exit_right, Movement.RIGHT: exit_bottom,
                   Movement.LEFT: exit_top}
    elif direction is Direction.SOUTH:
        x, y, angle = cx + lane, -margin - offset, math.pi / 2
        targets = {Movement.STRAIGHT: exit_bottom, Movement.RIGHT: exit_left,
                   Movement.LEFT: exit_right}
    else:
        x, y, angle = w + margin + offset, cy + lane, math.pi
        targets = {Movement.STRAIGHT: exit_left, Movement.RIGHT: exit_top,
                   Movement.LEFT: exit_bottom}

    tx, ty = targets[movement]
    return x, y, tx, ty, angle
