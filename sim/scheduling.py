#!/usr/bin/env python3
"""
sim/scheduling.py
=================
Pure scheduling functions used by the light controller.

* :func:`scheduling_weights` maps queue lengths and a scheduling label to
  one weight per approach.
* :func:`select_next_direction` picks the next green approach among the
  three that are not currently green.
* :func:`determine_scheduling_label` is the heuristic used to label the
  data samples the prediction backend learns from.

Nothing in here touches simulation state; callers pass plain sequences.
"""

from __future__ import annotations

from typing import Optional, Sequence, List

from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, SchedulingLabel


def resolve_label(label: Optional[object]) -> SchedulingLabel:
    """Normalise *label* to a :class:`SchedulingLabel`, Round Robin if unknown."""
    if isinstance(label, SchedulingLabel):
        return label
    parsed = SchedulingLabel.parse(None if label is None else str(label))
    return parsed or SchedulingLabel.ROUND_ROBIN


def scheduling_weights(
    car_counts: Sequence[int],
    label: Optional[object],
) -> List[float]:
    """Per-approach weight for *label*.

    Parameters
    ----------
    car_counts : sequence of int
        Stopped vehicles per approach, indexed by :class:`Direction`.
    label : SchedulingLabel, str or None
        Unknown or missing labels behave as Round Robin.

    Returns
    -------
    list of float
        ``1.0`` everywhere for Round Robin, ``1 + 0.2 * count`` for
        Priority Scheduling, ``max(counts) - count + 0.5`` for Shortest
        Job First.
    """
    resolved = resolve_label(label)
    if resolved is SchedulingLabel.PRIORITY:
        return [1.0 + 0.2 * count for count in car_counts]
    if resolved is SchedulingLabel.SHORTEST_JOB_FIRST:
        peak = max(car_counts) if car_counts else 0
        return [peak - count + 0.5 for count in car_counts]
    return [1.0 for _ in car_counts]


def direction_score(
    car_count: int,
    weight: float,
    has_emergency: bool,
    average_wait_ms: float,
    policy: Optional[SimulationPolicy] = None,
) -> float:
    """Selection score of one approach."""
    bonus = (policy or SimulationPolicy()).emergency_score_bonus
    score = car_count * weight
    if has_emergency:
        score += bonus
    return score + average_wait_ms / 1000.0


def select_next_direction(
    current: int,
    car_counts: Sequence[int],
    weights: Sequence[float],
    emergency_flags: Sequence[bool],
    average_waits: Sequence[float],
    policy: Optional[SimulationPolicy] = None,
) -> Direction:
    """Pick the next green approach.

    Scans the non-current approaches in index order.  The best score
    starts at 0 and only a strictly greater score replaces it, so when
    nothing scores above zero the result is ``(current + 1) % 4``.
    """
    best = Direction((current + 1) % 4)
    best_score = 0.0
    for index in range(4):
        if index == current:
            continue
        score = direction_score(
            car_counts[index],
            weights[index],
            emergency_flags[index],
            average_waits[index],
            policy,
        )
        if score > best_score:
            best_score = score
            best = Direction(index)
    return best


def queue_variance(car_counts: Sequence[int]) -> float:
    """Population variance of the per-approach queue lengths."""
    if not car_counts:
        return 0.0
    mean = sum(car_counts) / len(car_counts)
    return sum((count - mean) ** 2 for count in car_counts) / len(car_counts)


def determine_scheduling_label(
    total_vehicles: int,
    emergency_present: bool,
    car_counts: Sequence[int],
) -> SchedulingLabel:
    """Label attached to each logged data sample."""
    if emergency_present:
        return SchedulingLabel.PRIORITY
    if total_vehicles < 5:
        return SchedulingLabel.ROUND_ROBIN
    if queue_variance(car_counts) > 3:
        return SchedulingLabel.SHORTEST_JOB_FIRST
    return SchedulingLabel.PRIORITY
