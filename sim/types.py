#!/usr/bin/env python3
"""
sim/types.py
============
Enumerations shared across every simulation module.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Optional


class Direction(IntEnum):
    """Approach a vehicle travels on; the value doubles as the light index.

    The naming follows the travel heading, not the entry edge:
    ``NORTH`` vehicles enter from the bottom of the canvas and drive up.
    """

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def next(self) -> "Direction":
        return Direction((self.value + 1) % 4)


class Movement(str, Enum):
    """Intended manoeuvre at the intersection."""

    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"


class LightState(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class ViolationType(str, Enum):
    SPEEDING = "SPEEDING"
    RED_LIGHT_VIOLATION = "RED_LIGHT_VIOLATION"


class SchedulingLabel(str, Enum):
    """Scheduling hint produced by the prediction backend."""

    ROUND_ROBIN = "Round Robin"
    PRIORITY = "Priority Scheduling"
    SHORTEST_JOB_FIRST = "Shortest Job First"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["SchedulingLabel"]:
        """Map a backend string to a label, ``None`` when unrecognised."""
        if raw is None:
            return None
        text = str(raw).strip().lower()
        for label in cls:
            if label.value.lower() == text:
                return label
        return None
