#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .types import ColorRGB


class ViewConstants:
    """Mixin providing every visual / layout constant."""

    BG_COLOR: ColorRGB = (44, 62, 80)
    GRASS_COLOR: ColorRGB = (39, 55, 70)
    ROAD_COLOR: ColorRGB = (52, 73, 94)
    LANE_DASH_COLOR: ColorRGB = (236, 240, 241)
    STOP_LINE_COLOR: ColorRGB = (255, 255, 255)
    HUD_BG_COLOR: ColorRGB = (22, 22, 22)
    HUD_BORDER_COLOR: ColorRGB = (42, 42, 42)
    TEXT_COLOR: ColorRGB = (230, 230, 235)
    MUTED_TEXT_COLOR: ColorRGB = (150, 150, 150)

    LIGHT_COLORS: Dict[str, ColorRGB] = {
        "red": (231, 76, 60),
        "yellow": (241, 196, 15),
        "green": (46, 204, 113),
    }
    LIGHT_OFF_COLOR: ColorRGB = (40, 40, 40)
    LIGHT_HOUSING_COLOR: ColorRGB = (20, 20, 20)

    EMERGENCY_COLOR: ColorRGB = (255, 0, 0)
    WRECK_COLOR: ColorRGB = (139, 0, 0)
    VIOLATOR_OUTLINE: ColorRGB = (255, 136, 0)
    BRAKE_LIGHT_COLOR: ColorRGB = (255, 40, 40)

    LOG_LEVEL_COLORS: Dict[str, ColorRGB] = {
        "DEBUG": (120, 120, 120),
        "INFO": (200, 200, 200),
        "WARNING": (246, 191, 90),
        "ERROR": (255, 88, 88),
        "CRITICAL": (255, 60, 60),
    }

    CANVAS_WIDTH = 800
    CANVAS_HEIGHT = 600
    PANEL_WIDTH = 320
    VEHICLE_SIZE: Tuple[int, int] = (20, 12)
    HUD_BLINK_MS = 500

    DEFAULT_VEHICLE_COLORS: Sequence[ColorRGB] = (
        (52, 152, 219),
        (231, 76, 60),
        (46, 204, 113),
        (243, 156, 18),
        (155, 89, 182),
    )

    KEY_HELP: Sequence[str] = (
        "1-4    Spawn N / E / S / W",
        "5-8    Emergency N / E / S / W",
        "ENTER  Start",
        "SPACE  Stop",
        "R      Reset",
        "ESC    Quit",
    )
