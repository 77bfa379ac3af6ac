#!/usr/bin/env python3

from .types import ColorRGB, ColorRGBA
from .constants import ViewConstants
from .log_pane import LogPaneHandler
from .draw_road import RoadRenderer
from .draw_vehicles import VehicleRenderer
from .hud import HudRenderer
from .pygame_view import PygameIntersectionView, run_pygame_view

__all__ = [
    "ColorRGB",
    "ColorRGBA",
    "ViewConstants",
    "LogPaneHandler",
    "RoadRenderer",
    "VehicleRenderer",
    "HudRenderer",
    "PygameIntersectionView",
    "run_pygame_view",
]
