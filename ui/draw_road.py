"""
ui/draw_road.py
===============
Renders the intersection canvas: background, the two crossing roads,
centre dashes, stop lines, the four traffic lights with their phase
timers, and accident markers.

All methods are *pure renderers*; they read snapshot data and draw to a
surface.
"""

from __future__ import annotations

import math
from typing import Sequence

import pygame

from sim.records import AccidentRecord, LightView

# Stop-line segment per light index (N, E, S, W), relative to the centre.
_STOP_LINES = (
    ((0, 40), (-60, 40)),    # North-bound traffic stops below the box
    ((-40, 0), (-40, -60)),  # East-bound traffic stops left of the box
    ((0, -40), (60, -40)),   # South-bound traffic stops above the box
    ((40, 0), (40, 60)),     # West-bound traffic stops right of the box
)

_DASH_LEN = 20
_DASH_GAP = 20


class RoadRenderer:
    """Mixin that draws the static scene and the light heads."""

    def draw_roads(self, surface: pygame.Surface, road_width: float = 120.0) -> None:
        w, h = self.CANVAS_WIDTH, self.CANVAS_HEIGHT
        cx, cy = w // 2, h // 2
        half = int(road_width // 2)

        surface.fill(self.GRASS_COLOR, pygame.Rect(0, 0, w, h))
        pygame.draw.rect(surface, self.ROAD_COLOR, (0, cy - half, w, half * 2))
        pygame.draw.rect(surface, self.ROAD_COLOR, (cx - half, 0, half * 2, h))

        # Centre dashes, skipping the intersection box.
        for x in range(0, w, _DASH_LEN + _DASH_GAP):
            if cx - half <= x <= cx + half:
                continue
            pygame.draw.line(surface, self.LANE_DASH_COLOR, (x, cy), (x + _DASH_LEN, cy), 2)
        for y in range(0, h, _DASH_LEN + _DASH_GAP):
            if cy - half <= y <= cy + half:
                continue
            pygame.draw.line(surface, self.LANE_DASH_COLOR, (cx, y), (cx, y + _DASH_LEN), 2)

        for (x1, y1), (x2, y2) in _STOP_LINES:
            pygame.draw.line(
                surface, self.STOP_LINE_COLOR,
                (cx + x1, cy + y1), (cx + x2, cy + y2), 3,
            )

    def draw_lights(self, surface: pygame.Surface, lights: Sequence[LightView]) -> None:
        for light in lights:
            x, y = int(light.x), int(light.y)
            housing = pygame.Rect(x - 9, y - 26, 18, 52)
            pygame.draw.rect(surface, self.LIGHT_HOUSING_COLOR, housing, border_radius=4)
            for offset, state in ((-16, "red"), (0, "yellow"), (16, "green")):
                color = self.LIGHT_COLORS[state] if light.state == state else self.LIGHT_OFF_COLOR
                pygame.draw.circle(surface, color, (x, y + offset), 6)
            self._draw_light_timer(surface, light)

    def _draw_light_timer(self, surface: pygame.Surface, light: LightView) -> None:
        if self.font_tiny is None or light.state == "red":
            return
        seconds = math.ceil(light.remaining_ms / 1000.0)
        text = self.font_tiny.render(f"{seconds}s", True, self.LIGHT_COLORS[light.state])
        surface.blit(text, text.get_rect(midtop=(int(light.x), int(light.y) + 30)))

    def draw_accidents(
        self,
        surface: pygame.Surface,
        accidents: Sequence[AccidentRecord],
        pending_ids: Sequence[str],
        tick: float,
    ) -> None:
        """Pulse a ring on every accident that has not been cleared yet."""
        pulse = 14 + int(4 * math.sin(tick * 8.0))
        for accident in accidents:
            if accident.id not in pending_ids:
                continue
            x, y = int(accident.location[0]), int(accident.location[1])
            pygame.draw.circle(surface, self.WRECK_COLOR, (x, y), pulse, width=3)
            pygame.draw.line(surface, self.EMERGENCY_COLOR, (x - 6, y - 6), (x + 6, y + 6), 2)
            pygame.draw.line(surface, self.EMERGENCY_COLOR, (x - 6, y + 6), (x + 6, y - 6), 2)
