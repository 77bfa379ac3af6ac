#!/usr/bin/env python3
"""Vehicle sprite rendering (mixin)."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping

import pygame

from .types import ColorRGB


class VehicleRenderer:
    """Mixin that draws vehicles from snapshot dicts."""

    def _vehicle_color(self, vehicle: Mapping[str, Any]) -> ColorRGB:
        if vehicle.get("wrecked"):
            return self.WRECK_COLOR
        if vehicle.get("is_emergency"):
            return self.EMERGENCY_COLOR
        vehicle_id = str(vehicle.get("id", ""))
        cache: Dict[str, ColorRGB] = self._color_by_id
        existing = cache.get(vehicle_id)
        if existing:
            return existing
        color = self.DEFAULT_VEHICLE_COLORS[len(cache) % len(self.DEFAULT_VEHICLE_COLORS)]
        cache[vehicle_id] = color
        return color

    def draw_vehicle(self, surface: pygame.Surface, vehicle: Mapping[str, Any], tick: float) -> None:
        w, h = self.VEHICLE_SIZE
        color = self._vehicle_color(vehicle)
        sprite = pygame.Surface((w, h), pygame.SRCALPHA)

        body = pygame.Rect(0, 0, w, h)
        pygame.draw.rect(sprite, color, body, border_radius=3)

        # Windshield
        r, g, b = color
        glass = (max(0, r - 60), max(0, g - 60), max(0, b - 60), 200)
        pygame.draw.rect(sprite, glass, pygame.Rect(w - 7, 2, 5, h - 4), border_radius=2)

        if vehicle.get("braking"):
            pygame.draw.rect(sprite, self.BRAKE_LIGHT_COLOR, pygame.Rect(0, 1, 2, 3))
            pygame.draw.rect(sprite, self.BRAKE_LIGHT_COLOR, pygame.Rect(0, h - 4, 2, 3))

        # Emergency light bar blinks while the vehicle is active.
        if vehicle.get("is_emergency") and not vehicle.get("wrecked"):
            blink_on = int((tick * 1000) // self.HUD_BLINK_MS) % 2 == 0
            bar = (255, 255, 255) if blink_on else (52, 152, 219)
            pygame.draw.rect(sprite, bar, pygame.Rect(w // 2 - 2, 1, 4, h - 2))

        outline = self.VIOLATOR_OUTLINE if vehicle.get("has_violated_rules") else (235, 235, 235)
        pygame.draw.rect(sprite, outline, body, width=1, border_radius=3)

        angle = -math.degrees(float(vehicle.get("angle", 0.0)))
        rotated = pygame.transform.rotate(sprite, angle)
        dest = rotated.get_rect(center=(int(vehicle["x"]), int(vehicle["y"])))
        surface.blit(rotated, dest)

        if vehicle.get("stopped") and self.font_tiny is not None:
            wait_s = float(vehicle.get("wait_time", 0.0)) / 1000.0
            text = self.font_tiny.render(f"{wait_s:.0f}s", True, self.MUTED_TEXT_COLOR)
            surface.blit(text, text.get_rect(midbottom=(dest.centerx, dest.top - 1)))
