#!/usr/bin/env python3
"""Side panel with statistics, key help, the event log pane, and the stopped banner (mixin)."""

from __future__ import annotations

from typing import Sequence, Tuple

import pygame

from sim.records import SimulationSnapshot


class HudRenderer:
    """Mixin that draws every overlay / HUD element."""

    # ------------------------------------------------------------------ #
    #  Statistics panel                                                    #
    # ------------------------------------------------------------------ #

    def draw_hud(self, surface: pygame.Surface, snapshot: SimulationSnapshot) -> int:
        """Draw the stats block; return the y where the next block may start."""
        if self.font_small is None or self.font_tiny is None:
            return 0

        x0 = self.CANVAS_WIDTH
        panel = pygame.Rect(x0, 0, self.PANEL_WIDTH, self.CANVAS_HEIGHT)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel)
        pygame.draw.line(surface, self.HUD_BORDER_COLOR, (x0, 0), (x0, self.CANVAS_HEIGHT))

        stats = snapshot.stats
        green = ("North", "East", "South", "West")[snapshot.current_green]
        rows: Sequence[Tuple[str, str]] = (
            ("Status", "RUNNING" if snapshot.running else "STOPPED"),
            ("Vehicles", str(stats.total_vehicles)),
            ("Passed", str(stats.vehicles_passed)),
            ("Waiting", str(stats.current_waiting)),
            ("Avg wait", f"{stats.average_wait_time / 1000.0:.1f} s"),
            ("Emergency", str(stats.emergency_vehicles)),
            ("Active green", green),
            ("Violations", f"{stats.rule_violations} "
                           f"({stats.speeding_violations} spd / {stats.red_light_violations} red)"),
            ("Accidents", str(stats.accidents)),
            ("Predictions", str(stats.ml_predictions)),
            ("Scheduling", snapshot.scheduling_label),
            ("Efficiency", f"{stats.traffic_efficiency:.1f}%"),
        )

        title = self.font_small.render("LIVE TRAFFIC STATUS", True, self.TEXT_COLOR)
        surface.blit(title, (x0 + 12, 10))
        y = 34
        for label, value in rows:
            surface.blit(self.font_tiny.render(label, True, self.MUTED_TEXT_COLOR), (x0 + 12, y))
            surface.blit(self.font_tiny.render(value, True, self.TEXT_COLOR), (x0 + 120, y))
            y += 16

        y += 8
        for line in self.KEY_HELP:
            surface.blit(self.font_tiny.render(line, True, self.MUTED_TEXT_COLOR), (x0 + 12, y))
            y += 14
        return y + 10

    # ------------------------------------------------------------------ #
    #  Event log pane                                                      #
    # ------------------------------------------------------------------ #

    def draw_log_pane(self, surface: pygame.Surface, top: int) -> None:
        if self.font_tiny is None or self.log_pane is None:
            return
        x0 = self.CANVAS_WIDTH + 8
        pygame.draw.line(
            surface, self.HUD_BORDER_COLOR,
            (x0, top - 4), (x0 + self.PANEL_WIDTH - 16, top - 4),
        )
        lines = self.log_pane.lines()
        room = max(0, (self.CANVAS_HEIGHT - top - 4) // 13)
        y = top
        for level, text in lines[-room:] if room else []:
            color = self.LOG_LEVEL_COLORS.get(level, self.TEXT_COLOR)
            clipped = text if len(text) <= 52 else text[:51] + "…"
            surface.blit(self.font_tiny.render(clipped, True, color), (x0, y))
            y += 13

    # ------------------------------------------------------------------ #
    #  Stopped banner                                                      #
    # ------------------------------------------------------------------ #

    def _draw_stopped_banner(self, surface: pygame.Surface) -> None:
        overlay = pygame.Surface((self.CANVAS_WIDTH, self.CANVAS_HEIGHT), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 90))
        surface.blit(overlay, (0, 0))
        if self.font_title:
            text = self.font_title.render("STOPPED", True, (220, 220, 220))
            surface.blit(
                text,
                text.get_rect(center=(self.CANVAS_WIDTH // 2, self.CANVAS_HEIGHT // 2 - 16)),
            )
        if self.font_small:
            hint = self.font_small.render("Press ENTER to start", True, (160, 160, 160))
            surface.blit(
                hint,
                hint.get_rect(center=(self.CANVAS_WIDTH // 2, self.CANVAS_HEIGHT // 2 + 18)),
            )
