#!/usr/bin/env python3
"""
Main view class: combines all UI mixins into one runnable Pygame window.

Module layout
─────────────
    ui/
    ├── types.py           – ColorRGB, ColorRGBA
    ├── constants.py       – ViewConstants mixin (all class-level constants)
    ├── log_pane.py        – LogPaneHandler (logging → on-screen event log)
    ├── draw_road.py       – RoadRenderer mixin (roads, stop lines, lights, accidents)
    ├── draw_vehicles.py   – VehicleRenderer mixin (sprites)
    ├── hud.py             – HudRenderer mixin  (stats, key help, log pane, banner)
    └── pygame_view.py     – PygameIntersectionView (this file – main loop)
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import pygame

from sim.sim_bridge import SimBridge
from sim.types import Direction

from .constants import ViewConstants
from .draw_road import RoadRenderer
from .draw_vehicles import VehicleRenderer
from .hud import HudRenderer
from .log_pane import LogPaneHandler
from .types import ColorRGB

log = logging.getLogger("ui")

_SPAWN_KEYS: Dict[int, Direction] = {
    pygame.K_1: Direction.NORTH,
    pygame.K_2: Direction.EAST,
    pygame.K_3: Direction.SOUTH,
    pygame.K_4: Direction.WEST,
}
_EMERGENCY_KEYS: Dict[int, Direction] = {
    pygame.K_5: Direction.NORTH,
    pygame.K_6: Direction.EAST,
    pygame.K_7: Direction.SOUTH,
    pygame.K_8: Direction.WEST,
}


class PygameIntersectionView(
    ViewConstants,
    RoadRenderer,
    VehicleRenderer,
    HudRenderer,
):
    """Traffic-intersection visualiser powered by Pygame.

    Parameters
    ----------
    bridge : SimBridge
        Simulation driver to render and command.
    fps : int
        Frame-rate cap.
    drive : bool
        When True the frame loop itself advances the simulation with the
        measured frame time.  Leave False when the bridge runs its own
        thread.
    log_pane : LogPaneHandler or None
        Source of the on-screen event log.
    """

    def __init__(
        self,
        bridge: SimBridge,
        fps: int = 60,
        drive: bool = True,
        log_pane: Optional[LogPaneHandler] = None,
    ):
        self.bridge = bridge
        self.fps = fps
        self.drive = drive
        self.log_pane = log_pane
        self.width = self.CANVAS_WIDTH + self.PANEL_WIDTH
        self.height = self.CANVAS_HEIGHT

        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font_small: Optional[pygame.font.Font] = None
        self.font_tiny: Optional[pygame.font.Font] = None
        self.font_title: Optional[pygame.font.Font] = None

        self.time_seconds = 0.0
        self._color_by_id: Dict[str, ColorRGB] = {}

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        return pygame.font.SysFont("consolas,menlo,dejavusansmono,monospace", size, bold=bold)

    # ------------------------------------------------------------------ #
    #  Input                                                               #
    # ------------------------------------------------------------------ #
    def _handle_key(self, key: int) -> bool:
        """Apply one key press; return False when the window should close."""
        if key == pygame.K_ESCAPE:
            return False
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self.bridge.start_simulation()
        elif key == pygame.K_SPACE:
            self.bridge.stop_simulation()
        elif key == pygame.K_r:
            self.bridge.reset_simulation()
            self._color_by_id.clear()
            if self.log_pane is not None:
                self.log_pane.clear()
            log.info("System reset completed")
        elif key in _SPAWN_KEYS:
            self.bridge.spawn(_SPAWN_KEYS[key])
        elif key in _EMERGENCY_KEYS:
            self.bridge.spawn(_EMERGENCY_KEYS[key], emergency=True)
        return True

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("SMART TRAFFIC INTERSECTION")
        self.screen = pygame.display.set_mode((self.width, self.height))
        self.clock = pygame.time.Clock()
        self.font_small = self._load_font(14, bold=True)
        self.font_tiny = self._load_font(11, bold=False)
        self.font_title = self._load_font(28, bold=True)

        running = True
        while running:
            delta_ms = float(self.clock.tick(self.fps))
            self.time_seconds += delta_ms / 1000.0

            # ---- events ------------------------------------------------- #
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    running = self._handle_key(event.key) and running

            # ---- simulation tick ---------------------------------------- #
            if self.drive:
                try:
                    self.bridge.step(delta_ms)
                except Exception:
                    log.exception("Frame tick error")
            snapshot = self.bridge.get_snapshot()

            # ---- render ------------------------------------------------- #
            self.screen.fill(self.BG_COLOR)
            self.draw_roads(self.screen, self.bridge.simulation.policy.road_width)
            self.draw_accidents(
                self.screen, snapshot.accidents, snapshot.pending_accidents,
                self.time_seconds,
            )
            for vehicle in snapshot.vehicles:
                self.draw_vehicle(self.screen, vehicle, self.time_seconds)
            self.draw_lights(self.screen, snapshot.lights)

            log_top = self.draw_hud(self.screen, snapshot)
            self.draw_log_pane(self.screen, log_top)
            if not snapshot.running:
                self._draw_stopped_banner(self.screen)

            pygame.display.flip()

        pygame.quit()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_pygame_view(
    bridge: SimBridge,
    fps: int = 60,
    drive: bool = True,
    log_pane: Optional[LogPaneHandler] = None,
) -> None:
    view = PygameIntersectionView(bridge=bridge, fps=fps, drive=drive, log_pane=log_pane)
    view.run()


if __name__ == "__main__":
    raise SystemExit(
        "pygame_view.py needs a SimBridge. Run `python main.py` "
        "or call run_pygame_view(your_bridge)."
    )
