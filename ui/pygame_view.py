#!/usr/bin/env python3
"""
Main view class: draws a :class:`~display.sources.DisplaySource` in a
Pygame window and turns key presses into control commands.

Module layout
─────────────
    ui/
    ├── types.py           – ColorRGB, ColorRGBA, Camera
    ├── constants.py       – palette, geometry, legend
    ├── helpers.py         – headings, signal colours, alpha / text drawing
    ├── draw_road.py       – roads, stop lines, lamps, preemption halos
    ├── draw_vehicles.py   – vehicle sprites
    ├── hud.py             – HUD, legend, splash, banner
    └── pygame_view.py     – PygameGridView (this file – main loop)

The view holds no simulation logic; everything it shows comes from
``source.get_display_state()`` and everything it changes goes through the
source's command methods.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Optional

import pygame

from display.sources import DisplaySource
from gridsim.controller import ControllerMode
from gridsim.network import GridTopology
from .constants import COLOR_BG, MESSAGE_TTL_S, SCREENSHOT_DIR
from .draw_road import draw_grid
from .draw_vehicles import draw_vehicles
from .hud import draw_banner, draw_hud, draw_legend, draw_splash
from .types import Camera

log = logging.getLogger("ui")

_MODE_ORDER = (
    ControllerMode.FIXED,
    ControllerMode.HEURISTIC,
    ControllerMode.ML,
    ControllerMode.HYBRID,
)


def next_mode(mode: ControllerMode) -> ControllerMode:
    """Mode after *mode* in the M-key cycle."""
    return _MODE_ORDER[(_MODE_ORDER.index(mode) + 1) % len(_MODE_ORDER)]


class PygameGridView:
    """Signal-grid visualiser powered by Pygame.

    Parameters
    ----------
    source : DisplaySource
        Where state comes from and commands go to.
    topology : GridTopology
        Geometry used to lay out the map.
    source_label : str
        Shown in the HUD (``local`` / ``remote``).
    preempt_timer_above : float
        Intersections whose timer exceeds this are drawn as preempted.
    """

    def __init__(
        self,
        source: DisplaySource,
        topology: GridTopology,
        width: int = 1000,
        height: int = 700,
        fps: int = 60,
        source_label: str = "local",
        preempt_timer_above: float = 60.0,
    ):
        self.source = source
        self.topology = topology
        self.width = width
        self.height = height
        self.fps = fps
        self.source_label = source_label
        self.preempt_timer_above = preempt_timer_above

        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.camera = Camera(width, height)
        self.camera.fit(topology.get_bounds())

        self.time_seconds = 0.0
        self.running = False
        self.show_legend = True
        self.show_splash = True
        self.mode = ControllerMode(source.get_overview().get("mode", ControllerMode.FIXED.value))
        self._message: Optional[str] = None
        self._message_until = 0.0

    # ------------------------------------------------------------------ #
    #  Commands                                                            #
    # ------------------------------------------------------------------ #
    def handle_key(self, key: int) -> None:
        """Apply one key press."""
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_e:
            emergency = self.source.get_display_state().emergency
            if emergency is not None and emergency.active:
                ok = self.source.stop_emergency()
                self._flash("Emergency stopped" if ok else "Emergency stop failed")
            else:
                ok = self.source.start_emergency()
                self._flash("Emergency dispatched" if ok else "Emergency start failed")
        elif key == pygame.K_m:
            # Shown optimistically; the next snapshot overview is authoritative.
            self.mode = next_mode(self.mode)
            ok = self.source.set_mode(self.mode)
            self._flash(f"Controller mode: {self.mode.value}" if ok else "Mode change not confirmed")
        elif key == pygame.K_r:
            ok = self.source.restart()
            self._flash("Simulation restarted" if ok else "Restart failed")
        elif key == pygame.K_l:
            self.show_legend = not self.show_legend
        elif key == pygame.K_F12:
            self._take_screenshot()

    def _flash(self, message: str) -> None:
        log.info(message)
        self._message = message
        self._message_until = self.time_seconds + MESSAGE_TTL_S

    # ------------------------------------------------------------------ #
    #  Resize / screenshot                                                 #
    # ------------------------------------------------------------------ #
    def _handle_resize(self, new_w: int, new_h: int) -> None:
        self.width = max(400, new_w)
        self.height = max(300, new_h)
        self.camera = Camera(self.width, self.height)
        self.camera.fit(self.topology.get_bounds())
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)

    def _take_screenshot(self) -> None:
        if self.screen is None:
            return
        os.makedirs(SCREENSHOT_DIR, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(SCREENSHOT_DIR, f"grid_{stamp}.png")
        pygame.image.save(self.screen, path)
        self._flash(f"Saved {path}")

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        return pygame.font.SysFont("consolas,dejavusansmono,monospace", size, bold=bold)

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("SIGNAL GRID")
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        font_small = self._load_font(13)
        font_tiny = self._load_font(11)
        font_title = self._load_font(28, bold=True)

        self.source.start()
        self.running = True
        try:
            while self.running:
                self.time_seconds += self.clock.tick(self.fps) / 1000.0

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.VIDEORESIZE:
                        self._handle_resize(event.w, event.h)
                    elif event.type == pygame.KEYDOWN:
                        if self.show_splash and event.key != pygame.K_ESCAPE:
                            self.show_splash = False
                            continue
                        self.handle_key(event.key)

                self.screen.fill(COLOR_BG)
                if self.show_splash:
                    draw_splash(self.screen, font_title, font_small, font_tiny, self.time_seconds)
                    pygame.display.flip()
                    continue

                state = self.source.get_display_state()
                draw_grid(self.screen, self.camera, self.topology,
                          state.intersection_map(), self.preempt_timer_above)
                vehicles = list(state.vehicles)
                if state.emergency is not None and state.emergency.active:
                    vehicles.append(state.emergency.as_vehicle())
                draw_vehicles(self.screen, self.camera, self.topology, vehicles, self.time_seconds)

                overview = self.source.get_overview()
                overview.setdefault("mode", self.mode.value)
                draw_hud(self.screen, font_small, font_tiny, overview,
                         self.source_label, self.time_seconds)
                if self.show_legend:
                    draw_legend(self.screen, font_tiny, self.width, self.height)
                if self.time_seconds < self._message_until:
                    draw_banner(self.screen, font_small, self._message)

                pygame.display.flip()
        finally:
            self.source.stop()
            pygame.quit()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_pygame_view(
    source: DisplaySource,
    topology: GridTopology,
    width: int = 1000,
    height: int = 700,
    fps: int = 60,
    source_label: str = "local",
    preempt_timer_above: float = 60.0,
) -> None:
    view = PygameGridView(
        source, topology, width=width, height=height, fps=fps,
        source_label=source_label, preempt_timer_above=preempt_timer_above,
    )
    view.run()
