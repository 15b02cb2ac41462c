"""
ui/types.py
===========
Lightweight data containers used across every UI module.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]


@dataclass
class Camera:
    """Viewport mapping world coordinates to screen pixels.

    World ``y`` grows southward, the same as screen ``y``, so no flip is
    needed.
    """
    screen_w: int
    screen_h: int
    world_x: float = 0.0
    world_y: float = 0.0
    zoom: float = 1.0

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        sx = cx + (wx - self.world_x) * self.zoom
        sy = cy + (wy - self.world_y) * self.zoom
        return sx, sy

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        wx = (sx - cx) / self.zoom + self.world_x
        wy = (sy - cy) / self.zoom + self.world_y
        return wx, wy

    def fit(self, bounds: Tuple[Tuple[float, float], Tuple[float, float]], margin_px: int = 24) -> None:
        """Centre on *bounds* and zoom so they fill the screen."""
        (x0, x1), (y0, y1) = bounds
        self.world_x = (x0 + x1) / 2
        self.world_y = (y0 + y1) / 2
        span_x = max(1.0, x1 - x0)
        span_y = max(1.0, y1 - y0)
        self.zoom = min(
            (self.screen_w - 2 * margin_px) / span_x,
            (self.screen_h - 2 * margin_px) / span_y,
        )
