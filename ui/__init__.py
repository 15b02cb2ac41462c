#!/usr/bin/env python3

from .types import Camera, ColorRGB, ColorRGBA
from .draw_road import draw_grid
from .draw_vehicles import draw_vehicle, draw_vehicles, vehicle_world_pos
from .hud import draw_hud, draw_legend
from .pygame_view import PygameGridView, next_mode, run_pygame_view

__all__ = [
    "Camera",
    "ColorRGB",
    "ColorRGBA",
    "draw_grid",
    "draw_vehicle",
    "draw_vehicles",
    "vehicle_world_pos",
    "draw_hud",
    "draw_legend",
    "PygameGridView",
    "next_mode",
    "run_pygame_view",
]
