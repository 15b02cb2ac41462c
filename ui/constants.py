#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from gridsim.entities import VehicleType
from .types import ColorRGB

# ── Palette ───────────────────────────────────────────────────────────────────
COLOR_BG: ColorRGB = (15, 15, 15)
COLOR_GRASS: ColorRGB = (38, 64, 40)
COLOR_ROAD: ColorRGB = (48, 48, 52)
COLOR_ROAD_EDGE: ColorRGB = (70, 70, 74)
COLOR_LANE_WHITE: ColorRGB = (200, 200, 200)
COLOR_INTERSECTION: ColorRGB = (58, 58, 62)
COLOR_STOP_WHITE: ColorRGB = (235, 235, 235)

COLOR_LIGHT_RED: ColorRGB = (255, 60, 60)
COLOR_LIGHT_YELLOW: ColorRGB = (255, 200, 40)
COLOR_LIGHT_GREEN: ColorRGB = (0, 255, 127)
COLOR_LIGHT_OFF: ColorRGB = (40, 40, 40)
COLOR_LIGHT_HOUSING: ColorRGB = (20, 20, 20)
COLOR_PREEMPT: ColorRGB = (80, 160, 255)

COLOR_HUD_BG: ColorRGB = (22, 22, 22)
COLOR_HUD_BORDER: ColorRGB = (42, 42, 42)
COLOR_HUD_TEXT: ColorRGB = (220, 220, 225)
COLOR_HUD_DIM: ColorRGB = (130, 130, 130)
COLOR_WARNING: ColorRGB = (255, 60, 60)
COLOR_HELD_OUTLINE: ColorRGB = (255, 136, 0)

VEHICLE_COLORS: Dict[VehicleType, ColorRGB] = {
    VehicleType.CAR: (86, 168, 255),
    VehicleType.BUS: (246, 191, 90),
    VehicleType.TRUCK: (180, 120, 255),
    VehicleType.EMERGENCY: (255, 88, 88),
}
EMERGENCY_FLASH: Sequence[ColorRGB] = ((255, 60, 60), (60, 120, 255))

# ── Geometry (world units) ────────────────────────────────────────────────────
ROAD_HALF_W: float = 12.0
STOP_LINE_OFFSET: float = 35.0
LIGHT_OFFSET: float = 16.0
DASH_LEN: float = 6.0
DASH_GAP: float = 6.0

# ── Timing ────────────────────────────────────────────────────────────────────
HUD_BLINK_MS: int = 500
FLASH_PERIOD_S: float = 0.25
MESSAGE_TTL_S: float = 2.5

LEGEND_ITEMS: Sequence[Tuple[str, ColorRGB]] = (
    ("CAR", VEHICLE_COLORS[VehicleType.CAR]),
    ("BUS", VEHICLE_COLORS[VehicleType.BUS]),
    ("TRUCK", VEHICLE_COLORS[VehicleType.TRUCK]),
    ("EMERGENCY", VEHICLE_COLORS[VehicleType.EMERGENCY]),
    ("HELD", COLOR_HELD_OUTLINE),
    ("PREEMPTED", COLOR_PREEMPT),
)

SCREENSHOT_DIR = "screenshots"
