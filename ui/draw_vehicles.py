#!/usr/bin/env python3
"""Vehicle sprite rendering for the grid view."""

from __future__ import annotations

from typing import Sequence, Tuple

import pygame

from gridsim.entities import Axis, Vehicle, VehicleType, vehicle_width
from gridsim.errors import GridIndexError
from gridsim.network import GridTopology
from ui.constants import (
    COLOR_HELD_OUTLINE, EMERGENCY_FLASH, FLASH_PERIOD_S, ROAD_HALF_W, VEHICLE_COLORS,
)
from ui.helpers import direction_to_heading
from ui.types import Camera


def vehicle_world_pos(topology: GridTopology, vehicle: Vehicle) -> Tuple[float, float]:
    """World ``(x, y)`` of *vehicle*, shifted onto its right-hand half of the road."""
    lane = topology.parse_lane_id(vehicle.lane_id)
    x, y = topology.world_point(lane, vehicle.position)
    side = ROAD_HALF_W / 2 * vehicle.direction.sign
    if lane.axis is Axis.HORIZONTAL:
        return x, y + side
    return x - side, y


def draw_vehicles(
    screen: pygame.Surface,
    camera: Camera,
    topology: GridTopology,
    vehicles: Sequence[Vehicle],
    time_s: float,
) -> None:
    for vehicle in vehicles:
        try:
            draw_vehicle(screen, camera, topology, vehicle, time_s)
        except GridIndexError:
            continue


def draw_vehicle(
    screen: pygame.Surface,
    camera: Camera,
    topology: GridTopology,
    vehicle: Vehicle,
    time_s: float,
) -> None:
    w = max(4, int(vehicle.length * camera.zoom))
    h = max(3, int(min(vehicle_width(vehicle.type), ROAD_HALF_W - 2) * camera.zoom))
    sprite = pygame.Surface((w, h), pygame.SRCALPHA)

    if vehicle.type is VehicleType.EMERGENCY:
        color = EMERGENCY_FLASH[int(time_s / FLASH_PERIOD_S) % len(EMERGENCY_FLASH)]
    else:
        color = VEHICLE_COLORS[vehicle.type]
    body = pygame.Rect(0, 0, w, h)
    pygame.draw.rect(sprite, color, body, border_radius=2)

    # Windshield at the front (sprite faces east before rotation)
    r, g, b = color
    glass = (max(0, r - 60), max(0, g - 60), max(0, b - 60), 180)
    pygame.draw.rect(sprite, glass, pygame.Rect(w - max(2, w // 4), 1, max(1, w // 6), h - 2))

    outline = COLOR_HELD_OUTLINE if vehicle.held else (235, 235, 235)
    pygame.draw.rect(sprite, outline, body, width=1, border_radius=2)

    rotated = pygame.transform.rotate(sprite, direction_to_heading(vehicle.direction))
    sx, sy = camera.world_to_screen(*vehicle_world_pos(topology, vehicle))
    screen.blit(rotated, rotated.get_rect(center=(int(sx), int(sy))))
