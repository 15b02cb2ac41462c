"""
ui/draw_road.py
===============
Renders the signal grid: road strips for every lane, intersection boxes,
stop lines and a pair of lamps per intersection.

All functions are *pure renderers*: they read data and draw to a surface.
"""

from __future__ import annotations

from typing import Mapping

import pygame

from gridsim.entities import Axis, IntersectionStatus
from gridsim.network import GridTopology
from ui.constants import (
    COLOR_GRASS, COLOR_INTERSECTION, COLOR_LANE_WHITE, COLOR_LIGHT_HOUSING,
    COLOR_PREEMPT, COLOR_ROAD, COLOR_ROAD_EDGE, COLOR_STOP_WHITE,
    DASH_GAP, DASH_LEN, LIGHT_OFFSET, ROAD_HALF_W, STOP_LINE_OFFSET,
)
from ui.helpers import draw_alpha_circle, signal_to_color
from ui.types import Camera


def draw_grid(
    screen: pygame.Surface,
    camera: Camera,
    topology: GridTopology,
    intersections: Mapping[str, IntersectionStatus],
    preempt_timer_above: float = 60.0,
) -> None:
    """Draw the complete grid background in z-order.

    An intersection whose timer exceeds *preempt_timer_above* is drawn
    with a preemption halo.
    """
    screen.fill(COLOR_GRASS)
    (lo, hi), _ = topology.get_bounds()

    for lane in topology.lanes():
        _draw_lane_strip(screen, camera, topology, lane.axis, lane.index, lo, hi)
    for lane in topology.lanes():
        _draw_centre_dashes(screen, camera, topology, lane.axis, lane.index, lo, hi)

    for iid, row, col in topology.intersection_coords():
        cx, cy = col * topology.spacing, row * topology.spacing
        _draw_intersection_box(screen, camera, cx, cy)
        _draw_stop_lines(screen, camera, cx, cy)
        status = intersections.get(iid)
        if status is None:
            continue
        if status.timer > preempt_timer_above:
            sx, sy = camera.world_to_screen(cx, cy)
            radius = int((ROAD_HALF_W + 8) * camera.zoom)
            draw_alpha_circle(screen, (*COLOR_PREEMPT, 70), (int(sx), int(sy)), radius)
        _draw_lamps(screen, camera, status, cx, cy)


def _world_rect(cam: Camera, x1: float, y1: float, x2: float, y2: float) -> pygame.Rect:
    sx1, sy1 = cam.world_to_screen(min(x1, x2), min(y1, y2))
    sx2, sy2 = cam.world_to_screen(max(x1, x2), max(y1, y2))
    return pygame.Rect(int(sx1), int(sy1), max(1, int(sx2 - sx1)), max(1, int(sy2 - sy1)))


def _draw_lane_strip(screen, cam, topology, axis, index, lo, hi) -> None:
    c = index * topology.spacing
    if axis is Axis.HORIZONTAL:
        rect = _world_rect(cam, lo, c - ROAD_HALF_W, hi, c + ROAD_HALF_W)
    else:
        rect = _world_rect(cam, c - ROAD_HALF_W, lo, c + ROAD_HALF_W, hi)
    pygame.draw.rect(screen, COLOR_ROAD, rect)
    pygame.draw.rect(screen, COLOR_ROAD_EDGE, rect, width=1)


def _draw_centre_dashes(screen, cam, topology, axis, index, lo, hi) -> None:
    c = index * topology.spacing
    width = max(1, int(cam.zoom * 0.6))
    pos = lo
    while pos < hi:
        end = min(pos + DASH_LEN, hi)
        if not _near_crossing(pos, end, topology):
            if axis is Axis.HORIZONTAL:
                a, b = cam.world_to_screen(pos, c), cam.world_to_screen(end, c)
            else:
                a, b = cam.world_to_screen(c, pos), cam.world_to_screen(c, end)
            pygame.draw.line(screen, COLOR_LANE_WHITE, a, b, width)
        pos += DASH_LEN + DASH_GAP


def _near_crossing(a: float, b: float, topology: GridTopology) -> bool:
    for i in range(topology.size):
        line = i * topology.spacing
        if b > line - ROAD_HALF_W and a < line + ROAD_HALF_W:
            return True
    return False


def _draw_intersection_box(screen, cam, cx, cy) -> None:
    rect = _world_rect(cam, cx - ROAD_HALF_W, cy - ROAD_HALF_W, cx + ROAD_HALF_W, cy + ROAD_HALF_W)
    pygame.draw.rect(screen, COLOR_INTERSECTION, rect)


def _draw_stop_lines(screen, cam, cx, cy) -> None:
    # Each approach stops on its own (right-hand) half of the road.
    width = max(1, int(cam.zoom * 0.8))
    d = STOP_LINE_OFFSET
    segments = (
        ((cx - d, cy), (cx - d, cy + ROAD_HALF_W)),   # eastbound
        ((cx + d, cy - ROAD_HALF_W), (cx + d, cy)),   # westbound
        ((cx - ROAD_HALF_W, cy - d), (cx, cy - d)),   # southbound
        ((cx, cy + d), (cx + ROAD_HALF_W, cy + d)),   # northbound
    )
    for (x1, y1), (x2, y2) in segments:
        pygame.draw.line(screen, COLOR_STOP_WHITE, cam.world_to_screen(x1, y1), cam.world_to_screen(x2, y2), width)


def _draw_lamps(screen, cam, status: IntersectionStatus, cx: float, cy: float) -> None:
    bulb_r = max(2, int(1.6 * cam.zoom))
    # EW lamp on the north-west corner, NS lamp on the south-east corner
    for signal, (wx, wy) in (
        (status.ew_signal, (cx - LIGHT_OFFSET, cy - LIGHT_OFFSET)),
        (status.ns_signal, (cx + LIGHT_OFFSET, cy + LIGHT_OFFSET)),
    ):
        sx, sy = cam.world_to_screen(wx, wy)
        pygame.draw.circle(screen, COLOR_LIGHT_HOUSING, (int(sx), int(sy)), bulb_r + 2)
        pygame.draw.circle(screen, signal_to_color(signal), (int(sx), int(sy)), bulb_r)
