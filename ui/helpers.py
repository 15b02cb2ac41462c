"""
ui/helpers.py
=============
Pure utility functions shared across UI modules:
direction ↔ heading mapping, signal colours, alpha-surface drawing and
text rendering.
"""

from __future__ import annotations

from typing import Dict, Tuple

import pygame

from gridsim.entities import Direction, SignalColor
from ui.constants import COLOR_HUD_TEXT, COLOR_LIGHT_GREEN, COLOR_LIGHT_RED, COLOR_LIGHT_YELLOW

# ── Direction / heading ───────────────────────────────────────────────────────

_DIR_TO_HEADING: Dict[Direction, float] = {
    Direction.EAST:  0.0,
    Direction.NORTH: 90.0,
    Direction.WEST:  180.0,
    Direction.SOUTH: 270.0,
}


def direction_to_heading(direction: Direction) -> float:
    """Degrees for *direction* (0 = East, CCW), as ``pygame.transform.rotate`` expects."""
    return _DIR_TO_HEADING[direction]


_SIGNAL_COLORS = {
    SignalColor.RED: COLOR_LIGHT_RED,
    SignalColor.YELLOW: COLOR_LIGHT_YELLOW,
    SignalColor.GREEN: COLOR_LIGHT_GREEN,
}


def signal_to_color(signal: SignalColor) -> Tuple[int, int, int]:
    return _SIGNAL_COLORS[signal]


# ── Alpha drawing helpers ────────────────────────────────────────────────────

def draw_alpha_circle(
    target: pygame.Surface,
    color: Tuple[int, ...],
    centre: Tuple[int, int],
    radius: int,
) -> None:
    """Draw a semi-transparent circle."""
    if radius < 1:
        return
    size = radius * 2
    tmp = pygame.Surface((size, size), pygame.SRCALPHA)
    pygame.draw.circle(tmp, color, (radius, radius), radius)
    target.blit(tmp, (centre[0] - radius, centre[1] - radius))


# ── Text helper ──────────────────────────────────────────────────────────────

def render_text(
    surface: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: Tuple[int, int],
    color: Tuple[int, ...] = COLOR_HUD_TEXT,
    anchor: str = "topleft",
) -> pygame.Rect:
    """Render text with flexible *anchor* ('topleft', 'center', 'midright' …)."""
    img = font.render(text, True, color)
    rect = img.get_rect(**{anchor: pos})
    surface.blit(img, rect)
    return rect
