#!/usr/bin/env python3
"""HUD panel, legend, key help, splash screen, and status banner."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import pygame

from ui.constants import (
    COLOR_HUD_BG, COLOR_HUD_BORDER, COLOR_HUD_DIM, COLOR_HUD_TEXT, COLOR_WARNING,
    HUD_BLINK_MS, LEGEND_ITEMS,
)
from ui.helpers import render_text

KEY_HELP = (
    "E      Emergency on/off",
    "M      Cycle controller mode",
    "R      Restart simulation",
    "L      Toggle legend",
    "F12    Screenshot",
    "ESC    Quit",
)


def draw_hud(
    surface: pygame.Surface,
    font: pygame.font.Font,
    font_tiny: pygame.font.Font,
    overview: Mapping[str, Any],
    source_label: str,
    time_s: float,
) -> None:
    """Top-left panel with the headline numbers from *overview*."""
    lines = [
        f"SOURCE   {source_label.upper()}",
        f"MODE     {overview.get('mode', '?')}",
        f"TICK     {overview.get('tick', 0)}",
        f"VEHICLES {overview.get('vehicle_count', 0)}",
    ]
    if "held_count" in overview:
        lines.append(f"HELD     {overview['held_count']}")
    share = overview.get("green_share")
    if share:
        lines.append(f"NS/EW    {share['ns']:.0%} / {share['ew']:.0%}")
    if "malformed" in overview:
        lines.append(f"FEED     ok {overview.get('accepted', 0)}  "
                     f"bad {overview['malformed']}  down {overview.get('unavailable', 0)}")

    row_h = 16
    panel = pygame.Rect(12, 12, 250, 14 + row_h * (len(lines) + 1))
    pygame.draw.rect(surface, COLOR_HUD_BG, panel, border_radius=6)
    pygame.draw.rect(surface, COLOR_HUD_BORDER, panel, width=1, border_radius=6)

    y = panel.y + 8
    for line in lines:
        render_text(surface, font, line, (panel.x + 10, y))
        y += row_h
    if overview.get("emergency_active"):
        blink_on = int((time_s * 1000) // HUD_BLINK_MS) % 2 == 0
        if blink_on:
            render_text(surface, font_tiny, "EMERGENCY ACTIVE", (panel.x + 10, y), COLOR_WARNING)


def draw_legend(surface: pygame.Surface, font_tiny: pygame.font.Font, width: int, height: int) -> None:
    x = width - 130
    y = height - 16 - len(LEGEND_ITEMS) * 18 - 8
    box = pygame.Rect(x - 6, y - 4, 122, len(LEGEND_ITEMS) * 18 + 10)
    pygame.draw.rect(surface, COLOR_HUD_BG, box, border_radius=4)
    pygame.draw.rect(surface, COLOR_HUD_BORDER, box, width=1, border_radius=4)
    for label, color in LEGEND_ITEMS:
        pygame.draw.circle(surface, color, (x + 4, y + 6), 4)
        render_text(surface, font_tiny, label, (x + 14, y), (200, 200, 200))
        y += 18


def draw_splash(
    surface: pygame.Surface,
    font_title: pygame.font.Font,
    font_small: pygame.font.Font,
    font_tiny: pygame.font.Font,
    time_s: float,
) -> None:
    w, h = surface.get_size()
    render_text(surface, font_title, "SIGNAL GRID", (w // 2, h // 2 - 30), (240, 240, 240), "center")
    if int(time_s * 2) % 2 == 0:
        render_text(surface, font_small, "Press any key to start", (w // 2, h // 2 + 20),
                    (160, 160, 160), "center")
    y = h // 2 + 60
    for line in KEY_HELP:
        render_text(surface, font_tiny, line, (w // 2, y), COLOR_HUD_DIM, "center")
        y += 16


def draw_banner(surface: pygame.Surface, font: pygame.font.Font, message: Optional[str]) -> None:
    """One-line status message along the bottom edge."""
    if not message:
        return
    w, h = surface.get_size()
    render_text(surface, font, message, (w // 2, h - 20), COLOR_HUD_TEXT, "center")
