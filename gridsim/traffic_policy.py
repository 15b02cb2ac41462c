#!/usr/bin/env python3
"""
gridsim/traffic_policy.py
=========================
Tunable geometry, signal, spawn and motion parameters for the grid
simulation.  Every constant lives in the frozen :class:`GridPolicy`
dataclass so that experiments can swap policies without touching code.

Also provides two stateless spacing helpers:

* :func:`safety_distance`: minimum bumper-to-bumper spacing of a pair.
* :func:`stop_offset`: signed stop position in front of a stop line.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from gridsim.entities import Direction, Vehicle


@dataclass(frozen=True)
class GridPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: geometry, cadence, signal timing, preemption, spawn
    envelope, motion.
    """

    # ── Geometry ──────────────────────────────────────────────────────────
    grid_size: int = 5
    """Lanes per axis; the grid has ``grid_size ** 2`` intersections."""

    intersection_spacing: float = 100.0
    """Distance between consecutive stop lines along a lane."""

    entry_margin: float = 100.0
    """How far outside the first / last intersection vehicles enter."""

    despawn_margin: float = 250.0
    """Extra distance past the exit entry point before removal."""

    # ── Cadence (simulated seconds) ───────────────────────────────────────
    step_s: float = 0.016
    """Length of one motion step."""

    spawn_interval_s: float = 0.28
    """Time between spawn attempts."""

    signal_tick_s: float = 1.0
    """Time between signal state-machine ticks."""

    # ── Signal timing ─────────────────────────────────────────────────────
    green_choices_s: Tuple[float, float] = (10.0, 15.0)
    """Baseline and alternate green durations drawn when none is configured."""

    min_green_s: float = 10.0
    """Lower clamp on any computed green duration."""

    max_green_s: float = 60.0
    """Upper clamp on any computed green duration."""

    heuristic_base_s: float = 12.0
    """Green duration for a balanced load in HEURISTIC mode."""

    heuristic_step_s: float = 2.0
    """Seconds added per unit of load imbalance in HEURISTIC mode."""

    congestion_radius: float = 50.0
    """Approach distance within which a vehicle counts toward a load."""

    # ── Preemption ────────────────────────────────────────────────────────
    preempt_timer_s: float = 999.0
    """Sentinel timer pinned on preempted intersections."""

    preempt_release_m: float = 20.0
    """Distance past an intersection after which preemption is released."""

    emergency_lane: str = "H0"
    """Default priority corridor."""

    emergency_speed: float = 3.2
    """Distance per step covered by the scenario emergency vehicle."""

    # ── Spawn envelope ────────────────────────────────────────────────────
    max_vehicles: int = 70
    """Population cap."""

    spawn_clearance: float = 80.0
    """Minimum distance between an entry point and the nearest vehicle."""

    emergency_spawn_probability: float = 0.15
    """Chance a spawn is upgraded to ``emergency`` while the flag is on."""

    min_speed: float = 1.2
    max_speed: float = 2.7

    # ── Motion ────────────────────────────────────────────────────────────
    stop_buffer: float = 35.0
    """Distance from the intersection centre to the stop offset."""

    lookahead: float = 120.0
    """Window in which the car-following check looks for a leader."""

    safety_buffer: float = 15.0
    """Margin added to the half lengths of a following pair."""

    def __post_init__(self) -> None:
        if self.min_speed <= 0 or self.max_speed < self.min_speed:
            raise ValueError("speed range must be positive and ordered")
        if self.min_green_s > self.max_green_s:
            raise ValueError("min_green_s exceeds max_green_s")
        if self.max_vehicles < 0:
            raise ValueError("max_vehicles must be non-negative")


def safety_distance(follower: Vehicle, leader: Vehicle, policy: GridPolicy) -> float:
    """Minimum centre-to-centre spacing between *follower* and *leader*."""
    return follower.half_length + leader.half_length + policy.safety_buffer


def stop_offset(line: float, direction: Direction, policy: GridPolicy) -> float:
    """Position a vehicle travelling in *direction* must not pass on red."""
    return line - direction.sign * policy.stop_buffer
