#!/usr/bin/env python3
"""
gridsim/entities.py
===================
Immutable value types shared by every simulation module.

Transitions never mutate these objects; they build new instances with
:func:`dataclasses.replace`.  The same types travel inside a
:class:`Snapshot`, which is the unit exchanged between the authority and
the display layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

EMERGENCY_ID = "EMG-1"


class SignalColor(str, Enum):
    """Lamp colour shown to one axis of an intersection."""
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"


class Phase(str, Enum):
    """Which axis of a two-phase intersection holds the green."""
    NS_GREEN = "NS_GREEN"
    EW_GREEN = "EW_GREEN"

    @property
    def flipped(self) -> "Phase":
        return Phase.EW_GREEN if self is Phase.NS_GREEN else Phase.NS_GREEN


class Axis(str, Enum):
    """Orientation of a lane."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class Direction(str, Enum):
    """Travel direction.

    ``EAST`` and ``SOUTH`` move toward increasing lane position,
    ``WEST`` and ``NORTH`` toward decreasing position.  Horizontal lanes
    carry east/west traffic, vertical lanes north/south.
    """
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def sign(self) -> int:
        """+1 when travelling toward increasing position, else -1."""
        return 1 if self in (Direction.EAST, Direction.SOUTH) else -1

    @property
    def axis(self) -> Axis:
        if self in (Direction.EAST, Direction.WEST):
            return Axis.HORIZONTAL
        return Axis.VERTICAL

    @property
    def phase(self) -> Phase:
        """Signal phase that gives this direction the green."""
        return Phase.EW_GREEN if self.axis is Axis.HORIZONTAL else Phase.NS_GREEN


_AXIS_DIRECTIONS: Dict[Axis, Tuple[Direction, Direction]] = {
    Axis.HORIZONTAL: (Direction.EAST, Direction.WEST),
    Axis.VERTICAL: (Direction.SOUTH, Direction.NORTH),
}


def directions_for(axis: Axis) -> Tuple[Direction, Direction]:
    """Return ``(positive, negative)`` travel directions along *axis*."""
    return _AXIS_DIRECTIONS[axis]


class VehicleType(str, Enum):
    CAR = "car"
    TRUCK = "truck"
    BUS = "bus"
    EMERGENCY = "emergency"


# type → (length, width) in lane units
VEHICLE_DIMENSIONS: Dict[VehicleType, Tuple[float, float]] = {
    VehicleType.CAR: (18.0, 9.0),
    VehicleType.TRUCK: (32.0, 12.0),
    VehicleType.BUS: (38.0, 12.0),
    VehicleType.EMERGENCY: (26.0, 9.0),
}


def vehicle_length(vtype: VehicleType) -> float:
    return VEHICLE_DIMENSIONS[vtype][0]


def vehicle_width(vtype: VehicleType) -> float:
    return VEHICLE_DIMENSIONS[vtype][1]


# ── Intersections ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class IntersectionStatus:
    """Observable signal state of one intersection (wire / display form)."""

    id: str
    ns_signal: SignalColor
    ew_signal: SignalColor
    timer: float

    def signal_for(self, axis: Axis) -> SignalColor:
        """Lamp governing traffic on a lane of *axis*."""
        return self.ew_signal if axis is Axis.HORIZONTAL else self.ns_signal


@dataclass(frozen=True)
class Intersection:
    """Authoritative two-phase signal controller at one grid crossing.

    Attributes
    ----------
    id : str
        Row-major identifier, e.g. ``I-101``.
    row, col : int
        Grid coordinates.
    phase : Phase
        Axis currently holding the green.  The lamp colours are derived
        from it, so both axes can never be green together.
    timer : float
        Seconds left in the current phase.
    ns_green_s, ew_green_s : float or None
        Green durations set by command; ``None`` lets the controller choose.
    preempted : bool
        True while an emergency vehicle pins this intersection.
    """

    id: str
    row: int
    col: int
    phase: Phase
    timer: float
    ns_green_s: Optional[float] = None
    ew_green_s: Optional[float] = None
    preempted: bool = False

    @property
    def ns_signal(self) -> SignalColor:
        return SignalColor.GREEN if self.phase is Phase.NS_GREEN else SignalColor.RED

    @property
    def ew_signal(self) -> SignalColor:
        return SignalColor.GREEN if self.phase is Phase.EW_GREEN else SignalColor.RED

    def signal_for(self, axis: Axis) -> SignalColor:
        return self.ew_signal if axis is Axis.HORIZONTAL else self.ns_signal

    def configured_green(self, phase: Phase) -> Optional[float]:
        return self.ns_green_s if phase is Phase.NS_GREEN else self.ew_green_s

    def status(self) -> IntersectionStatus:
        return IntersectionStatus(
            id=self.id,
            ns_signal=self.ns_signal,
            ew_signal=self.ew_signal,
            timer=self.timer,
        )


# ── Vehicles ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Vehicle:
    """One vehicle travelling along a lane.

    ``position`` is a scalar offset along the lane; ``speed`` is the
    distance covered per motion step.  ``held`` is True when the last
    step suppressed motion (red light or car ahead).
    """

    id: str
    lane_id: str
    direction: Direction
    position: float
    speed: float
    type: VehicleType = VehicleType.CAR
    held: bool = False

    @property
    def axis(self) -> Axis:
        return self.direction.axis

    @property
    def length(self) -> float:
        return vehicle_length(self.type)

    @property
    def half_length(self) -> float:
        return vehicle_length(self.type) / 2.0


@dataclass(frozen=True)
class EmergencyVehicle:
    """The single scenario-driven emergency vehicle."""

    lane_id: str
    direction: Direction
    position: float
    speed: float
    active: bool = True
    id: str = EMERGENCY_ID

    def as_vehicle(self) -> Vehicle:
        return Vehicle(
            id=self.id,
            lane_id=self.lane_id,
            direction=self.direction,
            position=self.position,
            speed=self.speed,
            type=VehicleType.EMERGENCY,
        )


# ── Snapshot ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Snapshot:
    """Authoritative grid state at one instant.

    Snapshots are ordered by ``timestamp``; a newer one always replaces
    an older one as the display target.
    """

    intersections: Tuple[IntersectionStatus, ...]
    vehicles: Tuple[Vehicle, ...]
    emergency: Optional[EmergencyVehicle]
    timestamp: float
    tick: int = 0

    def intersection_map(self) -> Dict[str, IntersectionStatus]:
        return {i.id: i for i in self.intersections}
