#!/usr/bin/env python3
"""
display/reconciler.py
=====================
Continuous motion from sparse snapshots.

:class:`SnapshotReconciler` keeps the latest authoritative
:class:`~gridsim.entities.Snapshot` as its interpolation *target* and,
for every vehicle, an *anchor*: the position it was displayed at when
that snapshot arrived.  Between snapshots each vehicle slides linearly
from anchor to target.  Three rules keep the picture honest:

* **Re-anchoring**: a new snapshot starts from what is on screen, not
  from the previous target, so a late snapshot never causes a jump back.
* **Respawn snap**: a delta of ``respawn_threshold`` or more is a
  respawn, not motion; the vehicle is drawn at its target at once.
* **Red-light clamp**: checked every frame against the interpolated
  position.  A vehicle that would be drawn just past a non-green stop
  line (within ``overshoot_tolerance``) is drawn on it instead.  Vehicles
  that were already past the line when the snapshot arrived are left
  alone.  Emergency vehicles are exempt.  The clamp only affects what is
  displayed.

Interpolation is vectorised with numpy over the whole snapshot.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from gridsim.entities import (
    EmergencyVehicle,
    IntersectionStatus,
    SignalColor,
    Snapshot,
    Vehicle,
    VehicleType,
)
from gridsim.errors import GridIndexError
from gridsim.network import GridTopology

log = logging.getLogger("reconciler")

EMPTY_SNAPSHOT = Snapshot(intersections=(), vehicles=(), emergency=None, timestamp=0.0, tick=0)


@dataclass(frozen=True)
class ReconcilePolicy:
    """Display-side tunables."""

    interval_s: float = 0.1
    """Expected time between snapshots; progress reaches 1 after it."""

    respawn_threshold: float = 100.0
    """Position delta at or above which a vehicle snaps to its target."""

    approach_window: float = 50.0
    """How far before a stop position the red-light clamp engages."""

    overshoot_tolerance: float = 5.0
    """How far past a stop position a vehicle still counts as approaching."""

    stop_buffer: float = 35.0
    """Distance from the intersection centre to the stop position."""

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError("interval_s must be positive")


@dataclass(frozen=True)
class _Frame:
    """Everything needed to draw between two snapshots (swapped atomically)."""

    snapshot: Snapshot
    vehicles: Tuple[Vehicle, ...]
    start: np.ndarray
    target: np.ndarray
    sign: np.ndarray
    snap: np.ndarray
    stops: np.ndarray       # (vehicles, lines); NaN where no clamp applies
    anchor_time: float


class SnapshotReconciler:
    """Turns a stream of snapshots into smooth display positions.

    Parameters
    ----------
    topology : GridTopology
        Grid geometry, used to locate stop lines and validate lanes.
    policy : ReconcilePolicy or None
        Display tunables.
    clock : callable
        Monotonic time source in seconds.
    """

    def __init__(
        self,
        topology: GridTopology,
        policy: Optional[ReconcilePolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.topology = topology
        self.policy = policy or ReconcilePolicy()
        self._clock = clock
        self._frame: Optional[_Frame] = None
        self._ingest_lock = threading.Lock()

    # ── ingest ────────────────────────────────────────────────────────────

    def ingest(self, snapshot: Snapshot, now: Optional[float] = None) -> bool:
        """Adopt *snapshot* as the new target.

        Returns False (and changes nothing) when the snapshot is not newer
        than the current target.
        """
        with self._ingest_lock:
            now = self._clock() if now is None else now
            previous = self._frame
            if previous is not None and snapshot.timestamp <= previous.snapshot.timestamp:
                log.debug("Ignoring stale snapshot t=%.3f (have t=%.3f)",
                          snapshot.timestamp, previous.snapshot.timestamp)
                return False

            shown: Dict[str, float] = {}
            if previous is not None:
                shown = {
                    v.id: float(p)
                    for v, p in zip(previous.vehicles, self._positions(previous, now))
                }

            vehicles = self._renderable(snapshot)
            lamps = snapshot.intersection_map()
            n = len(vehicles)
            start = np.empty(n, dtype=float)
            target = np.empty(n, dtype=float)
            sign = np.empty(n, dtype=float)
            stops = np.full((n, self.topology.size), np.nan)
            for i, v in enumerate(vehicles):
                anchor = shown.get(v.id, v.position)
                start[i] = anchor
                target[i] = v.position
                sign[i] = v.direction.sign
                if v.type is not VehicleType.EMERGENCY:
                    stops[i] = self._red_stops(v, anchor, lamps)
            snap = np.abs(target - start) >= self.policy.respawn_threshold

            self._frame = _Frame(
                snapshot=snapshot,
                vehicles=vehicles,
                start=start,
                target=target,
                sign=sign,
                snap=snap,
                stops=stops,
                anchor_time=now,
            )
            return True

    def _renderable(self, snapshot: Snapshot) -> Tuple[Vehicle, ...]:
        candidates: List[Vehicle] = list(snapshot.vehicles)
        if snapshot.emergency is not None and snapshot.emergency.active:
            candidates.append(snapshot.emergency.as_vehicle())
        kept = []
        for v in candidates:
            try:
                lane = self.topology.parse_lane_id(v.lane_id)
            except GridIndexError:
                log.debug("Dropping %s: lane %r is not on this grid", v.id, v.lane_id)
                continue
            if lane.axis is not v.axis:
                log.debug("Dropping %s: %s does not run along %s", v.id, v.direction.value, lane.id)
                continue
            kept.append(v)
        return tuple(kept)

    def _red_stops(
        self,
        vehicle: Vehicle,
        anchor: float,
        lamps: Dict[str, IntersectionStatus],
    ) -> np.ndarray:
        """Stop positions *vehicle* may have to be held at, NaN elsewhere.

        One slot per stop line on the lane.  A slot is filled when the
        governing signal is not green and *anchor* has not crossed it yet.
        """
        lane = self.topology.parse_lane_id(vehicle.lane_id)
        sign = vehicle.direction.sign
        out = np.full(self.topology.size, np.nan)
        for i, line in enumerate(self.topology.stop_lines(lane.axis, lane.index)):
            status = lamps.get(self.topology.intersection_for(lane, i))
            if status is None or status.signal_for(lane.axis) is SignalColor.GREEN:
                continue
            stop = line - sign * self.policy.stop_buffer
            if sign * (stop - anchor) >= 0:
                out[i] = stop
        return out

    # ── display ───────────────────────────────────────────────────────────

    def progress(self, now: Optional[float] = None) -> float:
        frame = self._frame
        if frame is None:
            return 0.0
        now = self._clock() if now is None else now
        return self._progress(frame, now)

    def _progress(self, frame: _Frame, now: float) -> float:
        return float(np.clip((now - frame.anchor_time) / self.policy.interval_s, 0.0, 1.0))

    def _positions(self, frame: _Frame, now: float) -> np.ndarray:
        progress = self._progress(frame, now)
        pos = frame.start + (frame.target - frame.start) * progress
        pos = np.where(frame.snap, frame.target, pos)
        if not frame.stops.size:
            return pos
        p = self.policy
        # distance still to go to each red stop, measured from the interpolated value
        ahead = frame.sign[:, None] * (frame.stops - pos[:, None])
        with np.errstate(invalid="ignore"):
            approaching = (ahead > -p.overshoot_tolerance) & (ahead < p.approach_window)
            over = approaching & (ahead < 0) & ~frame.snap[:, None]
        held = over.any(axis=1)
        line = frame.stops[np.arange(len(pos)), over.argmax(axis=1)]
        return np.where(held, line, pos)

    def display_vehicles(self, now: Optional[float] = None) -> List[Vehicle]:
        """Interpolated vehicles (the emergency vehicle included) at *now*."""
        frame = self._frame
        if frame is None:
            return []
        now = self._clock() if now is None else now
        positions = self._positions(frame, now)
        return [
            replace(v, position=float(p))
            for v, p in zip(frame.vehicles, positions)
        ]

    def display_snapshot(self, now: Optional[float] = None) -> Snapshot:
        """The latest snapshot with every position replaced by its display value."""
        frame = self._frame
        if frame is None:
            return EMPTY_SNAPSHOT
        emergency: Optional[EmergencyVehicle] = frame.snapshot.emergency
        vehicles = []
        for v in self.display_vehicles(now):
            if emergency is not None and v.id == emergency.id:
                emergency = replace(emergency, position=v.position)
            else:
                vehicles.append(v)
        return replace(frame.snapshot, vehicles=tuple(vehicles), emergency=emergency)

    # ── accessors ─────────────────────────────────────────────────────────

    def latest(self) -> Optional[Snapshot]:
        frame = self._frame
        return frame.snapshot if frame is not None else None

    def intersections(self) -> Dict[str, IntersectionStatus]:
        frame = self._frame
        return frame.snapshot.intersection_map() if frame is not None else {}

    def emergency(self) -> Optional[EmergencyVehicle]:
        frame = self._frame
        return frame.snapshot.emergency if frame is not None else None
