#!/usr/bin/env python3
"""
gridsim/world.py
================
Authoritative grid world.

:class:`GridWorld` is the thin stateful shell around the pure
transitions in :mod:`gridsim.signals`, :mod:`gridsim.population` and
:mod:`gridsim.integrator`.  It owns the current intersections and
vehicles, the seeded RNG, the sim-time cadences and the emergency
scenario, and turns control commands into state changes.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from gridsim.controller import ControllerMode, SignalController, compute_loads
from gridsim.entities import (
    Direction,
    EmergencyVehicle,
    Intersection,
    Snapshot,
    Vehicle,
    directions_for,
)
from gridsim.integrator import advance
from gridsim.metrics import SimMetrics
from gridsim.network import GridTopology
from gridsim.population import despawn_vehicles, spawn_vehicle
from gridsim.signals import initial_intersections, tick_signals
from gridsim.traffic_policy import GridPolicy

log = logging.getLogger("world")


class GridWorld:
    """Signal grid with its vehicle population.

    Parameters
    ----------
    seed : int or None
        Seed for the world's ``random.Random``; same seed, same run.
    policy : GridPolicy or None
        Tunable constants; uses defaults when *None*.
    mode : ControllerMode
        Initial controller mode.
    model_path : str or None
        joblib timing model for the ML and HYBRID modes.
    controller : SignalController or None
        Pre-built controller (overrides *mode* / *model_path*).
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        policy: Optional[GridPolicy] = None,
        mode: ControllerMode = ControllerMode.FIXED,
        model_path: Optional[str] = None,
        controller: Optional[SignalController] = None,
    ) -> None:
        self.policy = policy or GridPolicy()
        self.topology = GridTopology.from_policy(self.policy)
        self.controller = controller or SignalController(
            mode=mode, policy=self.policy, model_path=model_path,
        )
        self._reset_state(seed)

    # ── initialisation / reset ────────────────────────────────────────────

    def _reset_state(self, seed: Optional[int]) -> None:
        self.seed = seed
        self._rng = random.Random(seed)
        self.intersections: Tuple[Intersection, ...] = initial_intersections(
            self.topology, self.controller, self.policy, self._rng,
        )
        self.vehicles: Tuple[Vehicle, ...] = ()
        self.emergency: Optional[EmergencyVehicle] = None
        self.metrics = SimMetrics()
        self.tick = 0
        self.sim_time = 0.0
        self._seq = 0
        self._spawn_acc = 0.0
        self._signal_acc = 0.0

    def restart(self, seed: Optional[int] = None) -> None:
        """Discard every vehicle and signal and start over from *seed*.

        The controller mode survives a restart.
        """
        self._reset_state(seed)
        log.info("World restarted (seed=%s, mode=%s)", seed, self.controller.mode.value)

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def mode(self) -> ControllerMode:
        return self.controller.mode

    @property
    def emergency_active(self) -> bool:
        return self.emergency is not None and self.emergency.active

    def intersection(self, intersection_id: str) -> Intersection:
        for it in self.intersections:
            if it.id == intersection_id:
                return it
        raise KeyError(intersection_id)

    def snapshot(self, timestamp: Optional[float] = None) -> Snapshot:
        """Immutable view of the current state.

        *timestamp* defaults to the simulated clock.
        """
        return Snapshot(
            intersections=tuple(it.status() for it in self.intersections),
            vehicles=self.vehicles,
            emergency=self.emergency,
            timestamp=self.sim_time if timestamp is None else timestamp,
            tick=self.tick,
        )

    def overview(self) -> Dict[str, object]:
        """Headline numbers for dashboards."""
        report = self.metrics.report()
        report.update({
            "tick": self.tick,
            "sim_time_s": round(self.sim_time, 3),
            "mode": self.mode.value,
            "vehicle_count": len(self.vehicles),
            "held_count": sum(1 for v in self.vehicles if v.held),
            "preempted": [it.id for it in self.intersections if it.preempted],
            "emergency_active": self.emergency_active,
        })
        return report

    # ── commands ──────────────────────────────────────────────────────────

    def set_mode(self, mode) -> None:
        self.controller.set_mode(mode)

    def set_green_durations(
        self,
        intersection_id: str,
        ns_green_s: Optional[float] = None,
        ew_green_s: Optional[float] = None,
    ) -> Intersection:
        """Configure FIXED-mode green durations for one intersection.

        The new durations apply from the next phase change.  Raises
        ``KeyError`` for an unknown id and ``ValueError`` for a duration
        outside ``[min_green_s, max_green_s]``.
        """
        current = self.intersection(intersection_id)
        for value in (ns_green_s, ew_green_s):
            if value is not None and not (
                self.policy.min_green_s <= value <= self.policy.max_green_s
            ):
                raise ValueError(
                    f"green duration {value} outside "
                    f"[{self.policy.min_green_s}, {self.policy.max_green_s}]"
                )
        updated = replace(
            current,
            ns_green_s=current.ns_green_s if ns_green_s is None else float(ns_green_s),
            ew_green_s=current.ew_green_s if ew_green_s is None else float(ew_green_s),
        )
        self.intersections = tuple(
            updated if it.id == intersection_id else it for it in self.intersections
        )
        log.info("Timing for %s: ns=%s ew=%s", intersection_id, updated.ns_green_s, updated.ew_green_s)
        return updated

    def start_emergency(
        self,
        lane_id: Optional[str] = None,
        direction: Optional[Direction] = None,
    ) -> EmergencyVehicle:
        """Launch the scenario emergency vehicle.

        It enters at the lane's entry point, or behind the rearmost vehicle
        of its stream when that one is still inside the spawn clearance.
        The corridor is preempted at once, without waiting for the next
        signal tick.
        """
        lane = self.topology.parse_lane_id(lane_id or self.policy.emergency_lane)
        if direction is None:
            direction = directions_for(lane.axis)[0]
        direction = Direction(direction)
        if direction.axis is not lane.axis:
            raise ValueError(f"direction {direction.value} does not run along lane {lane.id}")

        sign = direction.sign
        position = self.topology.entry_position(direction)
        stream = [v for v in self.vehicles if v.lane_id == lane.id and v.direction is direction]
        if stream:
            rearmost = min(stream, key=lambda v: sign * v.position)
            if sign * (rearmost.position - position) < self.policy.spawn_clearance:
                position = rearmost.position - sign * self.policy.spawn_clearance

        self.emergency = EmergencyVehicle(
            lane_id=lane.id,
            direction=direction,
            position=position,
            speed=self.policy.emergency_speed,
        )
        log.info("Emergency %s started on %s heading %s at %.1f",
                 self.emergency.id, lane.id, direction.value, position)
        self._tick_signals(0.0)
        return self.emergency

    def stop_emergency(self) -> None:
        if self.emergency is not None:
            log.info("Emergency %s stopped", self.emergency.id)
        self.emergency = None
        self._tick_signals(0.0)

    # ── stepping ──────────────────────────────────────────────────────────

    def step(self) -> Snapshot:
        """Advance one motion step of ``policy.step_s`` simulated seconds.

        Signal ticks and spawn cycles fire whenever their accumulated sim
        time reaches the configured interval; signals are updated before
        motion so the integrator sees this step's lamps.
        """
        dt = self.policy.step_s

        self._signal_acc += dt
        while self._signal_acc >= self.policy.signal_tick_s:
            self._signal_acc -= self.policy.signal_tick_s
            self._tick_signals(self.policy.signal_tick_s)

        self._spawn_acc += dt
        while self._spawn_acc >= self.policy.spawn_interval_s:
            self._spawn_acc -= self.policy.spawn_interval_s
            self.spawn_cycle()

        self._move()

        self.tick += 1
        self.sim_time += dt
        return self.snapshot()

    def run(self, steps: int) -> Snapshot:
        for _ in range(steps):
            self.step()
        return self.snapshot()

    def spawn_cycle(self) -> Optional[Vehicle]:
        """One spawn attempt; returns the new vehicle, if any."""
        blockers: List[Vehicle] = []
        if self.emergency_active:
            blockers.append(self.emergency.as_vehicle())
        vehicle = spawn_vehicle(
            self.vehicles,
            self.topology,
            self.policy,
            self._rng,
            emergency_active=self.emergency_active,
            seq=self._seq + 1,
            blockers=blockers,
        )
        if vehicle is None:
            self.metrics.spawn_rejections += 1
            return None
        self._seq += 1
        self.vehicles = self.vehicles + (vehicle,)
        self.metrics.spawned += 1
        log.debug("Spawned %s (%s) on %s heading %s",
                  vehicle.id, vehicle.type.value, vehicle.lane_id, vehicle.direction.value)
        return vehicle

    def _tick_signals(self, dt: float) -> None:
        loads = compute_loads(self.vehicles, self.topology, self.policy)
        self.intersections = tick_signals(
            self.intersections,
            self.topology,
            self.controller,
            loads,
            self.emergency,
            self.policy,
            self._rng,
            dt=dt,
        )
        self.metrics.record_green(self.intersections, dt)

    def _move(self) -> None:
        population = list(self.vehicles)
        if self.emergency_active:
            population.append(self.emergency.as_vehicle())
        moved = advance(population, self.intersections, self.topology, self.policy)

        if self.emergency_active:
            emg = moved[-1]
            moved = moved[:-1]
            if self.topology.is_past_exit(emg.position, emg.direction):
                log.info("Emergency %s left the grid", emg.id)
                self.emergency = None
            else:
                self.emergency = replace(self.emergency, position=emg.position)

        kept, removed = despawn_vehicles(moved, self.topology)
        if removed:
            self.metrics.despawned += removed
            log.debug("Despawned %d vehicle(s)", removed)
        self.vehicles = kept
