"""
gridsim/sim_bridge.py
=====================
Background-thread authority running :class:`~gridsim.world.GridWorld`
in real time.  Readers (the HTTP server, the local display source) poll
the bridge for the latest snapshot without blocking.

Public API
----------
* ``get_snapshot()``            → ``Snapshot``
* ``get_overview()``            → ``dict``
* ``set_mode(mode)``            → ``None``
* ``set_green_durations(...)``  → ``Intersection``
* ``start_emergency(...)``      → ``EmergencyVehicle``
* ``stop_emergency()``          → ``None``
* ``restart(seed)``             → ``None``
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from gridsim.controller import ControllerMode
from gridsim.entities import Direction, EmergencyVehicle, Intersection, Snapshot
from gridsim.traffic_policy import GridPolicy
from gridsim.world import GridWorld

log = logging.getLogger("sim_bridge")


class SimBridge:
    """Simulation authority running in a background thread.

    The thread calls ``world.step()`` once per ``policy.step_s`` of wall
    time (scaled by ``speed``) and swaps the cached snapshot under a lock.
    Commands take the same lock, so they land between two steps.

    Parameters
    ----------
    seed : int or None
        Seed for reproducibility.
    policy : GridPolicy or None
        Tunable constants.
    mode : ControllerMode
        Initial signal controller mode.
    model_path : str or None
        Path to the joblib timing model.
    speed : float
        Simulated seconds per wall-clock second.
    world : GridWorld or None
        Pre-built world (overrides *seed*, *policy*, *mode*, *model_path*).
    clock : callable
        Source of snapshot timestamps.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        policy: Optional[GridPolicy] = None,
        mode: ControllerMode = ControllerMode.FIXED,
        model_path: Optional[str] = None,
        speed: float = 1.0,
        world: Optional[GridWorld] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if speed <= 0:
            raise ValueError("speed must be positive")
        self._world = world or GridWorld(
            seed=seed, policy=policy, mode=mode, model_path=model_path,
        )
        self._speed = speed
        self._clock = clock

        self._lock = threading.Lock()
        # Cached state: written by the sim thread, read by server and UI threads
        self._snapshot: Snapshot = self._world.snapshot(timestamp=self._clock())
        self._overview: Dict[str, Any] = self._world.overview()

        self._thread: Optional[threading.Thread] = None
        self._running = False

    @property
    def world(self) -> GridWorld:
        return self._world

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="SimBridge"
        )
        self._thread.start()
        log.info("SimBridge started (step %.3f s, speed x%.2f)",
                 self._world.policy.step_s, self._speed)

    def stop(self) -> None:
        """Signal the thread to stop and wait for it to join."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        log.info("SimBridge stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ── Read API ──────────────────────────────────────────────────────────────

    def get_snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    def get_overview(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._overview)

    # ── Commands ──────────────────────────────────────────────────────────────

    def set_mode(self, mode) -> None:
        with self._lock:
            self._world.set_mode(mode)
            self._publish()

    def set_green_durations(
        self,
        intersection_id: str,
        ns_green_s: Optional[float] = None,
        ew_green_s: Optional[float] = None,
    ) -> Intersection:
        with self._lock:
            updated = self._world.set_green_durations(intersection_id, ns_green_s, ew_green_s)
            self._publish()
            return updated

    def start_emergency(
        self,
        lane_id: Optional[str] = None,
        direction: Optional[Direction] = None,
    ) -> EmergencyVehicle:
        with self._lock:
            emergency = self._world.start_emergency(lane_id, direction)
            self._publish()
            return emergency

    def stop_emergency(self) -> None:
        with self._lock:
            self._world.stop_emergency()
            self._publish()

    def restart(self, seed: Optional[int] = None) -> None:
        """Re-initialise the world so the run replays from *seed*."""
        with self._lock:
            self._world.restart(seed)
            self._publish()
        log.info("SimBridge restarted (seed=%s)", seed)

    def step_once(self) -> Snapshot:
        """Advance one step synchronously (headless runs and tests)."""
        with self._lock:
            self._world.step()
            return self._publish()

    # ── Background loop ───────────────────────────────────────────────────────

    def _loop(self) -> None:
        dt = self._world.policy.step_s / self._speed
        while self._running:
            t0 = time.perf_counter()
            try:
                self.step_once()
            except Exception:
                log.exception("SimBridge tick error")
            time.sleep(max(0.0, dt - (time.perf_counter() - t0)))

    def _publish(self) -> Snapshot:
        # Caller holds the lock; atomic swap of both cached views.
        # Timestamps stay strictly increasing so readers never drop a publish.
        stamp = max(self._clock(), self._snapshot.timestamp + 1e-6)
        snap = self._world.snapshot(timestamp=stamp)
        self._snapshot = snap
        self._overview = self._world.overview()
        return snap
