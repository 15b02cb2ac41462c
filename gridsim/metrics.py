"""
SimMetrics: running counters for one simulation run.
"""

from typing import Iterable

from gridsim.entities import Intersection, Phase


class SimMetrics:
    """
    Tracks spawn, exit and signal-share statistics for :class:`GridWorld`.

    Attributes:
        spawned (int): Vehicles created by spawn cycles.
        despawned (int): Vehicles that left the grid (throughput).
        spawn_rejections (int): Spawn cycles that produced no vehicle.
        ns_green_s (float): Intersection-seconds of north-south green.
        ew_green_s (float): Intersection-seconds of east-west green.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.spawned = 0
        self.despawned = 0
        self.spawn_rejections = 0
        self.ns_green_s = 0.0
        self.ew_green_s = 0.0

    def record_green(self, intersections: Iterable[Intersection], dt: float) -> None:
        """Credit *dt* seconds of green to the axis each intersection serves."""
        for it in intersections:
            if it.phase is Phase.NS_GREEN:
                self.ns_green_s += dt
            else:
                self.ew_green_s += dt

    def green_share(self) -> dict:
        total = self.ns_green_s + self.ew_green_s
        if total <= 0:
            return {"ns": 0.0, "ew": 0.0}
        return {"ns": self.ns_green_s / total, "ew": self.ew_green_s / total}

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Counters plus the per-axis green share.
        """
        return {
            "spawned": self.spawned,
            "despawned": self.despawned,
            "spawn_rejections": self.spawn_rejections,
            "green_share": self.green_share(),
        }
