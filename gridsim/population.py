"""
gridsim/population.py
=====================
Spawn and despawn rules for the vehicle population.

One call to :func:`spawn_vehicle` is one spawn cycle: at most one vehicle
enters per cycle.  All randomness comes from the ``random.Random``
instance passed in, so a run is reproducible from its seed.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence, Tuple

from gridsim.entities import Vehicle, VehicleType
from gridsim.network import EntryPoint, GridTopology
from gridsim.traffic_policy import GridPolicy

_SPAWN_TYPES = (VehicleType.CAR, VehicleType.TRUCK, VehicleType.BUS)


def vehicle_id(seq: int) -> str:
    return f"V-{seq:06d}"


def entry_is_clear(
    vehicles: Sequence[Vehicle],
    entry: EntryPoint,
    policy: GridPolicy,
) -> bool:
    """True when no vehicle on the entry's lane and direction is within
    ``policy.spawn_clearance`` of the entry position."""
    for v in vehicles:
        if v.lane_id != entry.lane.id or v.direction is not entry.direction:
            continue
        if abs(v.position - entry.position) < policy.spawn_clearance:
            return False
    return True


def spawn_vehicle(
    vehicles: Sequence[Vehicle],
    topology: GridTopology,
    policy: GridPolicy,
    rng: random.Random,
    emergency_active: bool,
    seq: int,
    blockers: Sequence[Vehicle] = (),
) -> Optional[Vehicle]:
    """Run one spawn cycle.

    Parameters
    ----------
    vehicles : sequence of Vehicle
        Current population, checked against the cap.
    emergency_active : bool
        While True a spawn may be upgraded to ``emergency``.
    seq : int
        Sequence number used for the new vehicle id.
    blockers : sequence of Vehicle
        Extra vehicles that occupy entries without counting toward the
        cap (the scenario emergency vehicle).

    Returns
    -------
    Vehicle or None
        The new vehicle, or None when the cap is reached or the chosen
        entry is occupied.
    """
    if len(vehicles) >= policy.max_vehicles:
        return None

    entry = rng.choice(topology.entry_points())
    if not (entry_is_clear(vehicles, entry, policy)
            and entry_is_clear(blockers, entry, policy)):
        return None

    vtype = rng.choice(_SPAWN_TYPES)
    if emergency_active and rng.random() < policy.emergency_spawn_probability:
        vtype = VehicleType.EMERGENCY
    speed = rng.uniform(policy.min_speed, policy.max_speed)

    return Vehicle(
        id=vehicle_id(seq),
        lane_id=entry.lane.id,
        direction=entry.direction,
        position=entry.position,
        speed=speed,
        type=vtype,
    )


def despawn_vehicles(
    vehicles: Sequence[Vehicle],
    topology: GridTopology,
) -> Tuple[Tuple[Vehicle, ...], int]:
    """Drop vehicles that have left the visible range.

    Returns ``(kept, removed_count)``.
    """
    kept = tuple(v for v in vehicles if not topology.is_past_exit(v.position, v.direction))
    return kept, len(vehicles) - len(kept)
