"""
gridsim/integrator.py
=====================
One motion step for the whole population.

:func:`advance` is pure and reads every constraint from the population
as it was at the *start* of the step, so the result does not depend on
the order vehicles are visited in.  Each vehicle either moves its full
``speed`` along its travel direction or stays put (binary go / no-go).

Two rules suppress motion:

* **Signal compliance**: the vehicle would reach the stop offset of a
  RED line it has not yet crossed.  Emergency vehicles are exempt.
* **Car following**: the nearest vehicle ahead on the same lane and
  direction is closer than the safety distance plus one step.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from gridsim.entities import Intersection, SignalColor, Vehicle, VehicleType
from gridsim.network import GridTopology
from gridsim.traffic_policy import GridPolicy, safety_distance, stop_offset


# ── Rules ─────────────────────────────────────────────────────────────────────

def blocked_by_signal(
    vehicle: Vehicle,
    signals: Mapping[str, Intersection],
    topology: GridTopology,
    policy: GridPolicy,
) -> bool:
    """True when moving this step would carry the front bumper past the
    stop offset of a RED line the vehicle has not crossed yet."""
    if vehicle.type is VehicleType.EMERGENCY:
        return False
    lane = topology.parse_lane_id(vehicle.lane_id)
    sign = vehicle.direction.sign
    nxt = vehicle.position + vehicle.speed * sign
    front = nxt + sign * vehicle.half_length
    for i, line in enumerate(topology.stop_lines(lane.axis, lane.index)):
        it = signals.get(topology.intersection_for(lane, i))
        if it is None or it.signal_for(lane.axis) is not SignalColor.RED:
            continue
        offset = stop_offset(line, vehicle.direction, policy)
        not_crossed = sign * (vehicle.position - offset) < 0
        reaches = sign * (front - offset) >= 0
        if not_crossed and reaches:
            return True
    return False


def find_leader(
    vehicle: Vehicle,
    same_stream: Sequence[Vehicle],
    policy: GridPolicy,
) -> Optional[Tuple[Vehicle, float]]:
    """Nearest vehicle ahead within ``policy.lookahead`` and its gap."""
    sign = vehicle.direction.sign
    best: Optional[Tuple[Vehicle, float]] = None
    for other in same_stream:
        if other.id == vehicle.id:
            continue
        gap = sign * (other.position - vehicle.position)
        if gap <= 0 or gap > policy.lookahead:
            continue
        if best is None or gap < best[1]:
            best = (other, gap)
    return best


def blocked_by_leader(
    vehicle: Vehicle,
    same_stream: Sequence[Vehicle],
    policy: GridPolicy,
) -> bool:
    found = find_leader(vehicle, same_stream, policy)
    if found is None:
        return False
    leader, gap = found
    return gap < safety_distance(vehicle, leader, policy) + vehicle.speed


# ── Step ──────────────────────────────────────────────────────────────────────

def advance(
    vehicles: Sequence[Vehicle],
    intersections: Sequence[Intersection],
    topology: GridTopology,
    policy: GridPolicy,
) -> Tuple[Vehicle, ...]:
    """Advance every vehicle by one motion step.

    Parameters
    ----------
    vehicles : sequence of Vehicle
        Start-of-step population, the emergency vehicle included.
    intersections : sequence of Intersection
        Signal state for this step.

    Returns
    -------
    tuple of Vehicle
        New vehicles in input order; ``held`` records suppression.
    """
    signals: Dict[str, Intersection] = {it.id: it for it in intersections}
    streams: Dict[Tuple[str, object], List[Vehicle]] = defaultdict(list)
    for v in vehicles:
        streams[(v.lane_id, v.direction)].append(v)

    moved = []
    for v in vehicles:
        held = (
            blocked_by_signal(v, signals, topology, policy)
            or blocked_by_leader(v, streams[(v.lane_id, v.direction)], policy)
        )
        if held:
            moved.append(v if v.held else replace(v, held=True))
        else:
            moved.append(replace(v, position=v.position + v.speed * v.direction.sign, held=False))
    return tuple(moved)
