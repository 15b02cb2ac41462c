"""
gridsim/signals.py
==================
Two-phase signal state machine with emergency preemption.

Every transition here is pure: it takes a tuple of frozen
:class:`~gridsim.entities.Intersection` objects and returns a new tuple.
The phase type has exactly two values, so an intersection is always
either ``NS_GREEN`` or ``EW_GREEN``; both-green and both-red cannot be
represented.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

from gridsim.controller import ApproachLoad, SignalController
from gridsim.entities import EmergencyVehicle, Intersection, Phase
from gridsim.network import GridTopology
from gridsim.traffic_policy import GridPolicy

log = logging.getLogger("signals")


def initial_intersections(
    topology: GridTopology,
    controller: SignalController,
    policy: GridPolicy,
    rng: random.Random,
) -> Tuple[Intersection, ...]:
    """Build the starting signal plan.

    Even row-major indices start ``NS_GREEN``, odd ones ``EW_GREEN``, so
    neighbouring intersections are staggered.
    """
    result = []
    for idx, (iid, row, col) in enumerate(topology.intersection_coords()):
        phase = Phase.NS_GREEN if idx % 2 == 0 else Phase.EW_GREEN
        seed = Intersection(id=iid, row=row, col=col, phase=phase, timer=0.0)
        timer = controller.green_duration(seed, phase, None, rng)
        result.append(replace(seed, timer=timer))
    return tuple(result)


def preemption_corridor(
    emergency: Optional[EmergencyVehicle],
    topology: GridTopology,
    policy: GridPolicy,
) -> FrozenSet[str]:
    """Intersections on the emergency lane the vehicle has not yet cleared.

    An intersection leaves the corridor once the vehicle is more than
    ``policy.preempt_release_m`` past it.
    """
    if emergency is None or not emergency.active:
        return frozenset()
    lane = topology.parse_lane_id(emergency.lane_id)
    sign = emergency.direction.sign
    ids = []
    for i, line in enumerate(topology.stop_lines(lane.axis, lane.index)):
        if sign * (emergency.position - line) <= policy.preempt_release_m:
            ids.append(topology.intersection_for(lane, i))
    return frozenset(ids)


def tick_signals(
    intersections: Sequence[Intersection],
    topology: GridTopology,
    controller: SignalController,
    loads: Dict[str, ApproachLoad],
    emergency: Optional[EmergencyVehicle],
    policy: GridPolicy,
    rng: random.Random,
    dt: float = 1.0,
) -> Tuple[Intersection, ...]:
    """Advance every intersection by *dt* seconds.

    Parameters
    ----------
    intersections : sequence of Intersection
        State at the start of the tick.
    loads : dict
        Approach loads by intersection id (see
        :func:`gridsim.controller.compute_loads`).
    emergency : EmergencyVehicle or None
        Active emergency; its corridor is pinned to the matching phase.

    Returns
    -------
    tuple of Intersection
        New state, same order as the input.
    """
    corridor = preemption_corridor(emergency, topology, policy)
    out = []
    for it in intersections:
        load = loads.get(it.id)
        if it.id in corridor:
            target = emergency.direction.phase
            if not it.preempted:
                log.info("Preempting %s for %s (%s)", it.id, emergency.id, target.value)
            out.append(replace(it, phase=target, timer=policy.preempt_timer_s, preempted=True))
        elif it.preempted:
            log.info("Releasing preemption at %s", it.id)
            timer = controller.green_duration(it, it.phase, load, rng)
            out.append(replace(it, timer=timer, preempted=False))
        else:
            remaining = it.timer - dt
            if remaining > 0:
                out.append(replace(it, timer=remaining))
            else:
                phase = it.phase.flipped
                timer = controller.green_duration(it, phase, load, rng)
                out.append(replace(it, phase=phase, timer=timer))
    return tuple(out)
