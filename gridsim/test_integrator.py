#!/usr/bin/env python3
"""
Motion integrator tests: red-light compliance, car following, emergency
exemption, and the two safety properties checked over long seeded runs.
"""

from __future__ import annotations

import unittest
from collections import defaultdict

from gridsim.controller import ControllerMode
from gridsim.entities import (
    Direction,
    Intersection,
    Phase,
    SignalColor,
    Vehicle,
    VehicleType,
)
from gridsim.integrator import advance, blocked_by_signal, find_leader
from gridsim.network import GridTopology
from gridsim.traffic_policy import GridPolicy, safety_distance, stop_offset
from gridsim.world import GridWorld


def _all_phase(topo: GridTopology, phase: Phase):
    return tuple(
        Intersection(iid, r, c, phase, 10.0) for iid, r, c in topo.intersection_coords()
    )


class SignalComplianceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = GridPolicy()
        self.topo = GridTopology(5)
        self.ew_red = _all_phase(self.topo, Phase.NS_GREEN)
        self.ew_green = _all_phase(self.topo, Phase.EW_GREEN)

    def test_stops_before_red_offset(self) -> None:
        # offset for line 0 eastbound is -35; car half length is 9
        car = Vehicle("A", "H0", Direction.EAST, -46.0, 2.0)
        (after,) = advance([car], self.ew_red, self.topo, self.policy)
        self.assertEqual(after.position, -46.0)
        self.assertTrue(after.held)

    def test_moves_when_short_of_offset(self) -> None:
        car = Vehicle("A", "H0", Direction.EAST, -50.0, 2.0)
        (after,) = advance([car], self.ew_red, self.topo, self.policy)
        self.assertEqual(after.position, -48.0)
        self.assertFalse(after.held)

    def test_moves_on_green(self) -> None:
        car = Vehicle("A", "H0", Direction.EAST, -46.0, 2.0, held=True)
        (after,) = advance([car], self.ew_green, self.topo, self.policy)
        self.assertEqual(after.position, -44.0)
        self.assertFalse(after.held)

    def test_westbound_uses_mirrored_offset(self) -> None:
        # line 400 westbound: offset 435
        car = Vehicle("A", "H2", Direction.WEST, 446.0, 2.0)
        self.assertTrue(blocked_by_signal(car, {i.id: i for i in self.ew_red}, self.topo, self.policy))
        self.assertEqual(stop_offset(400.0, Direction.WEST, self.policy), 435.0)

    def test_vertical_lane_follows_ns_lamp(self) -> None:
        car = Vehicle("A", "V1", Direction.SOUTH, -46.0, 2.0)
        (held,) = advance([car], self.ew_green, self.topo, self.policy)  # NS red
        (moved,) = advance([car], self.ew_red, self.topo, self.policy)   # NS green
        self.assertTrue(held.held)
        self.assertEqual(moved.position, -44.0)

    def test_vehicle_past_offset_keeps_going(self) -> None:
        car = Vehicle("A", "H0", Direction.EAST, -30.0, 2.0)
        (after,) = advance([car], self.ew_red, self.topo, self.policy)
        self.assertEqual(after.position, -28.0)

    def test_emergency_ignores_red(self) -> None:
        amb = Vehicle("E", "H0", Direction.EAST, -46.0, 3.0, VehicleType.EMERGENCY)
        (after,) = advance([amb], self.ew_red, self.topo, self.policy)
        self.assertEqual(after.position, -43.0)


class CarFollowingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = GridPolicy()
        self.topo = GridTopology(5)
        # vertical lamps only, so horizontal traffic far from lines moves freely
        self.signals = _all_phase(self.topo, Phase.EW_GREEN)

    def test_follower_holds_inside_safety_gap(self) -> None:
        # safety 9 + 9 + 15 = 33, plus speed 2
        follower = Vehicle("F", "H0", Direction.EAST, 10.0, 2.0)
        leader = Vehicle("L", "H0", Direction.EAST, 40.0, 2.0)
        after = {v.id: v for v in advance([follower, leader], self.signals, self.topo, self.policy)}
        self.assertEqual(after["F"].position, 10.0)
        self.assertTrue(after["F"].held)
        self.assertEqual(after["L"].position, 42.0)

    def test_follower_moves_outside_safety_gap(self) -> None:
        follower = Vehicle("F", "H0", Direction.EAST, 10.0, 2.0)
        leader = Vehicle("L", "H0", Direction.EAST, 45.0, 2.0)
        after = {v.id: v for v in advance([follower, leader], self.signals, self.topo, self.policy)}
        self.assertEqual(after["F"].position, 12.0)

    def test_other_direction_and_lane_ignored(self) -> None:
        me = Vehicle("M", "H0", Direction.EAST, 10.0, 2.0)
        oncoming = Vehicle("O", "H0", Direction.WEST, 20.0, 2.0)
        other_lane = Vehicle("X", "H1", Direction.EAST, 20.0, 2.0)
        after = {v.id: v for v in advance([me, oncoming, other_lane], self.signals, self.topo, self.policy)}
        self.assertEqual(after["M"].position, 12.0)

    def test_emergency_still_follows(self) -> None:
        amb = Vehicle("E", "H0", Direction.EAST, 10.0, 3.0, VehicleType.EMERGENCY)
        leader = Vehicle("L", "H0", Direction.EAST, 40.0, 2.0, held=True)
        (after, _) = advance([amb, leader], self.signals, self.topo, self.policy)
        self.assertEqual(after.position, 10.0)

    def test_find_leader_respects_lookahead(self) -> None:
        me = Vehicle("M", "H0", Direction.WEST, 300.0, 2.0)
        near = Vehicle("N", "H0", Direction.WEST, 200.0, 2.0)
        far = Vehicle("FAR", "H0", Direction.WEST, 100.0, 2.0)
        behind = Vehicle("B", "H0", Direction.WEST, 350.0, 2.0)
        leader, gap = find_leader(me, [me, near, far, behind], self.policy)
        self.assertEqual(leader.id, "N")
        self.assertEqual(gap, 100.0)
        self.assertIsNone(find_leader(me, [me, far, behind], self.policy))

    def test_order_independent(self) -> None:
        a = Vehicle("A", "H0", Direction.EAST, 10.0, 2.0)
        b = Vehicle("B", "H0", Direction.EAST, 40.0, 2.0)
        c = Vehicle("C", "H0", Direction.EAST, 80.0, 2.5)
        forward = {v.id: v for v in advance([a, b, c], self.signals, self.topo, self.policy)}
        backward = {v.id: v for v in advance([c, b, a], self.signals, self.topo, self.policy)}
        self.assertEqual(forward, backward)


class LongRunPropertyTests(unittest.TestCase):
    """Seeded runs checked step by step against the two safety properties."""

    def _run_checked(self, world: GridWorld, steps: int) -> None:
        policy = world.policy
        topo = world.topology
        for _ in range(steps):
            before = {v.id: v for v in world.vehicles}
            world.step()
            lamps = {it.id: it for it in world.intersections}

            streams = defaultdict(list)
            movers = list(world.vehicles)
            if world.emergency is not None:
                movers.append(world.emergency.as_vehicle())
            for v in movers:
                streams[(v.lane_id, v.direction)].append(v)
            for (_, direction), stream in streams.items():
                stream.sort(key=lambda v: direction.sign * v.position)
                for rear, front in zip(stream, stream[1:]):
                    gap = direction.sign * (front.position - rear.position)
                    self.assertGreaterEqual(
                        gap, safety_distance(rear, front, policy) - 1e-9,
                        msg=f"{rear.id} -> {front.id} gap {gap:.2f}",
                    )

            for v in world.vehicles:
                prev = before.get(v.id)
                if prev is None or v.type is VehicleType.EMERGENCY:
                    continue
                lane = topo.parse_lane_id(v.lane_id)
                sign = v.direction.sign
                for i, line in enumerate(topo.stop_lines(lane.axis, lane.index)):
                    it = lamps[topo.intersection_for(lane, i)]
                    if it.signal_for(lane.axis) is not SignalColor.RED:
                        continue
                    offset = stop_offset(line, v.direction, policy)
                    if sign * (prev.position - offset) < 0:
                        self.assertLess(
                            sign * (v.position - offset), 0,
                            msg=f"{v.id} ran the red at {it.id}",
                        )

    def test_fixed_mode_run(self) -> None:
        self._run_checked(GridWorld(seed=11), 3000)

    def test_heuristic_mode_with_emergency(self) -> None:
        world = GridWorld(seed=23, mode=ControllerMode.HEURISTIC)
        world.run(600)
        world.start_emergency("V2", Direction.NORTH)
        self._run_checked(world, 2000)


if __name__ == "__main__":
    unittest.main()
