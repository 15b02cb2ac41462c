#!/usr/bin/env python3
"""
Reconciler tests: interpolation, re-anchoring, respawn snaps and the
display-side red-light clamp, all driven with explicit ``now`` values.
"""

from __future__ import annotations

import unittest

from display.reconciler import EMPTY_SNAPSHOT, ReconcilePolicy, SnapshotReconciler
from gridsim.entities import (
    Direction,
    EmergencyVehicle,
    IntersectionStatus,
    SignalColor,
    Snapshot,
    Vehicle,
)
from gridsim.network import GridTopology

G, R = SignalColor.GREEN, SignalColor.RED


def _lamps(topology, ew=G, overrides=None):
    overrides = overrides or {}
    out = []
    for iid in topology.intersection_ids():
        ew_sig = overrides.get(iid, ew)
        ns_sig = R if ew_sig is G else G
        out.append(IntersectionStatus(iid, ns_signal=ns_sig, ew_signal=ew_sig, timer=5.0))
    return tuple(out)


def _car(pos, vid="V-000001", lane="H0", direction=Direction.EAST):
    return Vehicle(id=vid, lane_id=lane, direction=direction, position=pos, speed=2.0)


class ReconcilerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.topology = GridTopology(5, 100.0)
        self.rec = SnapshotReconciler(self.topology, ReconcilePolicy(interval_s=0.1), clock=lambda: 0.0)

    def _snap(self, t, *vehicles, lamps=None, emergency=None):
        return Snapshot(
            intersections=lamps if lamps is not None else _lamps(self.topology),
            vehicles=tuple(vehicles),
            emergency=emergency,
            timestamp=t,
            tick=int(t),
        )

    def _pos(self, now, vid="V-000001"):
        return {v.id: v.position for v in self.rec.display_vehicles(now)}[vid]

    def test_nothing_before_first_snapshot(self) -> None:
        self.assertEqual(self.rec.display_vehicles(1.0), [])
        self.assertIs(self.rec.display_snapshot(1.0), EMPTY_SNAPSHOT)
        self.assertIsNone(self.rec.latest())
        self.assertEqual(self.rec.intersections(), {})

    def test_midpoint_of_interval(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(10.0)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(15.0)), now=0.0)
        self.assertAlmostEqual(self._pos(0.05), 12.5)
        self.assertAlmostEqual(self._pos(0.1), 15.0)

    def test_interpolation_is_monotonic(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(220.0, direction=Direction.WEST)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(150.0, direction=Direction.WEST)), now=0.0)
        samples = [self._pos(k * 0.01) for k in range(12)]
        for earlier, later in zip(samples, samples[1:]):
            self.assertLessEqual(later, earlier)
        self.assertAlmostEqual(samples[-1], 150.0)

    def test_respawn_snaps_immediately(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(480.0)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(-100.0)), now=0.0)
        self.assertEqual(self._pos(0.001), -100.0)

    def test_reanchors_at_displayed_position(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(10.0)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(20.0)), now=0.0)
        self.assertAlmostEqual(self._pos(0.05), 15.0)
        self.rec.ingest(self._snap(3.0, _car(30.0)), now=0.05)
        self.assertAlmostEqual(self._pos(0.05), 15.0)
        self.assertAlmostEqual(self._pos(0.10), 22.5)

    def test_new_vehicle_starts_at_its_position(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(10.0)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(12.0), _car(-90.0, vid="V-000002")), now=0.0)
        self.assertEqual(self._pos(0.0, "V-000002"), -90.0)

    def test_stale_feed_freezes_at_target(self) -> None:
        self.rec.ingest(self._snap(1.0, _car(10.0)), now=0.0)
        self.rec.ingest(self._snap(2.0, _car(18.0)), now=0.0)
        self.assertEqual(self._pos(5.0), 18.0)
        self.assertEqual(self._pos(60.0), 18.0)
        self.assertEqual(self.rec.progress(5.0), 1.0)

    def test_late_snapshot_ignored(self) -> None:
        self.assertTrue(self.rec.ingest(self._snap(2.0, _car(20.0)), now=0.0))
        self.assertFalse(self.rec.ingest(self._snap(1.0, _car(5.0)), now=0.01))
        self.assertFalse(self.rec.ingest(self._snap(2.0, _car(5.0)), now=0.01))
        self.assertEqual(self.rec.latest().timestamp, 2.0)
        self.assertEqual(self._pos(1.0), 20.0)

    def test_bad_lanes_dropped(self) -> None:
        snap = self._snap(
            1.0,
            _car(10.0),
            _car(10.0, vid="V-000002", lane="H9"),
            _car(10.0, vid="V-000003", lane="Q1"),
            _car(10.0, vid="V-000004", lane="H1", direction=Direction.SOUTH),
        )
        with self.assertLogs("reconciler", level="DEBUG"):
            self.rec.ingest(snap, now=0.0)
        self.assertEqual([v.id for v in self.rec.display_vehicles(0.0)], ["V-000001"])

    def test_emergency_included_and_split_back_out(self) -> None:
        emg = EmergencyVehicle(lane_id="H0", direction=Direction.EAST, position=0.0, speed=3.2)
        self.rec.ingest(self._snap(1.0, _car(300.0), emergency=emg), now=0.0)
        moved = EmergencyVehicle(lane_id="H0", direction=Direction.EAST, position=10.0, speed=3.2)
        self.rec.ingest(self._snap(2.0, _car(300.0), emergency=moved), now=0.0)
        ids = {v.id for v in self.rec.display_vehicles(0.05)}
        self.assertIn("EMG-1", ids)
        shown = self.rec.display_snapshot(0.05)
        self.assertAlmostEqual(shown.emergency.position, 5.0)
        self.assertEqual([v.id for v in shown.vehicles], ["V-000001"])


class RedLightClampTests(unittest.TestCase):
    def setUp(self) -> None:
        self.topology = GridTopology(5, 100.0)
        self.rec = SnapshotReconciler(self.topology, clock=lambda: 0.0)
        # EW red at I-102 (row 0, col 1): stop positions 65 eastbound, 135 westbound.
        self.red = _lamps(self.topology, overrides={"I-102": R})

    def _run(self, start, target, direction=Direction.EAST, lamps=None, emergency=False):
        lamps = self.red if lamps is None else lamps
        for t, pos in ((1.0, start), (2.0, target)):
            if emergency:
                emg = EmergencyVehicle(lane_id="H0", direction=direction, position=pos, speed=3.2)
                snap = Snapshot(lamps, (), emg, t)
            else:
                snap = Snapshot(lamps, (_car(pos, direction=direction),), None, t)
            self.rec.ingest(snap, now=0.0)

    def _at(self, now):
        return self.rec.display_vehicles(now)[0].position

    def test_eastbound_clamped_at_stop_offset(self) -> None:
        self._run(40.0, 68.0)
        self.assertAlmostEqual(self._at(0.05), 54.0)
        self.assertEqual(self._at(0.1), 65.0)

    def test_westbound_clamped_at_stop_offset(self) -> None:
        self._run(160.0, 132.0, direction=Direction.WEST)
        self.assertEqual(self._at(0.1), 135.0)

    def test_green_not_clamped(self) -> None:
        self._run(40.0, 68.0, lamps=_lamps(self.topology))
        self.assertEqual(self._at(0.1), 68.0)

    def test_outside_approach_window_not_clamped(self) -> None:
        self._run(-20.0, 10.0)
        self.assertEqual(self._at(0.1), 10.0)

    def test_beyond_tolerance_released(self) -> None:
        self._run(40.0, 80.0)
        self.assertEqual(self._at(0.07), 65.0)
        self.assertEqual(self._at(0.1), 80.0)

    def test_emergency_exempt(self) -> None:
        self._run(40.0, 68.0, emergency=True)
        self.assertEqual(self._at(0.1), 68.0)

    def test_already_past_line_tracks_authority(self) -> None:
        # anchored 3 past a red stop position, then driven on by the authority
        shown = []
        for k in range(12):
            snap = Snapshot(self.red, (_car(68.0 + 10.0 * k),), None, float(k + 1))
            self.rec.ingest(snap, now=0.1 * k)
            shown.append(self._at(0.1 * k + 0.1))
        for k, pos in enumerate(shown):
            self.assertAlmostEqual(pos, 68.0 + 10.0 * k)

    def test_held_vehicle_released_on_next_snapshots(self) -> None:
        targets = [58.0, 68.0, 78.0, 88.0, 98.0]
        shown = []
        for k, pos in enumerate(targets):
            self.rec.ingest(Snapshot(self.red, (_car(pos),), None, float(k + 1)), now=0.1 * k)
            shown.extend(self._at(0.1 * k + 0.01 * j) for j in range(1, 11))
        for earlier, later in zip(shown, shown[1:]):
            self.assertGreaterEqual(later, earlier)
            self.assertLess(later - earlier, 10.0)
        self.assertAlmostEqual(shown[-1], 98.0)

    def test_clamped_motion_never_goes_backwards(self) -> None:
        self._run(50.0, 69.0)
        samples = [self._at(k * 0.01) for k in range(11)]
        for earlier, later in zip(samples, samples[1:]):
            self.assertGreaterEqual(later, earlier)
        self.assertEqual(samples[-1], 65.0)


if __name__ == "__main__":
    unittest.main()
