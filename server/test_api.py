#!/usr/bin/env python3
"""
Authority API tests through FastAPI's ``TestClient`` (no network).
"""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from feed.snapshot import decode_snapshot
from gridsim.sim_bridge import SimBridge
from server.api import create_app


class AuthorityApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bridge = SimBridge(seed=11)
        for _ in range(30):
            self.bridge.step_once()
        self.client = TestClient(create_app(self.bridge, manage_bridge=False))

    def test_grid_state_decodes(self) -> None:
        resp = self.client.get("/api/grid/state")
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(len(payload["intersections"]), 25)
        self.assertIn("nsSignal", payload["intersections"][0])
        snap = decode_snapshot(payload)
        self.assertEqual(snap.tick, 30)

    def test_emergency_lifecycle(self) -> None:
        self.assertEqual(self.client.get("/api/emergency/state").json(), {"emergency": None})
        resp = self.client.post("/api/emergency/start", json={})
        self.assertEqual(resp.status_code, 200)
        emg = resp.json()["emergency"]
        self.assertEqual(emg["laneId"], "H0")
        self.assertEqual(emg["direction"], "east")
        self.assertTrue(self.client.get("/api/grid/overview").json()["emergency_active"])

        resp = self.client.post("/api/emergency/stop")
        self.assertEqual(resp.json(), {"emergency": None})
        self.assertIsNone(self.client.get("/api/emergency/state").json()["emergency"])

    def test_emergency_bad_lane_rejected(self) -> None:
        self.assertEqual(self.client.post("/api/emergency/start", json={"laneId": "H9"}).status_code, 400)
        resp = self.client.post("/api/emergency/start", json={"laneId": "H1", "direction": "south"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post("/api/emergency/start", json={"direction": "sideways"})
        self.assertEqual(resp.status_code, 422)

    def test_mode_change(self) -> None:
        resp = self.client.post("/api/simulation/mode", json={"mode": "HEURISTIC"})
        self.assertEqual(resp.json(), {"mode": "HEURISTIC"})
        self.assertEqual(self.client.get("/api/grid/overview").json()["mode"], "HEURISTIC")
        self.assertEqual(self.client.post("/api/simulation/mode", json={"mode": "TURBO"}).status_code, 422)

    def test_timing_updates(self) -> None:
        resp = self.client.post("/api/intersections/I-101/timing", json={"nsGreenTime": 20})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"id": "I-101", "nsGreenTime": 20.0, "ewGreenTime": None})
        self.assertEqual(self.bridge.world.intersection("I-101").ns_green_s, 20.0)

    def test_timing_errors(self) -> None:
        post = self.client.post
        self.assertEqual(post("/api/intersections/I-999/timing", json={"nsGreenTime": 20}).status_code, 404)
        self.assertEqual(post("/api/intersections/I-101/timing", json={"nsGreenTime": 5}).status_code, 400)
        self.assertEqual(post("/api/intersections/I-101/timing", json={}).status_code, 422)
        self.assertEqual(post("/api/intersections/I-101/timing", json={"ewGreenTime": -1}).status_code, 422)

    def test_restart(self) -> None:
        resp = self.client.post("/api/simulation/restart", json={"seed": 4})
        self.assertEqual(resp.json(), {"restarted": True, "seed": 4})
        self.assertEqual(self.client.get("/api/grid/state").json()["tick"], 0)


class PushTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bridge = SimBridge(seed=11)
        self.bridge.step_once()
        self.client = TestClient(create_app(self.bridge, manage_bridge=False, push_interval_s=0.01))

    def test_pushes_current_snapshot_on_connect(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            message = ws.receive_json()
        self.assertEqual(message["type"], "SIMULATION_UPDATE")
        self.assertEqual(decode_snapshot(message["payload"]).tick, 1)

    def test_pushes_each_newer_snapshot(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            first = decode_snapshot(ws.receive_json()["payload"])
            self.bridge.step_once()
            second = decode_snapshot(ws.receive_json()["payload"])
        self.assertEqual((first.tick, second.tick), (1, 2))
        self.assertGreater(second.timestamp, first.timestamp)


class LifespanTests(unittest.TestCase):
    def test_bridge_runs_only_while_serving(self) -> None:
        bridge = SimBridge(seed=1)
        with TestClient(create_app(bridge)) as client:
            self.assertTrue(bridge.running)
            self.assertEqual(client.get("/api/grid/state").status_code, 200)
        self.assertFalse(bridge.running)


if __name__ == "__main__":
    unittest.main()
