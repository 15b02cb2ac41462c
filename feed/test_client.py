#!/usr/bin/env python3
"""
Feed and command client tests against a fake ``requests`` session.
"""

from __future__ import annotations

import unittest

import requests

from feed.client import CommandClient, FeedClient
from feed.errors import FeedUnavailableError, MalformedSnapshotError
from feed.metrics import FeedMetrics

_GOOD = {
    "tick": 1,
    "timestamp": 1.0,
    "intersections": [{"id": "I-101", "nsSignal": "RED", "ewSignal": "GREEN", "timer": 4.0}],
    "vehicles": [],
    "emergency": None,
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions)."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def _next(self):
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def get(self, url, timeout=None):
        self.calls.append(("GET", url, None, timeout))
        return self._next()

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, json, timeout))
        return self._next()

    def close(self):
        pass


class FeedClientTests(unittest.TestCase):
    def test_fetch_snapshot(self) -> None:
        session = FakeSession(FakeResponse(_GOOD))
        client = FeedClient("http://authority:8000/", timeout=0.25, session=session)
        snap = client.fetch_snapshot()
        self.assertEqual(snap.tick, 1)
        self.assertEqual(session.calls[0], ("GET", "http://authority:8000/api/grid/state", None, 0.25))
        self.assertEqual(client.metrics.accepted, 1)

    def test_network_failures_raise_unavailable(self) -> None:
        replies = (
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.Timeout("slow"),
            FakeResponse(status_code=503),
            FakeResponse(bad_json=True),
        )
        client = FeedClient("http://authority", session=FakeSession(*replies))
        for _ in replies:
            with self.assertRaises(FeedUnavailableError):
                client.fetch_snapshot()
        self.assertEqual(client.metrics.unavailable, 4)
        self.assertEqual(client.metrics.polls, 4)

    def test_malformed_snapshot(self) -> None:
        bad = dict(_GOOD, intersections=[{"id": "I-101"}])
        client = FeedClient("http://authority", session=FakeSession(FakeResponse(bad)))
        with self.assertRaises(MalformedSnapshotError):
            client.fetch_snapshot()
        self.assertEqual(client.metrics.malformed, 1)
        self.assertEqual(client.metrics.accepted, 0)


class CommandClientTests(unittest.TestCase):
    def test_commands_post_expected_bodies(self) -> None:
        session = FakeSession(*[FakeResponse({"status": "ok"}) for _ in range(5)])
        client = CommandClient("http://authority", timeout=1.0, session=session)
        self.assertTrue(client.set_mode("HEURISTIC"))
        self.assertTrue(client.set_green_durations("I-103", ns_green_s=20.0))
        self.assertTrue(client.start_emergency("V1", "north"))
        self.assertTrue(client.stop_emergency())
        self.assertTrue(client.restart(seed=9))
        self.assertEqual(
            [(c[1], c[2]) for c in session.calls],
            [
                ("http://authority/api/simulation/mode", {"mode": "HEURISTIC"}),
                ("http://authority/api/intersections/I-103/timing", {"nsGreenTime": 20.0}),
                ("http://authority/api/emergency/start", {"laneId": "V1", "direction": "north"}),
                ("http://authority/api/emergency/stop", {}),
                ("http://authority/api/simulation/restart", {"seed": 9}),
            ],
        )
        self.assertEqual(client.metrics.commands_sent, 5)

    def test_failures_return_false_and_are_counted(self) -> None:
        metrics = FeedMetrics()
        session = FakeSession(
            requests.exceptions.ConnectionError("refused"),
            FakeResponse(status_code=404),
        )
        client = CommandClient("http://authority", session=session, metrics=metrics)
        with self.assertLogs("feed.client", level="WARNING"):
            self.assertFalse(client.stop_emergency())
            self.assertFalse(client.set_green_durations("I-999", ew_green_s=12.0))
        self.assertEqual(metrics.report()["command_failures"], 2)


if __name__ == "__main__":
    unittest.main()
