"""
HTTP clients for a remote grid authority.

* :class:`FeedClient` fetches the latest snapshot from ``/api/grid/state``.
* :class:`CommandClient` sends fire-and-forget control commands.  A
  command's effect is only trusted once it shows up in a later snapshot.

Both use one ``requests.Session`` with a bounded per-call timeout and never
retry synchronously.
"""

import logging
from typing import Any, Dict, Optional

import requests

from gridsim.entities import Snapshot
from .errors import FeedUnavailableError, MalformedSnapshotError
from .metrics import FeedMetrics
from .snapshot import decode_snapshot

log = logging.getLogger(__name__)

STATE_PATH = "/api/grid/state"


class FeedClient:
    """
    Snapshot poller transport.

    Attributes:
        base_url (str): Authority root, e.g. ``http://localhost:8000``.
        timeout (float): Seconds before a request is abandoned.
        metrics (FeedMetrics): Poll / accept / reject counters.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 0.5,
        session: Optional[requests.Session] = None,
        metrics: Optional[FeedMetrics] = None,
    ):
        """
        Args:
            base_url (str): Authority root URL.
            timeout (float): Per-request timeout in seconds.
            session (requests.Session | None): Shared session; a new one by default.
            metrics (FeedMetrics | None): Counters to update; a new set by default.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.metrics = metrics or FeedMetrics()

    def fetch_snapshot(self) -> Snapshot:
        """
        Fetch and decode the authority's current snapshot.

        Returns:
            Snapshot: The decoded state.

        Raises:
            FeedUnavailableError: On connection errors, timeouts, HTTP error
                statuses, or a body that is not JSON.
            MalformedSnapshotError: If the JSON fails validation.
        """
        self.metrics.polls += 1
        url = self.base_url + STATE_PATH
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as exc:
            self.metrics.unavailable += 1
            raise FeedUnavailableError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            self.metrics.unavailable += 1
            raise FeedUnavailableError(f"GET {url} returned a non-JSON body") from exc

        try:
            snapshot = decode_snapshot(payload)
        except MalformedSnapshotError:
            self.metrics.malformed += 1
            raise
        self.metrics.accepted += 1
        return snapshot

    def close(self) -> None:
        self.session.close()


class CommandClient:
    """
    Fire-and-forget control commands.

    Every method returns True when the authority accepted the request and
    False otherwise; failures are logged and counted, never raised.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 1.0,
        session: Optional[requests.Session] = None,
        metrics: Optional[FeedMetrics] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.metrics = metrics or FeedMetrics()

    def set_mode(self, mode: str) -> bool:
        return self._post("/api/simulation/mode", {"mode": str(getattr(mode, "value", mode))})

    def restart(self, seed: Optional[int] = None) -> bool:
        return self._post("/api/simulation/restart", {"seed": seed})

    def start_emergency(self, lane_id: Optional[str] = None, direction: Optional[str] = None) -> bool:
        body: Dict[str, Any] = {}
        if lane_id is not None:
            body["laneId"] = lane_id
        if direction is not None:
            body["direction"] = str(getattr(direction, "value", direction))
        return self._post("/api/emergency/start", body)

    def stop_emergency(self) -> bool:
        return self._post("/api/emergency/stop", {})

    def set_green_durations(
        self,
        intersection_id: str,
        ns_green_s: Optional[float] = None,
        ew_green_s: Optional[float] = None,
    ) -> bool:
        body: Dict[str, Any] = {}
        if ns_green_s is not None:
            body["nsGreenTime"] = ns_green_s
        if ew_green_s is not None:
            body["ewGreenTime"] = ew_green_s
        return self._post(f"/api/intersections/{intersection_id}/timing", body)

    def _post(self, path: str, body: Dict[str, Any]) -> bool:
        url = self.base_url + path
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            self.metrics.command_failures += 1
            log.warning("Command POST %s failed: %s", path, exc)
            return False
        self.metrics.commands_sent += 1
        log.debug("Command POST %s accepted", path)
        return True

    def close(self) -> None:
        self.session.close()
