"""
WebSocket client for snapshots pushed by the authority on ``/ws``.

Every frame is a JSON envelope ``{"type": "SIMULATION_UPDATE", "payload":
<snapshot>}``; the payload uses the same camelCase shape as
``/api/grid/state``.  Other message types are ignored.
"""

import json
import logging
from typing import Any, Callable, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as ws_connect

from gridsim.entities import Snapshot
from .errors import FeedUnavailableError, MalformedSnapshotError
from .metrics import FeedMetrics
from .snapshot import decode_snapshot

log = logging.getLogger(__name__)

PUSH_PATH = "/ws"
UPDATE_TYPE = "SIMULATION_UPDATE"


def push_url(base_url: str) -> str:
    """``http://host:8000`` → ``ws://host:8000/ws`` (``https`` → ``wss``)."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return base + PUSH_PATH


class PushClient:
    """
    Receives pushed snapshots over one WebSocket connection.

    Attributes:
        url (str): WebSocket endpoint, e.g. ``ws://localhost:8000/ws``.
        timeout (float): Seconds allowed for the opening handshake.
        metrics (FeedMetrics): Shared with the poller; ``accepted`` and
            ``malformed`` count pushed snapshots too.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 0.5,
        metrics: Optional[FeedMetrics] = None,
        connect: Callable[..., Any] = ws_connect,
    ):
        """
        Args:
            base_url (str): Authority root URL (``http://`` or ``ws://``).
            timeout (float): Handshake timeout in seconds.
            metrics (FeedMetrics | None): Counters to update.
            connect (callable): Connection factory; ``websockets`` by default.
        """
        self.url = push_url(base_url)
        self.timeout = timeout
        self.metrics = metrics or FeedMetrics()
        self._connect = connect
        self._conn = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """
        Open the connection.

        Raises:
            FeedUnavailableError: If the authority refuses or does not answer.
        """
        try:
            self._conn = self._connect(self.url, open_timeout=self.timeout)
        except (OSError, WebSocketException) as exc:
            self.metrics.unavailable += 1
            raise FeedUnavailableError(f"connect {self.url} failed: {exc}") from exc
        log.info("Push feed connected to %s", self.url)

    def receive_snapshot(self, timeout: float) -> Optional[Snapshot]:
        """
        Wait up to *timeout* seconds for the next pushed snapshot.

        Returns:
            Snapshot | None: The decoded snapshot, or None when nothing
            arrived in time or the frame was not a snapshot update.

        Raises:
            FeedUnavailableError: The connection is closed or broken.
            MalformedSnapshotError: The frame failed validation.
        """
        if self._conn is None:
            raise FeedUnavailableError("push feed is not connected")
        try:
            raw = self._conn.recv(timeout=timeout)
        except TimeoutError:
            return None
        except (ConnectionClosed, OSError) as exc:
            self.metrics.unavailable += 1
            self.close()
            raise FeedUnavailableError(f"push feed {self.url} dropped: {exc}") from exc

        try:
            message = json.loads(raw)
        except ValueError as exc:
            self.metrics.malformed += 1
            raise MalformedSnapshotError("pushed frame is not JSON") from exc
        if not isinstance(message, dict) or message.get("type") != UPDATE_TYPE:
            return None

        try:
            snapshot = decode_snapshot(message.get("payload"))
        except MalformedSnapshotError:
            self.metrics.malformed += 1
            raise
        self.metrics.accepted += 1
        return snapshot

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
