#!/usr/bin/env python3
"""
display/sources.py
==================
One interface for everything that draws the grid.

A :class:`DisplaySource` answers :meth:`~DisplaySource.get_display_state`
with a :class:`~gridsim.entities.Snapshot` and relays the viewer's control
commands.  Two implementations exist:

* :class:`LocalDisplaySource`: reads the in-process
  :class:`~gridsim.sim_bridge.SimBridge` directly (integrated motion).
* :class:`RemoteDisplaySource`: receives snapshots pushed by a remote
  authority over a WebSocket, falls back to polling it every 100 ms when
  the push channel is unavailable, and draws interpolated motion through
  a :class:`~display.reconciler.SnapshotReconciler`.

:func:`make_display_source` picks one from the configured display mode.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from feed.client import CommandClient, FeedClient
from feed.errors import FeedError, MalformedSnapshotError
from feed.push import PushClient
from gridsim.controller import ControllerMode
from gridsim.entities import Snapshot
from gridsim.errors import GridIndexError
from gridsim.network import GridTopology
from gridsim.sim_bridge import SimBridge
from .reconciler import ReconcilePolicy, SnapshotReconciler

log = logging.getLogger("display")

LOCAL = "local"
REMOTE = "remote"

PUSH = "push"
POLL = "poll"


class DisplaySource(ABC):
    """What the viewer needs: state to draw and a way to send commands.

    Command methods return True when the command was accepted.  A remote
    command's effect only becomes visible in a later snapshot.
    """

    def start(self) -> None:
        """Begin producing state (no-op by default)."""

    def stop(self) -> None:
        """Release threads and connections (no-op by default)."""

    @abstractmethod
    def get_display_state(self) -> Snapshot:
        """Return the state to draw right now; never blocks."""

    def get_overview(self) -> Dict[str, Any]:
        return {}

    @abstractmethod
    def set_mode(self, mode: ControllerMode) -> bool: ...

    @abstractmethod
    def restart(self, seed: Optional[int] = None) -> bool: ...

    @abstractmethod
    def start_emergency(self) -> bool: ...

    @abstractmethod
    def stop_emergency(self) -> bool: ...


class LocalDisplaySource(DisplaySource):
    """Integrator-backed source over an in-process :class:`SimBridge`.

    Parameters
    ----------
    bridge : SimBridge
        The local authority.
    own_bridge : bool
        Start and stop the bridge together with this source.
    """

    def __init__(self, bridge: SimBridge, own_bridge: bool = True) -> None:
        self.bridge = bridge
        self._own_bridge = own_bridge

    def start(self) -> None:
        if self._own_bridge:
            self.bridge.start()

    def stop(self) -> None:
        if self._own_bridge:
            self.bridge.stop()

    def get_display_state(self) -> Snapshot:
        return self.bridge.get_snapshot()

    def get_overview(self) -> Dict[str, Any]:
        return self.bridge.get_overview()

    def set_mode(self, mode: ControllerMode) -> bool:
        self.bridge.set_mode(mode)
        return True

    def restart(self, seed: Optional[int] = None) -> bool:
        self.bridge.restart(seed)
        return True

    def start_emergency(self) -> bool:
        try:
            self.bridge.start_emergency()
        except (GridIndexError, ValueError) as exc:
            log.warning("Emergency start rejected: %s", exc)
            return False
        return True

    def stop_emergency(self) -> bool:
        self.bridge.stop_emergency()
        return True


class RemoteDisplaySource(DisplaySource):
    """Interpolation-backed source fed by a remote authority.

    A daemon thread keeps the reconciler supplied.  When a push client is
    given it listens on the authority's WebSocket first; if that cannot be
    opened, or drops, the thread polls every ``poll_interval_s`` and tries
    the WebSocket again after ``reconnect_interval_s``.  A failed poll is
    logged and skipped; the last good snapshot stays on screen and motion
    freezes at its target.

    Parameters
    ----------
    feed : FeedClient
        Polling transport.
    commands : CommandClient
        Command transport.
    topology : GridTopology
        Geometry the remote grid is expected to have.
    poll_interval_s : float
        Seconds between polls; also the reconciler's interpolation interval.
    reconciler : SnapshotReconciler or None
        Pre-built reconciler (tests).
    push : PushClient or None
        WebSocket transport; polling only when *None*.
    reconnect_interval_s : float
        Seconds of polling before the push channel is tried again.
    """

    def __init__(
        self,
        feed: FeedClient,
        commands: CommandClient,
        topology: GridTopology,
        poll_interval_s: float = 0.1,
        reconciler: Optional[SnapshotReconciler] = None,
        push: Optional[PushClient] = None,
        reconnect_interval_s: float = 5.0,
    ) -> None:
        self.feed = feed
        self.commands = commands
        self.push = push
        self.poll_interval_s = poll_interval_s
        self.reconnect_interval_s = reconnect_interval_s
        self.reconciler = reconciler or SnapshotReconciler(
            topology, ReconcilePolicy(interval_s=poll_interval_s)
        )
        self.transport = POLL
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._feed_loop, daemon=True, name="FeedPoller")
        self._thread.start()
        log.info("Following %s (poll interval %.0f ms)", self.feed.base_url, self.poll_interval_s * 1000)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self.push is not None:
            self.push.close()
        self.feed.close()
        self.commands.close()
        log.info("Feed poller stopped")

    def poll_once(self) -> bool:
        """Fetch one snapshot and hand it to the reconciler.

        Returns True when a newer snapshot was adopted.
        """
        try:
            snapshot = self.feed.fetch_snapshot()
        except FeedError as exc:
            log.warning("Feed poll skipped: %s", exc)
            return False
        return self.reconciler.ingest(snapshot)

    def listen_push(self) -> None:
        """Ingest pushed snapshots until the channel fails or :meth:`stop`.

        Returns at once when the channel cannot be opened.
        """
        try:
            self.push.open()
        except FeedError as exc:
            log.warning("Push feed unavailable (%s); polling every %.0f ms",
                        exc, self.poll_interval_s * 1000)
            return
        self.transport = PUSH
        try:
            while not self._stop_event.is_set():
                try:
                    snapshot = self.push.receive_snapshot(timeout=self.poll_interval_s)
                except MalformedSnapshotError as exc:
                    log.warning("Pushed snapshot rejected: %s", exc)
                    continue
                if snapshot is not None:
                    self.reconciler.ingest(snapshot)
        except FeedError as exc:
            log.warning("Push feed lost (%s); falling back to polling", exc)
        finally:
            self.transport = POLL
            self.push.close()

    def _feed_loop(self) -> None:
        next_push_attempt = 0.0
        while not self._stop_event.is_set():
            if self.push is not None and time.monotonic() >= next_push_attempt:
                self.listen_push()
                next_push_attempt = time.monotonic() + self.reconnect_interval_s
                continue
            self.poll_once()
            self._stop_event.wait(self.poll_interval_s)

    def get_display_state(self) -> Snapshot:
        return self.reconciler.display_snapshot()

    def get_overview(self) -> Dict[str, Any]:
        overview = dict(self.feed.metrics.report())
        overview["transport"] = self.transport
        latest = self.reconciler.latest()
        if latest is not None:
            overview["tick"] = latest.tick
            overview["vehicle_count"] = len(latest.vehicles)
            overview["emergency_active"] = latest.emergency is not None and latest.emergency.active
        return overview

    def set_mode(self, mode: ControllerMode) -> bool:
        return self.commands.set_mode(mode)

    def restart(self, seed: Optional[int] = None) -> bool:
        return self.commands.restart(seed)

    def start_emergency(self) -> bool:
        return self.commands.start_emergency()

    def stop_emergency(self) -> bool:
        return self.commands.stop_emergency()


def make_display_source(
    mode: str,
    *,
    bridge: Optional[SimBridge] = None,
    feed_url: Optional[str] = None,
    topology: Optional[GridTopology] = None,
    poll_interval_s: float = 0.1,
    timeout_s: float = 0.5,
    push: bool = True,
    reconnect_interval_s: float = 5.0,
) -> DisplaySource:
    """Build the display source named by *mode* (``"local"`` or ``"remote"``).

    A remote source listens for pushed snapshots unless *push* is False.

    Raises
    ------
    ValueError
        Unknown *mode*, or the arguments that mode needs are missing.
    """
    mode = mode.lower()
    if mode == LOCAL:
        if bridge is None:
            raise ValueError("local display needs a SimBridge")
        return LocalDisplaySource(bridge)
    if mode == REMOTE:
        if not feed_url or topology is None:
            raise ValueError("remote display needs a feed URL and a topology")
        feed = FeedClient(feed_url, timeout=timeout_s)
        return RemoteDisplaySource(
            feed,
            CommandClient(feed_url, metrics=feed.metrics),
            topology,
            poll_interval_s=poll_interval_s,
            push=PushClient(feed_url, timeout=timeout_s, metrics=feed.metrics) if push else None,
            reconnect_interval_s=reconnect_interval_s,
        )
    raise ValueError(f"unknown display mode {mode!r} (expected {LOCAL!r} or {REMOTE!r})")
