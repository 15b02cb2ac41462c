"""
feed — Snapshot transport between the authority and display clients
====================================================================

Moves immutable grid snapshots over HTTP (polled, or pushed over a
WebSocket) and carries control commands back, validating everything that
crosses the wire.

Modules
-------
schema
    pydantic models for the camelCase wire format and command bodies.
snapshot
    :func:`encode_snapshot` / :func:`decode_snapshot` codec.
client
    :class:`FeedClient` poller transport and :class:`CommandClient`.
push
    :class:`PushClient` for snapshots pushed over a WebSocket.
metrics
    :class:`FeedMetrics` counter snapshot.
errors
    :class:`FeedUnavailableError`, :class:`MalformedSnapshotError`.
"""

from .errors import FeedError, FeedUnavailableError, MalformedSnapshotError
from .metrics import FeedMetrics
from .snapshot import decode_snapshot, encode_emergency, encode_snapshot
from .client import CommandClient, FeedClient
from .push import PushClient

__all__ = [
    "FeedError",
    "FeedUnavailableError",
    "MalformedSnapshotError",
    "FeedMetrics",
    "decode_snapshot",
    "encode_emergency",
    "encode_snapshot",
    "CommandClient",
    "FeedClient",
    "PushClient",
]
