"""
display — What the viewer draws
===============================

Modules
-------
reconciler
    :class:`SnapshotReconciler`: smooth motion between sparse snapshots.
sources
    :class:`DisplaySource` with local (integrated) and remote
    (interpolated) implementations.
"""

from .reconciler import ReconcilePolicy, SnapshotReconciler
from .sources import (
    DisplaySource,
    LocalDisplaySource,
    RemoteDisplaySource,
    make_display_source,
)

__all__ = [
    "ReconcilePolicy",
    "SnapshotReconciler",
    "DisplaySource",
    "LocalDisplaySource",
    "RemoteDisplaySource",
    "make_display_source",
]
