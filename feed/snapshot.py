"""
Snapshot codec: converts between :class:`gridsim.entities.Snapshot` and
the camelCase JSON payload validated by :mod:`feed.schema`.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from gridsim.entities import (
    Axis,
    Direction,
    EmergencyVehicle,
    IntersectionStatus,
    Snapshot,
    Vehicle,
    directions_for,
)
from .errors import MalformedSnapshotError
from .schema import EmergencyModel, SnapshotModel

log = logging.getLogger(__name__)

_LANE_PREFIX_AXIS = {"H": Axis.HORIZONTAL, "V": Axis.VERTICAL}


def encode_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Build the wire payload for *snapshot*.

    Args:
        snapshot (Snapshot): Authoritative state to publish.

    Returns:
        dict: JSON-ready payload with camelCase keys.
    """
    emergency = None
    if snapshot.emergency is not None:
        e = snapshot.emergency
        emergency = {
            "id": e.id,
            "laneId": e.lane_id,
            "direction": e.direction.value,
            "position": e.position,
            "speed": e.speed,
            "active": e.active,
        }
    return {
        "tick": snapshot.tick,
        "timestamp": snapshot.timestamp,
        "intersections": [
            {
                "id": it.id,
                "nsSignal": it.ns_signal.value,
                "ewSignal": it.ew_signal.value,
                "timer": it.timer,
            }
            for it in snapshot.intersections
        ],
        "vehicles": [
            {
                "id": v.id,
                "laneId": v.lane_id,
                "laneType": v.axis.value,
                "direction": v.direction.value,
                "position": v.position,
                "speed": v.speed,
                "type": v.type.value,
            }
            for v in snapshot.vehicles
        ],
        "emergency": emergency,
    }


def encode_emergency(snapshot: Snapshot) -> Dict[str, Any]:
    """Payload for ``GET /api/emergency/state``."""
    return {"emergency": encode_snapshot(snapshot)["emergency"]}


def decode_snapshot(payload: Union[Dict[str, Any], str, bytes]) -> Snapshot:
    """
    Validate a wire payload and build a :class:`Snapshot`.

    Args:
        payload (dict | str | bytes): Parsed JSON, or raw JSON text.

    Returns:
        Snapshot: The decoded state.

    Raises:
        MalformedSnapshotError: If the payload fails validation anywhere;
            the snapshot is rejected as a whole.
    """
    try:
        if isinstance(payload, (str, bytes)):
            model = SnapshotModel.model_validate_json(payload)
        else:
            model = SnapshotModel.model_validate(payload)
    except ValidationError as exc:
        log.debug("Snapshot validation failed: %s", exc)
        raise MalformedSnapshotError(
            f"snapshot rejected: {exc.error_count()} validation error(s)"
        ) from exc

    return Snapshot(
        intersections=tuple(
            IntersectionStatus(
                id=it.id,
                ns_signal=it.nsSignal,
                ew_signal=it.ewSignal,
                timer=it.timer,
            )
            for it in model.intersections
        ),
        vehicles=tuple(
            Vehicle(
                id=v.id,
                lane_id=v.laneId,
                direction=v.direction,
                position=v.position,
                speed=v.speed,
                type=v.type,
            )
            for v in model.vehicles
        ),
        emergency=_decode_emergency(model.emergency),
        timestamp=model.timestamp,
        tick=model.tick,
    )


def _decode_emergency(model: Optional[EmergencyModel]) -> Optional[EmergencyVehicle]:
    if model is None:
        return None
    direction = model.direction or _default_direction(model.laneId)
    return EmergencyVehicle(
        id=model.id,
        lane_id=model.laneId,
        direction=direction,
        position=model.position,
        speed=model.speed,
        active=model.active,
    )


def _default_direction(lane_id: str) -> Direction:
    # Older authorities omit the direction; the corridor runs toward
    # increasing position.
    axis = _LANE_PREFIX_AXIS.get(lane_id[:1].upper())
    if axis is None:
        raise MalformedSnapshotError(f"emergency lane {lane_id!r} has no axis")
    return directions_for(axis)[0]

