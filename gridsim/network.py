"""
gridsim/network.py
==================
Road-network topology for the square signal grid.

Defines :class:`Lane`, :class:`EntryPoint` and :class:`GridTopology`: a
static description of ``N`` horizontal and ``N`` vertical lanes crossing at
``N × N`` intersections.  Lane ``H<r>`` runs along grid row *r*, lane
``V<c>`` along column *c*.  Positions along a lane grow eastward
(horizontal) or southward (vertical); the first intersection sits at 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from gridsim.entities import Axis, Direction, directions_for
from gridsim.errors import GridIndexError

_AXIS_PREFIX = {Axis.HORIZONTAL: "H", Axis.VERTICAL: "V"}
_PREFIX_AXIS = {"H": Axis.HORIZONTAL, "V": Axis.VERTICAL}


# ── Lane / entry ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Lane:
    """One road of the grid, shared by both travel directions."""

    axis: Axis
    index: int

    @property
    def id(self) -> str:
        return f"{_AXIS_PREFIX[self.axis]}{self.index}"


@dataclass(frozen=True)
class EntryPoint:
    """Where a vehicle enters a lane heading in ``direction``."""

    lane: Lane
    direction: Direction
    position: float


# ── Topology ──────────────────────────────────────────────────────────────────

class GridTopology:
    """Static grid geometry.

    Provides the helpers used by the signal machine, the integrator,
    the spawner and the reconciler:

    * **intersection_ids**: row-major ids ``I-101`` … for a 5×5 grid.
    * **stop_lines**: ordered stop-line offsets along one lane.
    * **intersection_for**: which intersection the i-th stop line of a
      lane belongs to.
    * **entry_points** / **is_past_exit**: spawn and despawn geometry.

    Parameters
    ----------
    size : int
        Lanes per axis.  Must be a positive integer.
    spacing : float
        Distance between consecutive intersections.
    entry_margin : float
        Distance outside the outer intersections at which vehicles enter.
    despawn_margin : float
        Distance beyond the far entry point at which vehicles are removed.
    """

    def __init__(
        self,
        size: int,
        spacing: float = 100.0,
        *,
        entry_margin: float = 100.0,
        despawn_margin: float = 250.0,
    ) -> None:
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ValueError(f"grid size must be a positive integer, got {size!r}")
        if spacing <= 0:
            raise ValueError(f"spacing must be positive, got {spacing!r}")
        self.size = size
        self.spacing = float(spacing)
        self.entry_margin = float(entry_margin)
        self.despawn_margin = float(despawn_margin)

    @classmethod
    def from_policy(cls, policy) -> "GridTopology":
        return cls(
            policy.grid_size,
            policy.intersection_spacing,
            entry_margin=policy.entry_margin,
            despawn_margin=policy.despawn_margin,
        )

    # ── intersections ─────────────────────────────────────────────────────

    @property
    def extent(self) -> float:
        """Offset of the last stop line along any lane."""
        return (self.size - 1) * self.spacing

    def intersection_id(self, row: int, col: int) -> str:
        self._check_index(row)
        self._check_index(col)
        return f"I-{100 + row * self.size + col + 1}"

    def intersection_ids(self) -> List[str]:
        """All intersection ids in row-major order."""
        return [
            self.intersection_id(r, c)
            for r in range(self.size)
            for c in range(self.size)
        ]

    def intersection_coords(self) -> List[Tuple[str, int, int]]:
        """``[(id, row, col), ...]`` in row-major order."""
        return [
            (self.intersection_id(r, c), r, c)
            for r in range(self.size)
            for c in range(self.size)
        ]

    def intersection_for(self, lane: Lane, line_index: int) -> str:
        """Intersection at the *line_index*-th stop line of *lane*."""
        if lane.axis is Axis.HORIZONTAL:
            return self.intersection_id(lane.index, line_index)
        return self.intersection_id(line_index, lane.index)

    def coords_of(self, intersection_id: str) -> Tuple[int, int]:
        try:
            idx = int(str(intersection_id).split("-", 1)[1]) - 101
        except (IndexError, ValueError):
            raise GridIndexError(f"unknown intersection id {intersection_id!r}") from None
        if not 0 <= idx < self.size * self.size:
            raise GridIndexError(f"intersection {intersection_id!r} outside the grid")
        return divmod(idx, self.size)

    # ── lanes ─────────────────────────────────────────────────────────────

    def lanes(self) -> List[Lane]:
        return [Lane(axis, i) for axis in (Axis.HORIZONTAL, Axis.VERTICAL) for i in range(self.size)]

    def lane(self, axis: Axis, index: int) -> Lane:
        self._check_index(index)
        return Lane(axis, index)

    def lane_id(self, axis: Axis, index: int) -> str:
        return self.lane(axis, index).id

    def parse_lane_id(self, lane_id: str) -> Lane:
        """``"H3"`` → ``Lane(HORIZONTAL, 3)``; raises :class:`GridIndexError`."""
        text = str(lane_id)
        axis = _PREFIX_AXIS.get(text[:1].upper())
        if axis is None or not text[1:].isdigit():
            raise GridIndexError(f"malformed lane id {lane_id!r}")
        return self.lane(axis, int(text[1:]))

    def stop_lines(self, axis: Axis, index: int) -> List[float]:
        """Ordered stop-line offsets ``i * spacing`` along lane *index*."""
        self._check_index(index)
        return [i * self.spacing for i in range(self.size)]

    # ── spawn / despawn geometry ──────────────────────────────────────────

    def entry_position(self, direction: Direction) -> float:
        if direction.sign > 0:
            return -self.entry_margin
        return self.extent + self.entry_margin

    def entry_points(self) -> List[EntryPoint]:
        """Two entries per lane, one per travel direction."""
        points: List[EntryPoint] = []
        for lane in self.lanes():
            for direction in directions_for(lane.axis):
                points.append(EntryPoint(lane, direction, self.entry_position(direction)))
        return points

    def is_past_exit(self, position: float, direction: Direction) -> bool:
        """True once *position* has left the visible range in *direction*."""
        limit = self.entry_margin + self.despawn_margin
        if direction.sign > 0:
            return position > self.extent + limit
        return position < -limit

    def world_point(self, lane: Lane, position: float) -> Tuple[float, float]:
        """Map a lane position to ``(x, y)`` with y growing southward."""
        if lane.axis is Axis.HORIZONTAL:
            return (position, lane.index * self.spacing)
        return (lane.index * self.spacing, position)

    def get_bounds(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """``((min_x, max_x), (min_y, max_y))`` of the visible area."""
        lo = -self.entry_margin
        hi = self.extent + self.entry_margin
        return ((lo, hi), (lo, hi))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise GridIndexError(f"index {index} outside grid of size {self.size}")
