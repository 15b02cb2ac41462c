"""
gridsim/controller.py
=====================
Green-duration selection for each controller mode.

The signal state machine asks :class:`SignalController` how long the
phase that is about to start should last.  The answer depends on the
active :class:`ControllerMode`:

* ``FIXED``    : the durations set by command, or one of the two
  representative durations drawn from the seeded RNG.
* ``HEURISTIC``: a base duration nudged toward the heavier axis.
* ``ML``       : the duration predicted by the joblib timing model.
* ``HYBRID``   : the mean of the heuristic and ML durations.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from gridsim.entities import Intersection, Phase, Vehicle
from gridsim.network import GridTopology
from gridsim.traffic_policy import GridPolicy
from ml.timing_model import predict_green_time

log = logging.getLogger("controller")


class ControllerMode(str, Enum):
    FIXED = "FIXED"
    HEURISTIC = "HEURISTIC"
    ML = "ML"
    HYBRID = "HYBRID"


@dataclass(frozen=True)
class ApproachLoad:
    """Weighted count of vehicles approaching one intersection per axis."""

    ns: float = 0.0
    ew: float = 0.0


_NO_LOAD = ApproachLoad()


def compute_loads(
    vehicles: Iterable[Vehicle],
    topology: GridTopology,
    policy: GridPolicy,
) -> Dict[str, ApproachLoad]:
    """Approach loads keyed by intersection id.

    A vehicle counts toward the next stop line ahead of it when that line
    is within ``policy.congestion_radius``.  Held vehicles count twice.
    """
    ns: Dict[str, float] = {}
    ew: Dict[str, float] = {}
    for v in vehicles:
        lane = topology.parse_lane_id(v.lane_id)
        sign = v.direction.sign
        lines = topology.stop_lines(lane.axis, lane.index)
        for i, line in enumerate(lines):
            ahead = sign * (line - v.position)
            if 0.0 <= ahead <= policy.congestion_radius:
                iid = topology.intersection_for(lane, i)
                weight = 2.0 if v.held else 1.0
                bucket = ns if v.direction.phase is Phase.NS_GREEN else ew
                bucket[iid] = bucket.get(iid, 0.0) + weight
                break
    return {
        iid: ApproachLoad(ns=ns.get(iid, 0.0), ew=ew.get(iid, 0.0))
        for iid in set(ns) | set(ew)
    }


class SignalController:
    """Chooses the green duration for a phase.

    Parameters
    ----------
    mode : ControllerMode
        Initial mode.
    policy : GridPolicy or None
        Timing bounds and heuristic constants.
    model_path : str or None
        joblib model used by ``ML`` and ``HYBRID``.
    predictor : callable
        ``(ns_load, ew_load, phase_is_ns, model_path) -> dict``; defaults
        to :func:`ml.timing_model.predict_green_time`.
    """

    def __init__(
        self,
        mode: ControllerMode = ControllerMode.FIXED,
        policy: Optional[GridPolicy] = None,
        model_path: Optional[str] = None,
        predictor: Callable[..., dict] = predict_green_time,
    ) -> None:
        self.mode = ControllerMode(mode)
        self.policy = policy or GridPolicy()
        self.model_path = model_path
        self._predictor = predictor
        self._ml_warned = False

    def set_mode(self, mode) -> None:
        new_mode = ControllerMode(mode)
        if new_mode is not self.mode:
            log.info("Controller mode %s -> %s", self.mode.value, new_mode.value)
        self.mode = new_mode

    # ── duration selection ────────────────────────────────────────────────

    def green_duration(
        self,
        intersection: Intersection,
        phase: Phase,
        load: Optional[ApproachLoad],
        rng: random.Random,
    ) -> float:
        """Seconds of green for *phase* at *intersection*."""
        load = load or _NO_LOAD
        if self.mode is ControllerMode.FIXED:
            return self._fixed(intersection, phase, rng)
        if self.mode is ControllerMode.HEURISTIC:
            return self._heuristic(phase, load)
        ml = self._ml(phase, load)
        if ml is None:
            return self._heuristic(phase, load)
        if self.mode is ControllerMode.ML:
            return ml
        return self._clamp((ml + self._heuristic(phase, load)) / 2.0)

    def _fixed(self, intersection: Intersection, phase: Phase, rng: random.Random) -> float:
        configured = intersection.configured_green(phase)
        if configured is not None:
            return float(configured)
        return float(rng.choice(self.policy.green_choices_s))

    def _heuristic(self, phase: Phase, load: ApproachLoad) -> float:
        if phase is Phase.NS_GREEN:
            imbalance = load.ns - load.ew
        else:
            imbalance = load.ew - load.ns
        p = self.policy
        return self._clamp(p.heuristic_base_s + p.heuristic_step_s * imbalance)

    def _ml(self, phase: Phase, load: ApproachLoad) -> Optional[float]:
        if not self.model_path:
            self._warn_ml_unavailable("no model path configured")
            return None
        result = self._predictor(
            load.ns, load.ew, phase is Phase.NS_GREEN, model_path=self.model_path,
        )
        if result.get("status") != "success":
            self._warn_ml_unavailable(result.get("error", "unknown error"))
            return None
        return self._clamp(float(result["green_s"]))

    def _warn_ml_unavailable(self, reason: str) -> None:
        if not self._ml_warned:
            log.warning("ML timing unavailable (%s); using heuristic durations", reason)
            self._ml_warned = True

    def _clamp(self, seconds: float) -> float:
        return max(self.policy.min_green_s, min(self.policy.max_green_s, seconds))
