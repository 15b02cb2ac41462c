"""
Wire schema for grid snapshots and control commands.

Field names are camelCase because they are the JSON keys the authority
serves and the dashboard reads.  Unknown keys are ignored, so a newer
authority may add fields without breaking older clients.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from gridsim.controller import ControllerMode
from gridsim.entities import Axis, Direction, EMERGENCY_ID, SignalColor, VehicleType


class IntersectionModel(BaseModel):
    id: str  # e.g. "I-101"
    nsSignal: SignalColor
    ewSignal: SignalColor
    timer: float


class VehicleModel(BaseModel):
    id: str
    laneId: str
    laneType: Axis
    direction: Direction
    position: float
    speed: float = Field(ge=0)
    type: VehicleType = VehicleType.CAR

    @model_validator(mode="after")
    def _direction_matches_lane(self):
        if self.direction.axis is not self.laneType:
            raise ValueError(
                f"vehicle {self.id}: direction {self.direction.value} "
                f"does not run along a {self.laneType.value} lane"
            )
        return self


class EmergencyModel(BaseModel):
    id: str = EMERGENCY_ID
    laneId: str
    direction: Optional[Direction] = None
    position: float
    speed: float = Field(ge=0)
    active: bool = True


class SnapshotModel(BaseModel):
    """One authoritative grid state as served at ``GET /api/grid/state``."""

    tick: int = Field(default=0, ge=0)
    timestamp: float
    intersections: List[IntersectionModel]
    vehicles: List[VehicleModel]
    emergency: Optional[EmergencyModel] = None


# ── command bodies ────────────────────────────────────────────────────────────

class ModeRequest(BaseModel):
    mode: ControllerMode


class RestartRequest(BaseModel):
    seed: Optional[int] = None


class EmergencyStartRequest(BaseModel):
    laneId: Optional[str] = None
    direction: Optional[Direction] = None


class TimingUpdate(BaseModel):
    nsGreenTime: Optional[float] = Field(default=None, gt=0)
    ewGreenTime: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _at_least_one(self):
        if self.nsGreenTime is None and self.ewGreenTime is None:
            raise ValueError("nsGreenTime or ewGreenTime is required")
        return self
