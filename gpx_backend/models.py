from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    lat: float
    lng: float


class SpeedProfile(str, Enum):
    """
    Travel mode selected in the UI.

    walk / bicycle / car are the slow / medium / fast profiles. Each maps to a
    constant step in coordinate degrees; it approximates a speed and is not
    derived from any physical distance.
    """

    WALK = "walk"
    BICYCLE = "bicycle"
    CAR = "car"

    @property
    def delta(self) -> float:
        return SPEED_DELTAS[self]


SPEED_DELTAS = {
    SpeedProfile.WALK: 0.0000125,
    SpeedProfile.BICYCLE: 0.000025,
    SpeedProfile.CAR: 0.0001,
}


class PathPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    marked: bool = Field(
        default=False,
        description="True for user-placed anchors, False for interpolated points.",
    )


class GpxRequest(BaseModel):
    title: str
    speed: SpeedProfile = SpeedProfile.BICYCLE
    markers: List[LatLng] = Field(
        ...,
        min_length=1,
        description="Anchors in the order they were placed on the map.",
    )


class FailureResponse(BaseModel):
    result: Literal["failed"] = "failed"
    detail: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
