"""
Route interpolation.

Expands the anchors placed on the map into a dense path a location simulator
can replay:

  - anchors are kept in order and flagged as marked
  - between two consecutive anchors, points are laid out on the straight line
    joining them, one speed-profile step apart
  - latitude / longitude are treated as a flat plane (no geodesic correction)

Each segment stops once the remaining distance to its end anchor is no longer
more than one step, so segments running due north / south terminate like any
other.
"""

import math
from typing import List, Sequence, Tuple

from .config import MAX_ROUTE_POINTS
from .errors import EmptyRouteError, RouteTooLongError
from .models import LatLng, PathPoint, SpeedProfile

# Relative slack on the step count; only absorbs float rounding near exact multiples of a step
_STEP_EPSILON = 1e-12


def _segment_steps(start: LatLng, end: LatLng, delta: float) -> Tuple[float, float, int]:
    """
    Per-step (lat, lng) offsets and number of interpolated points for one segment.

    The step is `delta` along the segment heading theta, i.e.
    (delta * sin(theta), delta * cos(theta)) with the sign of each axis kept.
    It is taken from the unit direction vector rather than from theta itself
    so an axis with no change gets an exact zero step.
    """
    delta_lat = end.lat - start.lat
    delta_lng = end.lng - start.lng
    distance = math.hypot(delta_lat, delta_lng)
    if distance == 0.0:
        return 0.0, 0.0, 0

    step_lat = delta * delta_lat / distance
    step_lng = delta * delta_lng / distance

    # k-th point sits at k * delta from start; keep those strictly before the end
    ratio = distance / delta
    count = math.ceil(ratio - max(ratio, 1.0) * _STEP_EPSILON) - 1
    return step_lat, step_lng, max(count, 0)


def estimate_point_count(anchors: Sequence[LatLng], profile: SpeedProfile) -> int:
    """Number of points interpolate() would return for these anchors."""
    total = len(anchors)
    for start, end in zip(anchors, anchors[1:]):
        total += _segment_steps(start, end, profile.delta)[2]
    return total


def interpolate(
    anchors: Sequence[LatLng],
    profile: SpeedProfile,
    max_points: int = MAX_ROUTE_POINTS,
) -> List[PathPoint]:
    """
    Build the ordered path for `anchors` at the step size of `profile`.

    The first and last points are always marked and every anchor appears
    exactly once, in order. Raises EmptyRouteError for no anchors and
    RouteTooLongError if the path would exceed `max_points`.
    """
    if not anchors:
        raise EmptyRouteError("at least one marker is required")

    if len(anchors) == 1:
        return [PathPoint(lat=anchors[0].lat, lng=anchors[0].lng, marked=True)]

    expected = estimate_point_count(anchors, profile)
    if expected > max_points:
        raise RouteTooLongError(
            f"route would contain {expected} points (limit {max_points}); "
            "use a faster speed or closer markers"
        )

    points: List[PathPoint] = [PathPoint(lat=anchors[0].lat, lng=anchors[0].lng, marked=True)]
    for start, end in zip(anchors, anchors[1:]):
        step_lat, step_lng, count = _segment_steps(start, end, profile.delta)
        for k in range(1, count + 1):
            points.append(
                PathPoint(
                    lat=start.lat + k * step_lat,
                    lng=start.lng + k * step_lng,
                    marked=False,
                )
            )
        points.append(PathPoint(lat=end.lat, lng=end.lng, marked=True))

    if not points[-1].marked:
        points[-1] = points[-1].model_copy(update={"marked": True})
    return points
