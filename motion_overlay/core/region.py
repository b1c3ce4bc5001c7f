"""
Containment Regions

Turns a freehand stroke into a closed region that particles are confined to.

The stroke is de-jittered with a single 3-point moving average pass, then
reduced to a bounding circle around its centroid. A polygon region built from
the smoothed stroke is available for callers that want the drawn outline.

Example:
    recorder = StrokeRecorder()
    recorder.begin(10, 10)
    recorder.add_point(60, 12)
    recorder.add_point(58, 70)
    region = recorder.finish()      # None if the stroke was too short
    simulation.install_region(region)
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..errors import InsufficientPoints
from .utils import MathUtils

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class RegionKind(Enum):
    """Shape of a containment region"""
    CIRCLE = "circle"
    POLYGON = "polygon"


@dataclass(frozen=True)
class ContainmentRegion:
    """Immutable point-in-region predicate"""
    kind: RegionKind
    center: Point
    radius: float
    points: Tuple[Point, ...] = ()

    def contains(self, point: Sequence[float]) -> bool:
        return contains(self, point)


# =============================================================================
# Derivation
# =============================================================================

def smooth_stroke(points: Sequence[Sequence[float]]) -> List[Point]:
    """
    Replace each interior point with the average of itself and its two
    neighbours. Endpoints are kept. Single pass.
    """
    pts = [(float(p[0]), float(p[1])) for p in points]
    if len(pts) < 3:
        return pts

    smoothed = [pts[0]]
    for i in range(1, len(pts) - 1):
        prev, curr, nxt = pts[i - 1], pts[i], pts[i + 1]
        smoothed.append((
            (prev[0] + curr[0] + nxt[0]) / 3,
            (prev[1] + curr[1] + nxt[1]) / 3
        ))
    smoothed.append(pts[-1])
    return smoothed


def _centroid(points: Sequence[Point]) -> Point:
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def derive(
    stroke: Sequence[Sequence[float]],
    kind: RegionKind = RegionKind.CIRCLE
) -> ContainmentRegion:
    """
    Derive a containment region from a stroke.

    Args:
        stroke: Ordered (x, y) points in background pixel space
        kind: CIRCLE (bounding circle) or POLYGON (smoothed outline)

    Returns:
        ContainmentRegion centered on the smoothed stroke's centroid

    Raises:
        InsufficientPoints: fewer than 2 points (3 for a polygon)
    """
    if len(stroke) < 2:
        raise InsufficientPoints(f"Stroke needs at least 2 points, got {len(stroke)}")

    path = smooth_stroke(stroke)
    center = _centroid(path)
    radius = max(math.sqrt(MathUtils.distance_sq(p, center)) for p in path)

    if kind == RegionKind.POLYGON:
        if len(path) < 3:
            raise InsufficientPoints(f"Polygon needs at least 3 points, got {len(path)}")
        return ContainmentRegion(RegionKind.POLYGON, center, radius, tuple(path))

    return ContainmentRegion(RegionKind.CIRCLE, center, radius)


def _point_in_polygon(x: float, y: float, vertices: Sequence[Point]) -> bool:
    """Even-odd ray cast; the polygon is implicitly closed"""
    inside = False
    n = len(vertices)
    j = n - 1
    for i in range(n):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if (yi > y) != (yj > y):
            x_cross = xi + (y - yi) * (xj - xi) / (yj - yi)
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def contains(region: Optional[ContainmentRegion], point: Sequence[float]) -> bool:
    """True if there is no region, or the point lies inside it"""
    if region is None:
        return True

    x, y = float(point[0]), float(point[1])
    within_circle = MathUtils.distance_sq((x, y), region.center) <= region.radius * region.radius

    if region.kind == RegionKind.POLYGON:
        return within_circle and _point_in_polygon(x, y, region.points)
    return within_circle


# =============================================================================
# Stroke capture
# =============================================================================

class StrokeRecorder:
    """
    Collects pointer positions between pointer-down and pointer-up and turns
    them into a region. The stroke is discarded once consumed.
    """

    def __init__(self, kind: RegionKind = RegionKind.CIRCLE):
        self.kind = kind
        self._points: List[Point] = []
        self.drawing = False

    @property
    def points(self) -> List[Point]:
        return list(self._points)

    def begin(self, x: float, y: float) -> None:
        self.drawing = True
        self._points = [(float(x), float(y))]

    def add_point(self, x: float, y: float) -> None:
        if not self.drawing:
            return
        self._points.append((float(x), float(y)))

    def finish(self) -> Optional[ContainmentRegion]:
        """End the stroke; returns None when it was too short to use"""
        stroke = self._points
        self.cancel()

        try:
            region = derive(stroke, self.kind)
        except InsufficientPoints:
            logger.debug("Discarded stroke with %d point(s)", len(stroke))
            return None

        logger.info(
            "Stroke of %d points -> %s region at (%.1f, %.1f) r=%.1f",
            len(stroke), region.kind.value, region.center[0], region.center[1], region.radius
        )
        return region

    def cancel(self) -> None:
        self._points = []
        self.drawing = False
