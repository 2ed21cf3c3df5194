"""
Utility functions for planar geometry: distances, interpolation and the
tessellation of circles and arcs into straight segments.

Angles are in degrees at the public boundary, matching the DXF convention;
arcs always sweep counter-clockwise from start to end.
"""
import math
from typing import List, Tuple

Point = Tuple[float, float]

FULL_TURN = 360.0


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def lerp_point(x1: float, y1: float, x2: float, y2: float, ratio: float) -> Point:
    """Move from (x1, y1) a fraction `ratio` of the way towards (x2, y2)."""
    return x1 + (x2 - x1) * ratio, y1 + (y2 - y1) * ratio


def point_on_circle(cx: float, cy: float, radius: float, angle_deg: float) -> Point:
    angle = math.radians(angle_deg)
    return cx + radius * math.cos(angle), cy + radius * math.sin(angle)


def arc_sweep_degrees(start_deg: float, end_deg: float) -> float:
    """
    Counter-clockwise sweep from start to end, always in [0, 360).

    350 -> 10 sweeps 20 degrees. Angles equal modulo a full turn, such as
    0 -> 360, give a zero sweep.
    """
    sweep = (end_deg - start_deg) % FULL_TURN
    # A tiny negative difference rounds up to exactly FULL_TURN
    return 0.0 if sweep >= FULL_TURN else sweep


def circle_points(cx: float, cy: float, radius: float, segments: int) -> List[Point]:
    """
    Tessellate a full circle starting east of the center.

    Returns `segments` points at angles j/segments of a full turn for
    j = 1..segments; the last point closes the loop back at angle 0.
    """
    return [point_on_circle(cx, cy, radius, FULL_TURN * j / segments)
            for j in range(1, segments + 1)]


def arc_points(cx: float, cy: float, radius: float,
               start_deg: float, end_deg: float, segments: int) -> List[Point]:
    """
    Tessellate an arc into `segments` equal steps after its start point.

    The start point itself is not included; use point_on_circle(start_deg)
    for it.
    """
    sweep = arc_sweep_degrees(start_deg, end_deg)
    return [point_on_circle(cx, cy, radius, start_deg + sweep * j / segments)
            for j in range(1, segments + 1)]
