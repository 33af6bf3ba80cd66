"""
Geometry utilities for the track rover simulation.

Provides angle normalization, point/segment distances, ray casting against
segments and circles, and the polygon offset used to build track edges.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import math

import pyclipper


TWO_PI = 2.0 * math.pi

# Clipper works on integer coordinates.
CLIPPER_SCALE = 1000.0
CLIPPER_MITER_LIMIT = 2.0
CLIPPER_ARC_TOLERANCE = 0.25

DENSIFY_STEP = 3.0
PARALLEL_EPS = 1e-9


# ---------------------------------------------------------------------------
# Angle helpers
# ---------------------------------------------------------------------------


def wrap_angle(theta: float) -> float:
    """Wrap angle to (-pi, pi] radians."""
    return math.pi - ((math.pi - theta) % TWO_PI)


def angle_diff(a: float, b: float) -> float:
    """Shortest signed difference from angle a to angle b (radians)."""
    return wrap_angle(b - a)


# ---------------------------------------------------------------------------
# Scalars and vectors
# ---------------------------------------------------------------------------


def clamp(value: float, vmin: float, vmax: float) -> float:
    """Clamp value to [vmin, vmax]."""
    return max(vmin, min(vmax, value))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation: a + t*(b - a)."""
    return a + t * (b - a)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def distance_sq(x1: float, y1: float, x2: float, y2: float) -> float:
    dx = x2 - x1
    dy = y2 - y1
    return dx * dx + dy * dy


def normalize_2d(
    dx: float,
    dy: float,
    default: Tuple[float, float] = (0.0, 0.0),
) -> Tuple[float, float]:
    """Return (dx, dy) normalized; a zero-length vector returns `default`."""
    length = math.hypot(dx, dy)
    if length <= 1e-9:
        return default
    return dx / length, dy / length


# ---------------------------------------------------------------------------
# Point-to-segment distance
# ---------------------------------------------------------------------------


def point_to_segment_distance(
    px: float,
    py: float,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
) -> Tuple[float, float, float]:
    """
    Distance from point to line segment, and closest point on segment.

    Returns
    -------
    (distance, closest_x, closest_y)
    """
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq <= 1e-9:
        return math.hypot(px - x1, py - y1), x1, y1
    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = clamp(t, 0.0, 1.0)
    cx = x1 + t * dx
    cy = y1 + t * dy
    return math.hypot(px - cx, py - cy), cx, cy


def closest_point_index(points: Sequence[Tuple[float, float]], px: float, py: float) -> int:
    """Index of the point nearest to (px, py); -1 for an empty sequence."""
    best = -1
    best_d = math.inf
    for i, (x, y) in enumerate(points):
        d = distance_sq(x, y, px, py)
        if d < best_d:
            best_d = d
            best = i
    return best


# ---------------------------------------------------------------------------
# Ray casting
# ---------------------------------------------------------------------------


def ray_segment_distance(
    ox: float,
    oy: float,
    dx: float,
    dy: float,
    ax: float,
    ay: float,
    bx: float,
    by: float,
) -> Optional[float]:
    """
    Distance t along ray origin + t * (dx, dy) to segment (ax,ay)-(bx,by).

    Near-parallel rays (|det| < 1e-9) and hits behind the origin or off the
    segment return None.
    """
    vx = bx - ax
    vy = by - ay
    wx = ax - ox
    wy = ay - oy
    den = dx * vy - dy * vx
    if abs(den) < PARALLEL_EPS:
        return None
    t = (wx * vy - wy * vx) / den
    u = (wx * dy - wy * dx) / den
    if t >= 0.0 and 0.0 <= u <= 1.0:
        return t
    return None


def ray_circle_distance(
    ox: float,
    oy: float,
    dx: float,
    dy: float,
    cx: float,
    cy: float,
    radius: float,
) -> Optional[float]:
    """
    Distance t along a unit-direction ray to a circle, or None for no hit.

    The nearer root wins when both are ahead of the origin; if the origin is
    inside the circle the exit root is returned.
    """
    ocx = ox - cx
    ocy = oy - cy
    b = 2.0 * (ocx * dx + ocy * dy)
    c = ocx * ocx + ocy * ocy - radius * radius
    disc = b * b - 4.0 * c
    if disc < 0.0:
        return None
    sqrt_d = math.sqrt(disc)
    t1 = (-b - sqrt_d) / 2.0
    t2 = (-b + sqrt_d) / 2.0
    if t1 >= 0.0:
        return t1
    if t2 >= 0.0:
        return t2
    return None


# ---------------------------------------------------------------------------
# Polylines and polygon offset
# ---------------------------------------------------------------------------


def densify(
    points: Sequence[Tuple[float, float]],
    step: float = DENSIFY_STEP,
) -> List[Tuple[float, float]]:
    """
    Insert points along each edge of a closed polygon so that consecutive
    points are at most `step` apart (the closing edge included).
    """
    n = len(points)
    if n < 2:
        return list(points)
    dense: List[Tuple[float, float]] = []
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        dense.append((x0, y0))
        length = math.hypot(x1 - x0, y1 - y0)
        if length > step:
            pieces = int(math.ceil(length / step))
            for j in range(1, pieces):
                t = j / pieces
                dense.append((lerp(x0, x1, t), lerp(y0, y1, t)))
    return dense


def offset_polygon(
    points: Sequence[Tuple[float, float]],
    delta: float,
    step: float = DENSIFY_STEP,
) -> List[Tuple[float, float]]:
    """
    Offset a closed polygon by `delta` with round joins, densified and closed.

    Positive deltas grow the polygon, negative deltas shrink it. When the
    offset fails or collapses below three vertices the result is empty.
    """
    if len(points) < 2:
        return []
    pco = pyclipper.PyclipperOffset(CLIPPER_MITER_LIMIT, CLIPPER_ARC_TOLERANCE)
    try:
        pco.AddPath(
            pyclipper.scale_to_clipper([list(p) for p in points], CLIPPER_SCALE),
            pyclipper.JT_ROUND,
            pyclipper.ET_CLOSEDPOLYGON,
        )
        solution = pco.Execute(delta * CLIPPER_SCALE)
    except pyclipper.ClipperException:
        return []
    if not solution:
        return []

    # The offset of a star-shaped loop is one ring; keep the largest if split.
    ring = max(solution, key=lambda path: abs(pyclipper.Area(path)))
    if len(ring) < 3:
        return []
    edge = [(float(x), float(y)) for x, y in pyclipper.scale_from_clipper(ring, CLIPPER_SCALE)]
    edge = densify(edge, step)
    if distance(edge[0][0], edge[0][1], edge[-1][0], edge[-1][1]) > 1.0:
        edge.append(edge[0])
    return edge
