"""
Closed cardinal spline through randomly placed control points.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple
import math


SPLINE_TENSION = 0.5


def generate_control_points(
    rand: Callable[[], float],
    count: int,
    cx: float,
    cy: float,
    min_radius: float,
    max_radius: float,
) -> List[Tuple[float, float]]:
    """Place `count` vertices evenly in angle around (cx, cy) at random radii."""
    points: List[Tuple[float, float]] = []
    for i in range(count):
        angle = (i / count) * 2.0 * math.pi
        radius = min_radius + rand() * (max_radius - min_radius)
        points.append((cx + math.cos(angle) * radius, cy + math.sin(angle) * radius))
    return points


def sample_closed_spline(
    control: Sequence[Tuple[float, float]],
    samples: int,
    tension: float = SPLINE_TENSION,
) -> List[Tuple[float, float]]:
    """
    Sample a closed cardinal spline through `control` at `samples` points.

    Tension 0 is a Catmull-Rom curve; the tangent at each vertex is
    (1 - tension) / 2 times the chord between its neighbours. Indices wrap
    modulo the control point count, so the last sample leads smoothly back
    into the first.
    """
    n = len(control)
    if n == 0 or samples <= 0:
        return []
    if n < 3:
        return [control[(i * n) // samples] for i in range(samples)]

    scale = (1.0 - tension) / 2.0
    points: List[Tuple[float, float]] = []
    for i in range(samples):
        t = (i / samples) * n
        seg = int(math.floor(t))
        f = t - seg
        p0 = control[(seg - 1) % n]
        p1 = control[seg % n]
        p2 = control[(seg + 1) % n]
        p3 = control[(seg + 2) % n]

        f2 = f * f
        f3 = f2 * f
        h00 = 2.0 * f3 - 3.0 * f2 + 1.0
        h10 = f3 - 2.0 * f2 + f
        h01 = -2.0 * f3 + 3.0 * f2
        h11 = f3 - f2

        m1x = scale * (p2[0] - p0[0])
        m1y = scale * (p2[1] - p0[1])
        m2x = scale * (p3[0] - p1[0])
        m2y = scale * (p3[1] - p1[1])

        x = h00 * p1[0] + h10 * m1x + h01 * p2[0] + h11 * m2x
        y = h00 * p1[1] + h10 * m1y + h01 * p2[1] + h11 * m2y
        points.append((x, y))
    return points
