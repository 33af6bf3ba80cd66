"""
Penetration resolution against obstacles and track edges.

After the controller moves the rover, the proposed position may overlap an
obstacle or poke through a boundary. The resolver pushes it back out in a few
geometric passes. It changes position only; heading and speed are untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import math

import numpy as np

from .geometry_utils import normalize_2d
from .rover import RoverState
from .track import Track

RESOLVE_PASSES = 12
RESOLVE_MARGIN = 2.0

# Overlaps smaller than this count as resolved, so a resolved pose stays put.
OVERLAP_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Resolution:
    """Corrected pose plus how much work it took."""

    state: RoverState
    passes: int
    correction: float

    @property
    def corrected(self) -> bool:
        return self.correction > 0.0


def nearest_edge_point(track: Track, x: float, y: float) -> Optional[Tuple[float, float, float]]:
    """(distance, closest_x, closest_y) over both edge polylines, or None."""
    seg = track.edge_segments
    if seg.shape[0] == 0:
        return None
    ax = seg[:, 0]
    ay = seg[:, 1]
    abx = seg[:, 2] - ax
    aby = seg[:, 3] - ay
    ab2 = abx * abx + aby * aby
    safe = np.where(ab2 > 1e-9, ab2, 1.0)
    t = np.clip(((x - ax) * abx + (y - ay) * aby) / safe, 0.0, 1.0)
    t = np.where(ab2 > 1e-9, t, 0.0)
    cx = ax + abx * t
    cy = ay + aby * t
    d = np.hypot(x - cx, y - cy)
    i = int(np.argmin(d))
    return float(d[i]), float(cx[i]), float(cy[i])


def resolve_penetration(
    pose: RoverState,
    center_index: int,
    track: Track,
    robot_radius: float,
    margin: float = RESOLVE_MARGIN,
    max_passes: int = RESOLVE_PASSES,
) -> Resolution:
    """
    Push a proposed pose out of obstacles and boundaries.

    Each pass moves the rover straight away from every obstacle it overlaps
    (by exactly the overlap, keeping `margin` extra clearance) and then away
    from the nearest edge point if it is closer than robot_radius + margin.
    The edge push is flipped when needed so it never points away from the
    centerline sample `center_index`. Stops after the first pass with no
    correction.
    """
    x, y = pose.x, pose.y
    if 0 <= center_index < track.length:
        center = track.center_line[center_index]
        center_x, center_y = center.x, center.y
    else:
        center_x, center_y = x, y

    total = 0.0
    passes = 0
    for _ in range(max_passes):
        passes += 1
        changed = False

        for o in track.obstacles:
            dx = x - o.position.x
            dy = y - o.position.y
            d = math.hypot(dx, dy)
            min_d = o.radius + robot_radius + margin
            if d < min_d - OVERLAP_TOLERANCE:
                ux, uy = normalize_2d(dx, dy)
                if ux == 0.0 and uy == 0.0:
                    ux, uy = normalize_2d(center_x - x, center_y - y, default=(1.0, 0.0))
                push = min_d - d
                x += ux * push
                y += uy * push
                total += push
                changed = True

        edge = nearest_edge_point(track, x, y)
        min_clear = robot_radius + margin
        if edge is not None and edge[0] < min_clear - OVERLAP_TOLERANCE:
            d, ex, ey = edge
            ax, ay = normalize_2d(x - ex, y - ey)
            tx, ty = normalize_2d(center_x - x, center_y - y)
            if ax * tx + ay * ty < 0.0:
                ax, ay = -ax, -ay
            if ax == 0.0 and ay == 0.0:
                ax, ay = tx, ty
            push = min_clear - d
            x += ax * push
            y += ay * push
            total += push
            changed = True

        if not changed:
            break

    return Resolution(
        state=RoverState(x=x, y=y, heading=pose.heading),
        passes=passes,
        correction=total,
    )
