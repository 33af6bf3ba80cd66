"""
Procedural track generation.

A track is rebuilt entirely from an integer seed and a TrackConfig: control
points on a noisy circle, a closed spline centerline, offset boundary edges,
a start line and a set of circular obstacles placed by rejection sampling.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple
import logging
import math

from .geometry_utils import (
    closest_point_index,
    distance,
    normalize_2d,
    offset_polygon,
    point_to_segment_distance,
)
from .rng import mulberry32
from .spline import generate_control_points, sample_closed_spline
from .track import Obstacle, Point, StartLine, Track, TrackConfig, TrackStatus

_logger = logging.getLogger(__name__)

TRACK_CENTER = (800.0, 600.0)
SPLINE_SAMPLES = 1200
START_LINE_CLEARANCE = 120.0

OBSTACLE_MIN_DIST = 80.0
OBSTACLE_RADIUS_MIN = 12.0
OBSTACLE_RADIUS_MAX = 20.0
OBSTACLE_LATERAL_FACTOR = 0.4
OBSTACLE_ATTEMPTS_FACTOR = 50
OBSTACLE_EDGE_SKIP = 10


# ---------------------------------------------------------------------------
# Start line
# ---------------------------------------------------------------------------


def compute_start_line(
    center_line: Sequence[Tuple[float, float]],
    left_edge: Sequence[Tuple[float, float]],
    right_edge: Sequence[Tuple[float, float]],
    rand: Callable[[], float],
) -> StartLine:
    """Pick a random centerline sample and join the nearest point on each edge."""
    if not center_line:
        fallback = left_edge[0] if left_edge else right_edge[0] if right_edge else (0.0, 0.0)
        p = Point(*fallback)
        return StartLine(a=p, b=p)

    px, py = center_line[int(rand() * len(center_line))]
    ia = closest_point_index(left_edge, px, py)
    ib = closest_point_index(right_edge, px, py)
    a = Point(*left_edge[ia]) if ia >= 0 else Point(px, py)
    b = Point(*right_edge[ib]) if ib >= 0 else Point(px, py)
    return StartLine(a=a, b=b)


def distance_to_start_line(position: Point, start_line: StartLine) -> float:
    d, _, _ = point_to_segment_distance(
        position.x,
        position.y,
        start_line.a.x,
        start_line.a.y,
        start_line.b.x,
        start_line.b.y,
    )
    return d


# ---------------------------------------------------------------------------
# Obstacles
# ---------------------------------------------------------------------------


def generate_obstacles(
    rand: Callable[[], float],
    center_line: Sequence[Tuple[float, float]],
    track_width: float,
    count: int,
) -> List[Obstacle]:
    """
    Scatter up to `count` circular obstacles near the centerline.

    Candidates sit on an interior centerline sample, shifted sideways by up to
    40% of the track width. Candidates closer than OBSTACLE_MIN_DIST to an
    accepted obstacle are rejected; sampling gives up after count * 50 tries.
    """
    n = len(center_line)
    obstacles: List[Obstacle] = []
    if count <= 0 or n <= 2 * OBSTACLE_EDGE_SKIP:
        return obstacles

    attempts = 0
    max_attempts = count * OBSTACLE_ATTEMPTS_FACTOR
    while len(obstacles) < count and attempts < max_attempts:
        attempts += 1
        i = int(rand() * (n - 2 * OBSTACLE_EDGE_SKIP)) + OBSTACLE_EDGE_SKIP
        px, py = center_line[i]
        qx, qy = center_line[(i + 1) % n]
        tx, ty = normalize_2d(qx - px, qy - py, default=(1.0, 0.0))
        nx, ny = -ty, tx
        lateral = (rand() * 2.0 - 1.0) * track_width * OBSTACLE_LATERAL_FACTOR
        x = px + nx * lateral
        y = py + ny * lateral
        radius = OBSTACLE_RADIUS_MIN + rand() * (OBSTACLE_RADIUS_MAX - OBSTACLE_RADIUS_MIN)

        if any(
            distance(o.position.x, o.position.y, x, y) < OBSTACLE_MIN_DIST
            for o in obstacles
        ):
            continue
        obstacles.append(Obstacle(position=Point(x, y), radius=radius))

    if len(obstacles) < count:
        _logger.debug(
            "Placed %d of %d obstacles after %d attempts", len(obstacles), count, attempts
        )
    return obstacles


# ---------------------------------------------------------------------------
# Track assembly
# ---------------------------------------------------------------------------


def generate_track(seed: int, config: Optional[TrackConfig] = None) -> Track:
    """
    Build a Track from a seed and shape parameters.

    The same (seed, config) always produces the same track. Degenerate edge
    geometry does not raise: the returned track has status DEGENERATE and the
    caller decides whether to use it.
    """
    cfg = config or TrackConfig()
    rand = mulberry32(seed)
    cx, cy = TRACK_CENTER

    control = generate_control_points(
        rand, cfg.control_points, cx, cy, cfg.min_radius, cfg.max_radius
    )
    center = sample_closed_spline(control, SPLINE_SAMPLES)
    left = offset_polygon(center, cfg.track_width)
    right = offset_polygon(center, -cfg.track_width)

    start_line = compute_start_line(center, left, right, rand)

    raw_obstacles = generate_obstacles(rand, center, cfg.track_width, cfg.obstacle_count)
    obstacles = tuple(
        o
        for o in raw_obstacles
        if distance_to_start_line(o.position, start_line) >= START_LINE_CLEARANCE + o.radius
    )

    status = TrackStatus.VALID
    if len(left) < 3 or len(right) < 3:
        status = TrackStatus.DEGENERATE
        _logger.warning(
            "Track seed=%d has degenerate edges (left=%d, right=%d points)",
            seed,
            len(left),
            len(right),
        )

    _logger.debug(
        "Generated track seed=%d: %d centerline samples, %d/%d edge points, %d obstacles",
        seed,
        len(center),
        len(left),
        len(right),
        len(obstacles),
    )

    return Track(
        center_line=tuple(Point(x, y) for x, y in center),
        width=cfg.track_width * 2.0,
        length=len(center),
        left_edge=tuple(Point(x, y) for x, y in left),
        right_edge=tuple(Point(x, y) for x, y in right),
        obstacles=obstacles,
        start_line=start_line,
        status=status,
        seed=seed,
    )
