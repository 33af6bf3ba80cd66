from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple
import math

import numpy as np

from .geometry_utils import PARALLEL_EPS
from .track import Track


@dataclass
class LidarConfig:
    """Configuration for the 360-degree range sensor."""

    num_rays: int = 36
    max_range: float = 800.0
    robot_radius: float = 20.0
    min_range: float = 0.0


@dataclass(frozen=True)
class CardinalReadings:
    """Clearances along the four body axes.

    The world frame is a screen frame (y grows downward), so a beam rotated by
    +90 degrees from the heading points to the rover's right.
    """

    forward: float
    right: float
    back: float
    left: float


def cast_rays(
    track: Track,
    x: float,
    y: float,
    angles: Sequence[float],
) -> np.ndarray:
    """Distance to the nearest edge or obstacle along each world-frame angle.

    Beams with no hit report +inf. Every beam is tested against every edge
    segment and every obstacle in one broadcast, so the cost is
    O(len(angles) * (segments + obstacles)) with no per-test allocation.
    """
    ang = np.asarray(angles, dtype=np.float64)
    dx = np.cos(ang)[:, None]
    dy = np.sin(ang)[:, None]
    nearest = np.full(ang.shape[0], np.inf)

    seg = track.edge_segments
    if seg.shape[0] > 0:
        vx = seg[:, 2] - seg[:, 0]
        vy = seg[:, 3] - seg[:, 1]
        wx = seg[:, 0] - x
        wy = seg[:, 1] - y
        den = dx * vy - dy * vx
        usable = np.abs(den) >= PARALLEL_EPS
        safe = np.where(usable, den, 1.0)
        t = (wx * vy - wy * vx) / safe
        u = (wx * dy - wy * dx) / safe
        hit = usable & (t >= 0.0) & (u >= 0.0) & (u <= 1.0)
        nearest = np.minimum(nearest, np.where(hit, t, np.inf).min(axis=1))

    obs = track.obstacle_array
    if obs.shape[0] > 0:
        ocx = x - obs[:, 0]
        ocy = y - obs[:, 1]
        b = 2.0 * (ocx * dx + ocy * dy)
        c = ocx * ocx + ocy * ocy - obs[:, 2] * obs[:, 2]
        disc = b * b - 4.0 * c
        sqrt_d = np.sqrt(np.maximum(disc, 0.0))
        t1 = (-b - sqrt_d) / 2.0
        t2 = (-b + sqrt_d) / 2.0
        t = np.where(t1 >= 0.0, t1, np.where(t2 >= 0.0, t2, np.inf))
        t = np.where(disc >= 0.0, t, np.inf)
        nearest = np.minimum(nearest, t.min(axis=1))

    return nearest


def circular_scan(
    pose: Tuple[float, float, float],
    track: Track,
    beam_count: int = 36,
    max_range: float = 800.0,
    robot_radius: float = 20.0,
    min_range: float = 0.0,
) -> List[float]:
    """Clearance per beam, beam i at heading + i * 2*pi / beam_count.

    Clearance is the nearest hit distance minus the robot radius, clamped to
    [min_range, max_range]; a beam that hits nothing reports max_range.
    """
    if beam_count <= 0:
        return []
    x, y, heading = pose
    step = 2.0 * math.pi / beam_count
    angles = [heading + i * step for i in range(beam_count)]
    return _to_clearances(cast_rays(track, x, y, angles), max_range, robot_radius, min_range)


def cardinal_scan(
    pose: Tuple[float, float, float],
    track: Track,
    max_range: float = 800.0,
    robot_radius: float = 20.0,
    min_range: float = 0.0,
) -> CardinalReadings:
    """Four-beam scan: forward, right, back and left of the heading."""
    x, y, heading = pose
    angles = [heading, heading + math.pi / 2.0, heading + math.pi, heading - math.pi / 2.0]
    forward, right, back, left = _to_clearances(
        cast_rays(track, x, y, angles), max_range, robot_radius, min_range
    )
    return CardinalReadings(forward=forward, right=right, back=back, left=left)


def _to_clearances(
    hits: np.ndarray,
    max_range: float,
    robot_radius: float,
    min_range: float,
) -> List[float]:
    clearance = np.minimum(hits - robot_radius, max_range)
    clearance = np.maximum(clearance, min_range)
    return [float(c) for c in clearance]


class LidarSensor:
    """Exact (noiseless) 2D LiDAR against track edges and circular obstacles."""

    def __init__(self, config: LidarConfig) -> None:
        self.config = config

    def scan(self, track: Track, pose: Tuple[float, float, float]) -> List[float]:
        """Perform a full circular scan from the given pose.

        Parameters
        ----------
        track : Track
            Track whose edges and obstacles block the beams.
        pose : tuple
            (x, y, heading) of the sensor in world frame.

        Returns
        -------
        list[float]
            One clearance per beam, beam 0 along the heading.
        """
        cfg = self.config
        return circular_scan(
            pose,
            track,
            beam_count=cfg.num_rays,
            max_range=cfg.max_range,
            robot_radius=cfg.robot_radius,
            min_range=cfg.min_range,
        )

    def scan_cardinal(self, track: Track, pose: Tuple[float, float, float]) -> CardinalReadings:
        cfg = self.config
        return cardinal_scan(
            pose,
            track,
            max_range=cfg.max_range,
            robot_radius=cfg.robot_radius,
            min_range=cfg.min_range,
        )
