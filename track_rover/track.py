from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Dict, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    """2D point in world units."""

    x: float
    y: float


@dataclass(frozen=True)
class Obstacle:
    """Circular obstacle placed on the track.

    Attributes
    ----------
    position : Point
        Circle center in world coordinates.
    radius : float
        Circle radius in world units.
    """

    position: Point
    radius: float


@dataclass(frozen=True)
class StartLine:
    """Start/finish gate between the left edge point `a` and right edge point `b`."""

    a: Point
    b: Point

    @property
    def midpoint(self) -> Point:
        return Point((self.a.x + self.b.x) / 2.0, (self.a.y + self.b.y) / 2.0)


@dataclass(frozen=True)
class TrackConfig:
    """Shape parameters for procedural track generation."""

    control_points: int = 16
    min_radius: float = 300.0
    max_radius: float = 520.0
    track_width: float = 90.0
    obstacle_count: int = 15


class TrackStatus(Enum):
    VALID = "valid"
    DEGENERATE = "degenerate"


class InvalidTrackError(ValueError):
    """Raised when a simulation is started on a track with degenerate edges."""


@dataclass(frozen=True)
class Track:
    """Closed-loop track with boundary edges and obstacles.

    A Track is immutable once built: every sequence is a tuple and the numpy
    views derived from it are read-only. Regenerating with new parameters
    produces a new Track.

    Attributes
    ----------
    center_line : tuple[Point, ...]
        Closed midline, in traversal order.
    width : float
        Full track width (twice the edge offset).
    length : int
        Number of centerline samples.
    left_edge, right_edge : tuple[Point, ...]
        Closed boundary polylines offset by +/- half the width. Empty when
        the offset degenerated.
    obstacles : tuple[Obstacle, ...]
        Circular obstacles, none of them near the start line.
    start_line : StartLine
        Start/finish gate.
    status : TrackStatus
        DEGENERATE when either edge has fewer than three points.
    seed : int
        Seed the track was generated from.
    """

    center_line: Tuple[Point, ...]
    width: float
    length: int
    left_edge: Tuple[Point, ...]
    right_edge: Tuple[Point, ...]
    obstacles: Tuple[Obstacle, ...]
    start_line: StartLine
    status: TrackStatus = TrackStatus.VALID
    seed: int = 0

    @property
    def is_valid(self) -> bool:
        return self.status is TrackStatus.VALID

    # ------------------------------------------------------------------
    # Array views for the sensor and resolver
    # ------------------------------------------------------------------
    @cached_property
    def edge_segments(self) -> np.ndarray:
        """(N, 4) array of [ax, ay, bx, by] for consecutive points of each edge."""
        rows = []
        for edge in (self.left_edge, self.right_edge):
            for a, b in zip(edge[:-1], edge[1:]):
                rows.append((a.x, a.y, b.x, b.y))
        return _readonly(np.asarray(rows, dtype=np.float64).reshape(-1, 4))

    @cached_property
    def obstacle_array(self) -> np.ndarray:
        """(M, 3) array of [x, y, radius]."""
        rows = [(o.position.x, o.position.y, o.radius) for o in self.obstacles]
        return _readonly(np.asarray(rows, dtype=np.float64).reshape(-1, 3))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Serialize the track geometry to plain Python containers."""
        return {
            "seed": self.seed,
            "status": self.status.value,
            "width": self.width,
            "length": self.length,
            "center_line": _points_to_list(self.center_line),
            "left_edge": _points_to_list(self.left_edge),
            "right_edge": _points_to_list(self.right_edge),
            "obstacles": [
                {"x": o.position.x, "y": o.position.y, "radius": o.radius}
                for o in self.obstacles
            ],
            "start_line": {
                "a": {"x": self.start_line.a.x, "y": self.start_line.a.y},
                "b": {"x": self.start_line.b.x, "y": self.start_line.b.y},
            },
        }


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def _points_to_list(points: Sequence[Point]) -> list:
    return [[p.x, p.y] for p in points]
