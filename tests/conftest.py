from __future__ import annotations

from typing import List, Sequence, Tuple

import pytest

from track_rover.track import Obstacle, Point, StartLine, Track


def _ring(x0: float, y0: float, x1: float, y1: float) -> Tuple[Point, ...]:
    corners = [(x0, y0), (x1, y0), (x1, y1), (x0, y1), (x0, y0)]
    return tuple(Point(x, y) for x, y in corners)


def make_box_track(obstacles: Sequence[Tuple[float, float, float]] = ()) -> Track:
    """Square ring: outer wall 0..1000, inner wall 400..600, centerline at 200/800."""
    center: List[Point] = [
        Point(200.0, 200.0),
        Point(500.0, 200.0),
        Point(800.0, 200.0),
        Point(800.0, 500.0),
        Point(800.0, 800.0),
        Point(500.0, 800.0),
        Point(200.0, 800.0),
        Point(200.0, 500.0),
    ]
    return Track(
        center_line=tuple(center),
        width=400.0,
        length=len(center),
        left_edge=_ring(0.0, 0.0, 1000.0, 1000.0),
        right_edge=_ring(400.0, 400.0, 600.0, 600.0),
        obstacles=tuple(Obstacle(position=Point(x, y), radius=r) for x, y, r in obstacles),
        start_line=StartLine(a=Point(0.0, 500.0), b=Point(400.0, 500.0)),
    )


@pytest.fixture
def box_track() -> Track:
    return make_box_track()


@pytest.fixture
def box_track_factory():
    return make_box_track
