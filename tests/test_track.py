from __future__ import annotations

import dataclasses
import math

import pytest

from track_rover.geometry_utils import point_to_segment_distance
from track_rover.track import TrackConfig, TrackStatus
from track_rover.track_generator import (
    OBSTACLE_MIN_DIST,
    SPLINE_SAMPLES,
    START_LINE_CLEARANCE,
    compute_start_line,
    generate_track,
)


def _max_gap(edge) -> float:
    return max(math.hypot(b.x - a.x, b.y - a.y) for a, b in zip(edge[:-1], edge[1:]))


def test_generation_is_deterministic() -> None:
    cfg = TrackConfig(control_points=20, obstacle_count=25)
    a = generate_track(1234, cfg)
    b = generate_track(1234, cfg)
    assert a.center_line == b.center_line
    assert a.left_edge == b.left_edge
    assert a.right_edge == b.right_edge
    assert a.obstacles == b.obstacles
    assert a.start_line == b.start_line
    assert a == b


def test_different_seeds_give_different_tracks() -> None:
    assert generate_track(1).center_line != generate_track(2).center_line


def test_default_scenario_track() -> None:
    cfg = TrackConfig(
        control_points=16, min_radius=300, max_radius=520, track_width=90, obstacle_count=15
    )
    track = generate_track(69420, cfg)

    assert track.length == SPLINE_SAMPLES == len(track.center_line)
    assert track.width == 180.0
    assert track.status is TrackStatus.VALID
    assert len(track.left_edge) >= 3
    assert len(track.right_edge) >= 3

    # Both gate ends lie roughly one half-width from a common centerline sample
    a, b = track.start_line.a, track.start_line.b
    best = min(
        max(math.hypot(p.x - a.x, p.y - a.y), math.hypot(p.x - b.x, p.y - b.y))
        for p in track.center_line
    )
    assert best <= 90.0 * 1.1


def test_edges_are_dense_and_closed() -> None:
    for seed in (0, 7, 69420, 99999):
        track = generate_track(seed)
        for edge in (track.left_edge, track.right_edge):
            assert len(edge) >= 3
            assert _max_gap(edge) <= 3.0 + 1e-6
            assert math.hypot(edge[0].x - edge[-1].x, edge[0].y - edge[-1].y) <= 3.0 + 1e-6


def test_edges_are_offset_by_half_width() -> None:
    track = generate_track(5)
    center = [(p.x, p.y) for p in track.center_line]
    for edge in (track.left_edge, track.right_edge):
        for p in edge[:: max(1, len(edge) // 40)]:
            d = min(math.hypot(p.x - x, p.y - y) for x, y in center)
            # Centerline samples are ~2 units apart, so allow a little slack
            assert 85.0 <= d <= 91.0


def test_obstacles_keep_start_line_clear() -> None:
    for seed in range(10):
        track = generate_track(seed, TrackConfig(obstacle_count=50))
        sl = track.start_line
        for o in track.obstacles:
            d, _, _ = point_to_segment_distance(
                o.position.x, o.position.y, sl.a.x, sl.a.y, sl.b.x, sl.b.y
            )
            assert d >= START_LINE_CLEARANCE + o.radius


def test_obstacle_placement_rules() -> None:
    track = generate_track(31337, TrackConfig(obstacle_count=30))
    assert len(track.obstacles) <= 30
    for i, o in enumerate(track.obstacles):
        assert 12.0 <= o.radius <= 20.0
        for other in track.obstacles[i + 1 :]:
            d = math.hypot(o.position.x - other.position.x, o.position.y - other.position.y)
            assert d >= OBSTACLE_MIN_DIST


def test_zero_obstacles() -> None:
    assert generate_track(3, TrackConfig(obstacle_count=0)).obstacles == ()


def test_track_is_immutable() -> None:
    track = generate_track(11)
    with pytest.raises(dataclasses.FrozenInstanceError):
        track.width = 1.0  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        track.center_line[0].x = 1.0  # type: ignore[misc]
    assert isinstance(track.center_line, tuple)
    with pytest.raises(ValueError):
        track.edge_segments[0, 0] = 0.0


def test_degenerate_offset_is_reported_not_raised() -> None:
    # Inner offset of 200 swallows a loop whose radius never exceeds 150
    track = generate_track(8, TrackConfig(min_radius=100, max_radius=150, track_width=200))
    assert track.status is TrackStatus.DEGENERATE
    assert not track.is_valid
    assert track.right_edge == ()
    assert len(track.left_edge) >= 3


def test_start_line_without_centerline() -> None:
    sl = compute_start_line([], [(1.0, 2.0)], [], lambda: 0.5)
    assert sl.a == sl.b
    assert (sl.a.x, sl.a.y) == (1.0, 2.0)


def test_to_dict_exports_geometry() -> None:
    track = generate_track(21, TrackConfig(obstacle_count=5))
    data = track.to_dict()
    assert data["length"] == 1200
    assert len(data["center_line"]) == 1200
    assert len(data["obstacles"]) == len(track.obstacles)
    assert data["status"] == "valid"
