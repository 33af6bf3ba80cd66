from __future__ import annotations

import math
import random

from track_rover.geometry_utils import ray_circle_distance, ray_segment_distance
from track_rover.sensors import (
    LidarConfig,
    LidarSensor,
    cardinal_scan,
    cast_rays,
    circular_scan,
)
from track_rover.track_generator import generate_track


def test_lidar_hits_walls_of_box(box_track) -> None:
    lidar = LidarSensor(LidarConfig(num_rays=4, max_range=800.0, robot_radius=20.0))

    # Rover at x=100 in the left corridor, facing +x
    ranges = lidar.scan(box_track, pose=(100.0, 500.0, 0.0))
    assert len(ranges) == 4
    assert math.isclose(ranges[0], 300.0 - 20.0, rel_tol=1e-9)  # inner wall at x=400
    assert math.isclose(ranges[1], 500.0 - 20.0, rel_tol=1e-9)  # y=1000
    assert math.isclose(ranges[2], 100.0 - 20.0, rel_tol=1e-9)  # x=0
    assert math.isclose(ranges[3], 500.0 - 20.0, rel_tol=1e-9)  # y=0


def test_obstacle_directly_ahead_reports_distance_minus_radius(box_track_factory) -> None:
    # Circle surface 140 units ahead, wall at 300
    track = box_track_factory(obstacles=[(250.0, 500.0, 10.0)])
    ranges = circular_scan((100.0, 500.0, 0.0), track, beam_count=36, robot_radius=20.0)
    assert math.isclose(ranges[0], 140.0 - 20.0, rel_tol=1e-9)


def test_range_bounds(box_track_factory) -> None:
    track = box_track_factory(obstacles=[(125.0, 500.0, 10.0)])
    # Surface 15 ahead, clearance -5 -> raised to min_range
    ranges = circular_scan((100.0, 500.0, 0.0), track, beam_count=8, robot_radius=20.0, min_range=2.0)
    assert ranges[0] == 2.0
    ranges = circular_scan((100.0, 500.0, 0.0), track, beam_count=8, max_range=50.0)
    assert all(r <= 50.0 for r in ranges)


def test_no_hit_reports_max_range(box_track) -> None:
    # Outside the box, facing away from it
    ranges = circular_scan((-100.0, 500.0, math.pi), box_track, beam_count=1, max_range=800.0)
    assert ranges == [800.0]


def test_larger_max_range_never_lowers_clearance() -> None:
    track = generate_track(69420)
    p = track.start_line.midpoint
    short = circular_scan((p.x, p.y, 0.3), track, beam_count=36, max_range=60.0)
    long = circular_scan((p.x, p.y, 0.3), track, beam_count=36, max_range=800.0)
    for s, l in zip(short, long):
        assert l >= s


def test_cardinal_scan_matches_four_beam_scan() -> None:
    track = generate_track(5)
    p = track.center_line[300]
    pose = (p.x, p.y, 1.1)
    four = circular_scan(pose, track, beam_count=4)
    card = cardinal_scan(pose, track)
    assert math.isclose(card.forward, four[0])
    assert math.isclose(card.right, four[1])
    assert math.isclose(card.back, four[2])
    assert math.isclose(card.left, four[3], abs_tol=1e-9)


def test_vectorized_cast_matches_scalar_reference() -> None:
    track = generate_track(77)
    rng = random.Random(0)
    for _ in range(5):
        c = track.center_line[rng.randrange(track.length)]
        x = c.x + rng.uniform(-30.0, 30.0)
        y = c.y + rng.uniform(-30.0, 30.0)
        angles = [rng.uniform(-math.pi, math.pi) for _ in range(6)]
        fast = cast_rays(track, x, y, angles)
        for ang, got in zip(angles, fast):
            dx, dy = math.cos(ang), math.sin(ang)
            best = math.inf
            for edge in (track.left_edge, track.right_edge):
                for a, b in zip(edge[:-1], edge[1:]):
                    t = ray_segment_distance(x, y, dx, dy, a.x, a.y, b.x, b.y)
                    if t is not None:
                        best = min(best, t)
            for o in track.obstacles:
                t = ray_circle_distance(x, y, dx, dy, o.position.x, o.position.y, o.radius)
                if t is not None:
                    best = min(best, t)
            assert math.isclose(got, best, rel_tol=1e-9, abs_tol=1e-9)


def test_sensor_cardinal_readings(box_track) -> None:
    lidar = LidarSensor(LidarConfig(robot_radius=20.0))
    readings = lidar.scan_cardinal(box_track, pose=(100.0, 500.0, 0.0))
    assert math.isclose(readings.forward, 280.0)
    assert math.isclose(readings.back, 80.0)
    assert math.isclose(readings.right, 480.0)
    assert math.isclose(readings.left, 480.0)
