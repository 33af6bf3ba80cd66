from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from telemetry.logger import TelemetryLogger
from track_rover.config import load_session_config, session_config_from_dict
from track_rover.session import SessionConfig, SimulationSession
from track_rover.track import InvalidTrackError, TrackConfig

CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "sim.yaml"


def test_session_runs_from_yaml_config() -> None:
    cfg = load_session_config(str(CONFIG_PATH))
    assert cfg.seed == 69420
    assert cfg.beam_count == 36

    session = SimulationSession(cfg)
    start = session.state
    results = session.run(ticks=150, dt=0.1)

    assert len(results) == 150
    # dt is clamped to the configured maximum
    assert all(r.dt == cfg.max_dt for r in results)
    assert math.isclose(session.elapsed, 150 * cfg.max_dt)
    assert not any(r.outcome.degraded for r in results)
    assert all(len(r.scan) == 36 for r in results)
    end = session.state
    assert math.hypot(end.x - start.x, end.y - start.y) > 10.0


def test_rover_stays_clear_of_obstacles() -> None:
    session = SimulationSession(SessionConfig(seed=69420))
    r = session.robot_radius
    for result in session.run(ticks=400, dt=0.05):
        s = result.state
        assert -math.pi < s.heading <= math.pi
        for o in session.track.obstacles:
            assert math.hypot(s.x - o.position.x, s.y - o.position.y) >= o.radius + r / 2.0


def test_start_pose_is_on_start_line() -> None:
    session = SimulationSession(SessionConfig(seed=69420))
    mid = session.track.start_line.midpoint
    assert (session.state.x, session.state.y) == (mid.x, mid.y)
    # Start heading points forward along the track, not back
    target = session.follower.target_heading(mid.x, mid.y)
    diff = math.atan2(math.sin(target - session.state.heading), math.cos(target - session.state.heading))
    assert abs(diff) < math.pi / 2.0


def test_reduced_fidelity_session_runs() -> None:
    session = SimulationSession(SessionConfig(seed=7, reduced_fidelity=True))
    results = session.run(ticks=60, dt=0.05)
    assert not any(r.outcome.escaping for r in results)


def test_invalid_track_refused() -> None:
    cfg = SessionConfig(seed=8, track=TrackConfig(min_radius=100, max_radius=150, track_width=200))
    with pytest.raises(InvalidTrackError):
        SimulationSession(cfg)


def test_safety_scale_grows_robot_radius() -> None:
    small = SessionConfig(safety_scale=1.0)
    big = SessionConfig(safety_scale=1.5)
    assert math.isclose(small.robot_radius, 33.0 / math.sqrt(3.0))
    assert math.isclose(big.robot_radius, 1.5 * small.robot_radius)


def test_partial_config_dict_uses_defaults() -> None:
    cfg = session_config_from_dict({"seed": 5, "track": {"obstacle_count": 3}, "rover": {"speed": 80}})
    assert cfg.seed == 5
    assert cfg.track.obstacle_count == 3
    assert cfg.track.control_points == 16
    assert cfg.speed == 80.0
    assert cfg.max_dt == 0.05


def test_telemetry_written_per_tick(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "run.jsonl"
    with TelemetryLogger(str(path)) as telemetry:
        session = SimulationSession(SessionConfig(seed=3), telemetry=telemetry)
        session.run(ticks=25, dt=0.05)
        assert telemetry.records_written == 25

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 25
    first = json.loads(lines[0])
    assert first["tick"] == 0
    assert set(first) >= {"x", "y", "heading", "angular_rate", "displacement", "escaping"}


def test_on_demand_scan_matches_tick_scan() -> None:
    session = SimulationSession(SessionConfig(seed=11))
    debug = session.scan()
    result = session.tick(0.05)
    assert debug == result.scan
