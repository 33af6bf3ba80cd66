"""
YAML configuration loading.

Layout of a config file (every key optional)::

    seed: 69420
    track: {control_points, min_radius, max_radius, track_width, obstacle_count}
    rover: {safety_scale, speed, reduced_fidelity}
    lidar: {num_rays, max_range}
    sim: {max_dt, lookahead}
"""

from __future__ import annotations

from typing import Any, Dict

import yaml

from .session import SessionConfig
from .track import TrackConfig


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def track_config_from_dict(data: Dict[str, Any]) -> TrackConfig:
    defaults = TrackConfig()
    return TrackConfig(
        control_points=int(data.get("control_points", defaults.control_points)),
        min_radius=float(data.get("min_radius", defaults.min_radius)),
        max_radius=float(data.get("max_radius", defaults.max_radius)),
        track_width=float(data.get("track_width", defaults.track_width)),
        obstacle_count=int(data.get("obstacle_count", defaults.obstacle_count)),
    )


def session_config_from_dict(cfg: Dict[str, Any]) -> SessionConfig:
    """Build a SessionConfig from a parsed YAML dict, defaulting missing keys."""
    defaults = SessionConfig()
    rover_cfg = cfg.get("rover") or {}
    lidar_cfg = cfg.get("lidar") or {}
    sim_cfg = cfg.get("sim") or {}
    return SessionConfig(
        seed=int(cfg.get("seed", defaults.seed)),
        track=track_config_from_dict(cfg.get("track") or {}),
        safety_scale=float(rover_cfg.get("safety_scale", defaults.safety_scale)),
        speed=float(rover_cfg.get("speed", defaults.speed)),
        reduced_fidelity=bool(rover_cfg.get("reduced_fidelity", defaults.reduced_fidelity)),
        beam_count=int(lidar_cfg.get("num_rays", defaults.beam_count)),
        max_range=float(lidar_cfg.get("max_range", defaults.max_range)),
        max_dt=float(sim_cfg.get("max_dt", defaults.max_dt)),
        lookahead=float(sim_cfg.get("lookahead", defaults.lookahead)),
    )


def load_session_config(path: str) -> SessionConfig:
    return session_config_from_dict(load_yaml(path))
