"""
Top-level package for the track rover simulator.

Components:
- rng: seeded Mulberry32 generator
- spline: control points and closed cardinal spline sampling
- geometry_utils: angles, distances, ray casting, polygon offset
- track / track_generator: immutable Track model and procedural generation
- sensors: 360-degree LiDAR against track edges and obstacles
- rover: rover state and the reactive autonomous controller
- resolver: penetration resolution after each motion step
- path_follower: centerline lookahead target heading
- session: one track plus one rover, stepped tick by tick
"""

from .track import (
    InvalidTrackError,
    Obstacle,
    Point,
    StartLine,
    Track,
    TrackConfig,
    TrackStatus,
)
from .track_generator import generate_track
from .rover import ControllerConfig, RoverController, RoverState, StepOutcome
from .sensors import CardinalReadings, LidarConfig, LidarSensor
from .resolver import Resolution, resolve_penetration
from .path_follower import CenterlineFollower
from .session import SessionConfig, SimulationSession, TickResult

__all__ = [
    "InvalidTrackError",
    "Obstacle",
    "Point",
    "StartLine",
    "Track",
    "TrackConfig",
    "TrackStatus",
    "generate_track",
    "ControllerConfig",
    "RoverController",
    "RoverState",
    "StepOutcome",
    "CardinalReadings",
    "LidarConfig",
    "LidarSensor",
    "Resolution",
    "resolve_penetration",
    "CenterlineFollower",
    "SessionConfig",
    "SimulationSession",
    "TickResult",
]
