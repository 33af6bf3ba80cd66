from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import math

from .geometry_utils import clamp, closest_point_index, normalize_2d
from .path_follower import CenterlineFollower
from .resolver import resolve_penetration
from .rover import ControllerConfig, RoverController, RoverState, StepOutcome
from .sensors import LidarConfig, LidarSensor
from .track import InvalidTrackError, Track, TrackConfig
from .track_generator import generate_track

_logger = logging.getLogger(__name__)

# Side of the triangular rover body; the collision disc circumscribes it.
ROBOT_SIDE = 33.0


@dataclass
class SessionConfig:
    seed: int = 69420
    track: TrackConfig = field(default_factory=TrackConfig)
    safety_scale: float = 1.0
    speed: float = 120.0
    beam_count: int = 36
    max_range: float = 800.0
    max_dt: float = 0.05
    lookahead: float = 140.0
    reduced_fidelity: bool = False

    @property
    def robot_radius(self) -> float:
        return (ROBOT_SIDE / math.sqrt(3.0)) * self.safety_scale


@dataclass
class TickResult:
    """Everything one simulation tick produced."""

    tick: int
    dt: float
    state: RoverState
    scan: List[float]
    closest_index: int
    target_heading: float
    outcome: StepOutcome
    correction: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "dt": self.dt,
            "x": self.state.x,
            "y": self.state.y,
            "heading": self.state.heading,
            "closest_index": self.closest_index,
            "target_heading": self.target_heading,
            "angular_rate": self.outcome.angular_rate,
            "displacement": self.outcome.displacement,
            "escaping": self.outcome.escaping,
            "degraded": self.outcome.degraded,
            "correction": self.correction,
            "min_clearance": min(self.scan) if self.scan else None,
        }


def start_pose(track: Track) -> RoverState:
    """Midpoint of the start line, heading along the centerline there."""
    mid = track.start_line.midpoint
    points = [(p.x, p.y) for p in track.center_line]
    idx = closest_point_index(points, mid.x, mid.y)
    if idx < 0:
        return RoverState(x=mid.x, y=mid.y, heading=0.0)
    n = len(points)
    ax, ay = points[(idx - 1) % n]
    bx, by = points[(idx + 1) % n]
    tx, ty = normalize_2d(bx - ax, by - ay, default=(1.0, 0.0))
    return RoverState(x=mid.x, y=mid.y, heading=math.atan2(ty, tx))


class SimulationSession:
    """One track and one rover, stepped by an external frame loop.

    Build a new session whenever the configuration changes; a session never
    regenerates its track in place.
    """

    def __init__(self, config: Optional[SessionConfig] = None, telemetry=None) -> None:
        self.config = config or SessionConfig()
        cfg = self.config
        self.track = generate_track(cfg.seed, cfg.track)
        if not self.track.is_valid:
            raise InvalidTrackError(
                f"track for seed {cfg.seed} has degenerate edges "
                f"({len(self.track.left_edge)}/{len(self.track.right_edge)} points)"
            )

        self.robot_radius = cfg.robot_radius
        self.sensor = LidarSensor(
            LidarConfig(
                num_rays=cfg.beam_count,
                max_range=cfg.max_range,
                robot_radius=self.robot_radius,
            )
        )
        initial = start_pose(self.track)
        self.controller = RoverController(
            initial,
            ControllerConfig(
                robot_radius=self.robot_radius,
                max_range=cfg.max_range,
                reduced_fidelity=cfg.reduced_fidelity,
            ),
        )
        start_index = closest_point_index(
            [(p.x, p.y) for p in self.track.center_line], initial.x, initial.y
        )
        self.follower = CenterlineFollower(
            self.track.center_line, lookahead=cfg.lookahead, start_index=max(start_index, 0)
        )
        self.telemetry = telemetry
        self.tick_count = 0
        self.elapsed = 0.0
        _logger.info(
            "Session started: seed=%d, robot_radius=%.2f, %d obstacles",
            cfg.seed,
            self.robot_radius,
            len(self.track.obstacles),
        )

    @property
    def state(self) -> RoverState:
        return self.controller.get_state()

    def scan(self) -> List[float]:
        """On-demand scan from the current pose, e.g. for debug rays."""
        return self.sensor.scan(self.track, self.controller.get_state().pose)

    def tick(self, dt: float) -> TickResult:
        """Sense, control, resolve and commit one simulation step."""
        dt = clamp(dt, 0.0, self.config.max_dt)
        prior = self.controller.get_state()
        scan = self.sensor.scan(self.track, prior.pose)
        closest = self.follower.closest_index(prior.x, prior.y)
        tx, ty = self.follower.lookahead_point(closest)
        target_heading = math.atan2(ty - prior.y, tx - prior.x)

        outcome = self.controller.advance(scan, dt, self.config.speed, target_heading)
        if outcome.degraded:
            _logger.warning("Tick %d ran in degraded mode", self.tick_count)

        proposed = self.controller.get_state()
        after_index = self.follower.closest_index(proposed.x, proposed.y)
        resolution = resolve_penetration(proposed, after_index, self.track, self.robot_radius)
        self.controller.set_state(resolution.state)

        result = TickResult(
            tick=self.tick_count,
            dt=dt,
            state=self.controller.get_state(),
            scan=scan,
            closest_index=after_index,
            target_heading=target_heading,
            outcome=outcome,
            correction=resolution.correction,
        )
        self.tick_count += 1
        self.elapsed += dt
        if self.telemetry is not None:
            self.telemetry.log_tick(result)
        return result

    def run(self, ticks: int, dt: float) -> List[TickResult]:
        return [self.tick(dt) for _ in range(ticks)]
