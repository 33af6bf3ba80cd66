from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging
import math

from .geometry_utils import angle_diff, clamp, wrap_angle
from .sensors import CardinalReadings

_logger = logging.getLogger(__name__)


@dataclass
class RoverState:
    """Pose of the rover in world coordinates.

    Attributes
    ----------
    x : float
        X position (world units).
    y : float
        Y position (world units).
    heading : float
        Heading (radians), kept in (-pi, pi].
    """

    x: float
    y: float
    heading: float

    @property
    def pose(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.heading)

    def copy(self) -> "RoverState":
        return RoverState(x=self.x, y=self.y, heading=self.heading)


@dataclass
class ControllerConfig:
    """Gains and thresholds of the reactive controller."""

    robot_radius: float = 20.0
    max_angular_rate: float = 2.2
    tracking_gain: float = 2.2
    escape_gain: float = 3.0
    steer_smoothing: float = 0.65
    dead_zone: float = 0.02
    forward_bias: float = 0.6
    slow_speed_scale: float = 0.55
    max_heading_penalty: float = 0.6
    heading_penalty_span: float = 1.2
    stuck_distance: float = 0.3
    stuck_timeout: float = 1.0
    escape_duration: float = 0.9
    max_range: float = 800.0
    reduced_fidelity: bool = False

    @property
    def desired_clearance(self) -> float:
        return self.robot_radius * 2.5

    @property
    def min_clearance(self) -> float:
        return max(12.0, self.robot_radius + 4.0)

    @property
    def stop_clearance(self) -> float:
        return self.min_clearance + 4.0


@dataclass(frozen=True)
class StepOutcome:
    """What the controller commanded on one tick."""

    angular_rate: float
    displacement: float
    escaping: bool = False
    degraded: bool = False


class RoverController:
    """Reactive autonomous controller for a disc-shaped rover.

    Blends a path-following heading with a LiDAR vector-field avoidance term.
    When the rover makes no progress for too long it switches to a short
    escape maneuver toward the most open forward beam.
    """

    def __init__(self, initial: RoverState, config: Optional[ControllerConfig] = None) -> None:
        self.config = config or ControllerConfig()
        self.state = initial.copy()
        self._last_steer = 0.0
        self._last_x = self.state.x
        self._last_y = self.state.y
        self._stuck_time = 0.0
        self._escape_time = 0.0

    # ------------------------------------------------------------------
    # State manipulation
    # ------------------------------------------------------------------
    def reset(self, x: float, y: float, heading: float = 0.0) -> None:
        """Reset pose and all private steering/stuck state."""
        self.state = RoverState(x=x, y=y, heading=wrap_angle(heading))
        self._last_steer = 0.0
        self._last_x = x
        self._last_y = y
        self._stuck_time = 0.0
        self._escape_time = 0.0

    def get_state(self) -> RoverState:
        """Return a copy of current state."""
        return self.state.copy()

    def set_state(self, state: RoverState) -> None:
        self.state = RoverState(x=state.x, y=state.y, heading=wrap_angle(state.heading))

    @property
    def escaping(self) -> bool:
        return self._escape_time > 0.0

    # ------------------------------------------------------------------
    # Motion primitives
    # ------------------------------------------------------------------
    def step(self, dt: float, speed: float) -> None:
        """Move straight along the current heading."""
        self.state.x += math.cos(self.state.heading) * speed * dt
        self.state.y += math.sin(self.state.heading) * speed * dt

    # ------------------------------------------------------------------
    # Autonomous driving
    # ------------------------------------------------------------------
    def advance(
        self,
        scan: Sequence[float],
        dt: float,
        target_speed: float,
        target_heading: Optional[float] = None,
    ) -> StepOutcome:
        """Steer and move the rover for one tick from a full circular scan.

        Beam 0 of `scan` points along the heading. `target_heading` is an
        optional world-frame heading from a path follower. Inputs the
        controller cannot use (empty or non-finite scan, bad dt) take the
        degraded branch: a plain straight step, reported as degraded.
        """
        if not math.isfinite(dt) or dt < 0.0:
            _logger.warning("Ignoring tick with invalid dt=%r", dt)
            return StepOutcome(angular_rate=0.0, displacement=0.0, degraded=True)
        if not scan or not all(math.isfinite(r) for r in scan):
            return self._degraded_step(dt, target_speed)
        if target_heading is not None and not math.isfinite(target_heading):
            target_heading = None

        if self.config.reduced_fidelity:
            return self.drive(self._cardinal_from_scan(scan), dt, target_speed)
        return self._advance_with_scan(scan, dt, target_speed, target_heading)

    def _advance_with_scan(
        self,
        scan: Sequence[float],
        dt: float,
        speed: float,
        target_heading: Optional[float],
    ) -> StepOutcome:
        cfg = self.config
        beam_count = len(scan)
        beam_step = 2.0 * math.pi / beam_count
        max_omega = cfg.max_angular_rate
        desired = cfg.desired_clearance
        min_clear = cfg.min_clearance
        stop_clear = cfg.stop_clearance

        forward = scan[0]
        right = scan[(beam_count // 4) % beam_count]
        left = scan[((3 * beam_count) // 4) % beam_count]

        omega_track = 0.0
        if target_heading is not None:
            err = angle_diff(self.state.heading, target_heading)
            omega_track = clamp(err * cfg.tracking_gain, -max_omega, max_omega)

        if forward <= stop_clear:
            omega_avoid = -max_omega if left >= right else max_omega
        else:
            vx = 0.0
            vy = 0.0
            for i, reading in enumerate(scan):
                ang = i * beam_step
                facing = max(0.0, math.cos(ang))
                if facing <= 0.0:
                    continue
                weight = min(max(0.0, reading - min_clear) / desired, 1.0) * facing
                vx += math.cos(ang) * weight
                vy += math.sin(ang) * weight
            vx += cfg.forward_bias
            omega_avoid = 0.0
            if vx != 0.0 or vy != 0.0:
                avoid_angle = clamp(math.atan2(vy, vx), -math.pi / 2.0, math.pi / 2.0)
                omega_avoid = clamp(avoid_angle * 2.0, -max_omega, max_omega)
            omega_avoid += clamp(
                ((right - left) / cfg.max_range) * (max_omega * 0.55), -max_omega, max_omega
            )

        self._update_stuck(dt)

        if self._escape_time > 0.0:
            best_i = 0
            best_score = -math.inf
            for i, reading in enumerate(scan):
                facing = max(0.0, math.cos(wrap_angle(i * beam_step)))
                if facing <= 0.0:
                    continue
                score = reading * facing
                if score > best_score:
                    best_score = score
                    best_i = i
            best_ang = wrap_angle(best_i * beam_step)
            omega_cmd = clamp(best_ang * cfg.escape_gain, -max_omega, max_omega)
        else:
            danger = clamp((desired - forward) / desired, 0.0, 1.0)
            w_avoid = clamp(0.25 + danger * 0.75, 0.0, 1.0)
            omega_cmd = omega_track * (1.0 - w_avoid) + omega_avoid * w_avoid

        omega = self._smooth(omega_cmd)
        self.state.heading = wrap_angle(self.state.heading + omega * dt)

        available = max(0.0, forward - min_clear)
        speed_scale = cfg.slow_speed_scale if forward < desired else 1.0
        heading_penalty = 1.0
        if target_heading is not None:
            err = abs(angle_diff(self.state.heading, target_heading))
            heading_penalty = 1.0 - clamp(
                err / cfg.heading_penalty_span, 0.0, cfg.max_heading_penalty
            )
        wanted = speed * speed_scale * heading_penalty * dt
        displacement = 0.0 if forward <= stop_clear else min(wanted, available)
        self._move(displacement)
        return StepOutcome(
            angular_rate=omega, displacement=displacement, escaping=self.escaping
        )

    def drive(self, readings: CardinalReadings, dt: float, speed: float) -> StepOutcome:
        """Reduced-fidelity drive from the four cardinal clearances only.

        Uses the same stop/slow thresholds as the full controller, but turns
        with a fixed rate instead of a vector field and has no escape mode or
        path-following blend.
        """
        cfg = self.config
        max_omega = cfg.max_angular_rate
        desired = cfg.desired_clearance
        min_clear = cfg.min_clearance
        stop_clear = cfg.stop_clearance

        steer_cmd = 0.0
        if readings.forward <= stop_clear:
            steer_cmd = (-1.0 if readings.left >= readings.right else 1.0) * max_omega * 1.6
        elif readings.forward < desired:
            steer_cmd = (-1.0 if readings.left > readings.right else 1.0) * max_omega
        steer_cmd += ((readings.right - readings.left) / cfg.max_range) * (max_omega * 0.5)

        omega = self._smooth(steer_cmd)
        self.state.heading = wrap_angle(self.state.heading + omega * dt)

        available = max(0.0, readings.forward - min_clear)
        speed_scale = cfg.slow_speed_scale if readings.forward < desired else 1.0
        if readings.forward <= stop_clear:
            displacement = 0.0
        else:
            displacement = min(speed * speed_scale * dt, available)
        self._move(displacement)
        self._last_x = self.state.x
        self._last_y = self.state.y
        return StepOutcome(angular_rate=omega, displacement=displacement)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _update_stuck(self, dt: float) -> None:
        cfg = self.config
        moved = math.hypot(self.state.x - self._last_x, self.state.y - self._last_y)
        self._last_x = self.state.x
        self._last_y = self.state.y
        if moved < cfg.stuck_distance:
            self._stuck_time += dt
        else:
            self._stuck_time = 0.0
        if self._escape_time > 0.0:
            self._escape_time = max(0.0, self._escape_time - dt)
        if self._stuck_time > cfg.stuck_timeout and self._escape_time <= 0.0:
            _logger.debug(
                "Rover stuck at (%.1f, %.1f) for %.2fs, escaping",
                self.state.x,
                self.state.y,
                self._stuck_time,
            )
            self._escape_time = cfg.escape_duration
            self._stuck_time = 0.0

    def _smooth(self, omega_cmd: float) -> float:
        """Dead zone, clamp and low-pass filter the angular command."""
        cfg = self.config
        if abs(omega_cmd) < cfg.dead_zone:
            omega_cmd = 0.0
        omega_cmd = clamp(omega_cmd, -cfg.max_angular_rate, cfg.max_angular_rate)
        omega = cfg.steer_smoothing * self._last_steer + (1.0 - cfg.steer_smoothing) * omega_cmd
        self._last_steer = omega
        return omega

    def _move(self, displacement: float) -> None:
        if displacement > 0.0:
            self.state.x += math.cos(self.state.heading) * displacement
            self.state.y += math.sin(self.state.heading) * displacement

    def _degraded_step(self, dt: float, speed: float) -> StepOutcome:
        _logger.warning("Controller inputs unusable, driving straight for this tick")
        self.step(dt, speed)
        return StepOutcome(angular_rate=0.0, displacement=speed * dt, degraded=True)

    @staticmethod
    def _cardinal_from_scan(scan: Sequence[float]) -> CardinalReadings:
        n = len(scan)
        return CardinalReadings(
            forward=scan[0],
            right=scan[int(round(n / 4.0)) % n],
            back=scan[int(round(n / 2.0)) % n],
            left=scan[int(round(3.0 * n / 4.0)) % n],
        )
