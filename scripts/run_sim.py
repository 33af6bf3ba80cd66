from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on path when running this script directly
_script_dir = Path(__file__).resolve().parent
_project_root = _script_dir.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from telemetry.logger import TelemetryLogger
from track_rover.config import load_yaml, session_config_from_dict
from track_rover.geometry_utils import clamp
from track_rover.session import SimulationSession
from track_rover.track import InvalidTrackError


def clamp_track_inputs(cfg):
    """Clamp shape parameters to the ranges the UI sliders allow."""
    t = cfg.track
    track = replace(
        t,
        control_points=int(clamp(t.control_points, 8, 32)),
        min_radius=clamp(t.min_radius, 100.0, 400.0),
        max_radius=clamp(t.max_radius, 400.0, 800.0),
        track_width=clamp(t.track_width, 30.0, 200.0),
        obstacle_count=int(clamp(t.obstacle_count, 0, 50)),
    )
    return replace(cfg, track=track)


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless autonomous rover run on a generated track.")
    parser.add_argument(
        "--config",
        type=str,
        default="configs/sim.yaml",
        help="Path to sim YAML config.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Override the track seed.")
    parser.add_argument("--ticks", type=int, default=None, help="Number of simulation ticks.")
    parser.add_argument("--dt", type=float, default=None, help="Seconds per tick (clamped to max_dt).")
    parser.add_argument("--telemetry", type=str, default=None, help="JSONL file for per-tick telemetry.")
    parser.add_argument("--dump-track", type=str, default=None, help="Write the generated track as JSON.")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_yaml(args.config)
    sim_cfg = cfg.get("sim") or {}
    session_cfg = clamp_track_inputs(session_config_from_dict(cfg))
    if args.seed is not None:
        session_cfg = replace(session_cfg, seed=args.seed)
    ticks = args.ticks if args.ticks is not None else int(sim_cfg.get("ticks", 2000))
    dt = args.dt if args.dt is not None else float(sim_cfg.get("dt", 0.016))

    telemetry = TelemetryLogger(args.telemetry) if args.telemetry else None
    try:
        session = SimulationSession(session_cfg, telemetry=telemetry)
    except InvalidTrackError as exc:
        print(f"Cannot start simulation: {exc}")
        sys.exit(1)

    if args.dump_track:
        with open(args.dump_track, "w", encoding="utf-8") as f:
            json.dump(session.track.to_dict(), f, indent=2)

    escapes = 0
    corrections = 0
    was_escaping = False
    try:
        for _ in range(ticks):
            result = session.tick(dt)
            if result.outcome.escaping and not was_escaping:
                escapes += 1
            was_escaping = result.outcome.escaping
            if result.correction > 0.0:
                corrections += 1
    finally:
        if telemetry is not None:
            telemetry.close()

    state = session.state
    print(f"Seed {session_cfg.seed}: {ticks} ticks, {session.elapsed:.2f}s simulated")
    print(f"Final pose: x={state.x:.1f} y={state.y:.1f} heading={state.heading:.3f}")
    print(f"Escape maneuvers: {escapes}, ticks with penetration correction: {corrections}")


if __name__ == "__main__":
    main()
