#!/usr/bin/env python3
"""
main.py
=======
Entry point for the signal-grid simulation.

Subcommands::

    python main.py serve                  # authority: FastAPI on :8000
    python main.py view                   # pygame window, local simulation
    python main.py view --display remote  # pygame window over GRID_FEED_URL
    python main.py headless --steps 5000  # run without a window, print metrics

Environment overrides (used as argument defaults): ``GRID_SIZE``,
``GRID_SEED``, ``GRID_MODE``, ``GRID_FEED_URL``, ``GRID_DISPLAY``,
``GRID_PORT``, ``GRID_MODEL``.
"""

import argparse
import json
import logging
import os
import sys

import config
from logging_setup import setup_logging

log = logging.getLogger("main")

project_root = os.path.abspath(os.path.dirname(__file__))


def _env(name: str, default, cast=str):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise SystemExit(f"{name}={raw!r} is not a valid {cast.__name__}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Signal-grid traffic simulation")
    parser.add_argument("--size", type=int, default=_env("GRID_SIZE", config.DEFAULT_GRID_SIZE, int),
                        help="intersections per grid side")
    parser.add_argument("--seed", type=int, default=_env("GRID_SEED", config.DEFAULT_SEED, int))
    parser.add_argument("--mode", default=_env("GRID_MODE", config.DEFAULT_CONTROLLER_MODE),
                        choices=["FIXED", "HEURISTIC", "ML", "HYBRID"], type=str.upper,
                        help="signal controller mode")
    parser.add_argument("--model", default=_env("GRID_MODEL", os.path.join(project_root, config.ML_MODEL_REL_PATH)),
                        help="joblib timing model for ML/HYBRID modes")
    parser.add_argument("--speed", type=float, default=config.DEFAULT_SIM_SPEED,
                        help="simulated seconds per wall-clock second")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP authority")
    serve.add_argument("--host", default=config.SERVER_HOST)
    serve.add_argument("--port", type=int, default=_env("GRID_PORT", config.SERVER_PORT, int))

    view = sub.add_parser("view", help="open the pygame viewer")
    view.add_argument("--display", choices=["local", "remote"], type=str.lower,
                      default=_env("GRID_DISPLAY", config.DISPLAY_MODE))
    view.add_argument("--feed-url", default=_env("GRID_FEED_URL", config.DEFAULT_FEED_URL))
    view.add_argument("--no-push", dest="push", action="store_false", default=config.FEED_PUSH,
                      help="poll the authority instead of listening on /ws")
    view.add_argument("--width", type=int, default=config.WINDOW_WIDTH)
    view.add_argument("--height", type=int, default=config.WINDOW_HEIGHT)
    view.add_argument("--fps", type=int, default=config.TARGET_FPS)

    headless = sub.add_parser("headless", help="run without a window")
    headless.add_argument("--steps", type=int, default=5000)
    headless.add_argument("--emergency-at", type=int, default=None,
                          help="start the emergency scenario at this step")
    return parser


def _make_bridge(args):
    from gridsim.controller import ControllerMode
    from gridsim.sim_bridge import SimBridge
    from gridsim.traffic_policy import GridPolicy

    return SimBridge(
        seed=args.seed,
        policy=GridPolicy(grid_size=args.size),
        mode=ControllerMode(args.mode),
        model_path=args.model,
        speed=args.speed,
    )


def cmd_serve(args) -> None:
    from server.api import run_server

    run_server(_make_bridge(args), host=args.host, port=args.port)


def cmd_view(args) -> None:
    from display.sources import make_display_source
    from gridsim.network import GridTopology
    from gridsim.traffic_policy import GridPolicy
    from ui.pygame_view import run_pygame_view

    policy = GridPolicy(grid_size=args.size)
    topology = GridTopology.from_policy(policy)
    bridge = _make_bridge(args) if args.display == "local" else None
    source = make_display_source(
        args.display,
        bridge=bridge,
        feed_url=args.feed_url,
        topology=topology,
        poll_interval_s=config.POLL_INTERVAL_S,
        timeout_s=config.FEED_TIMEOUT_S,
        push=args.push,
        reconnect_interval_s=config.PUSH_RECONNECT_S,
    )
    run_pygame_view(
        source, topology,
        width=args.width, height=args.height, fps=args.fps,
        source_label=args.display,
        preempt_timer_above=policy.max_green_s,
    )


def cmd_headless(args) -> None:
    from gridsim.controller import ControllerMode
    from gridsim.traffic_policy import GridPolicy
    from gridsim.world import GridWorld

    world = GridWorld(
        seed=args.seed,
        policy=GridPolicy(grid_size=args.size),
        mode=ControllerMode(args.mode),
        model_path=args.model,
    )
    report_every = max(1, int(round(1.0 / world.policy.step_s)) * 10)
    for step in range(args.steps):
        if args.emergency_at is not None and step == args.emergency_at:
            world.start_emergency()
        world.step()
        if (step + 1) % report_every == 0:
            o = world.overview()
            log.info("t=%.1fs vehicles=%d held=%d throughput=%d",
                     o["sim_time_s"], o["vehicle_count"], o["held_count"], o["despawned"])
    print(json.dumps(world.overview(), indent=2))


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    log.info("Starting %s (size=%d seed=%d mode=%s)", args.command, args.size, args.seed, args.mode)

    commands = {"serve": cmd_serve, "view": cmd_view, "headless": cmd_headless}
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        log.info("Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
