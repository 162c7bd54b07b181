"""
N-Body Disc Simulation
======================

Brute-force O(n²) gravitational simulation of a thin disc of bodies in
orbit around a heavy central mass, on CUDA, Torch or a Numba CPU backend.

Usage:
    python nbody_main.py                          # Interactive viewer
    python nbody_main.py --bodies 20000           # More bodies
    python nbody_main.py --headless --steps 500   # Benchmark without a window
    python nbody_main.py --backend cpu            # Force a backend

Controls:
    - W/S: Rotate camera up/down
    - A/D: Rotate camera left/right
    - Q/E: Zoom in/out
    - Mouse drag: Rotate camera
    - Mouse wheel: Zoom
    - SPACE: Pause/Resume simulation
    - R: Reset simulation
    - H: Toggle help text
    - ESC: Quit
"""

import argparse
import logging
import sys
import time

from config import nbody as config
from nbody import NBodyError, Simulation
from nbody.logging_config import setup_logging


logger = logging.getLogger("nbody_main")


def build_parser() -> argparse.ArgumentParser:
    cfg = config.NBODY
    parser = argparse.ArgumentParser(
        description="Brute-force N-body disc simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--bodies", "-n", type=int, default=cfg["count"],
                        help=f"Number of bodies (default: {cfg['count']:,})")
    parser.add_argument("--dt", type=float, default=cfg["dt"],
                        help=f"Seconds per tick (default: {cfg['dt']})")
    parser.add_argument("--seed", type=int, default=cfg["seed"],
                        help="Integer tag for the initial scene (default: %(default)s)")
    parser.add_argument("--backend", choices=["auto", "cuda", "torch", "cpu"],
                        default=cfg["backend"],
                        help="Compute backend (default: %(default)s)")
    parser.add_argument("--headless", action="store_true",
                        help="Run without a window and report throughput")
    parser.add_argument("--steps", type=int, default=100,
                        help="Ticks to run in headless mode (default: %(default)s)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", default=None,
                        help="Also write logs to this file")
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace):
    if args.bodies < 1:
        parser.error("--bodies must be at least 1")
    if args.dt <= 0:
        parser.error("--dt must be positive")
    if args.steps < 1:
        parser.error("--steps must be at least 1")


def run_headless(args) -> dict:
    """Run ``args.steps`` ticks without rendering; returns timing stats."""
    with Simulation(args.backend, seed=args.seed) as sim:
        warmup = getattr(sim.engine, "warmup", None)
        if warmup is not None:
            warmup()

        start = time.perf_counter()
        sim.init_simulation(args.bodies)
        init_time = time.perf_counter() - start

        start = time.perf_counter()
        for _ in range(args.steps):
            sim.step_simulation(args.dt)
        step_time = time.perf_counter() - start

        ticks_per_s = args.steps / step_time if step_time > 0 else float("inf")
        stats = {
            "bodies": sim.n,
            "backend": sim.backend.value,
            "init_s": init_time,
            "ticks": args.steps,
            "ticks_per_s": ticks_per_s,
            "interactions_per_s": ticks_per_s * sim.n * (sim.n + 1),
        }

    logger.info("%s bodies on %s: init %.3f s, %d ticks at %.1f ticks/s (%.3g interactions/s)",
                f"{stats['bodies']:,}", stats["backend"], stats["init_s"],
                stats["ticks"], stats["ticks_per_s"], stats["interactions_per_s"])
    return stats


def run_viewer(args):
    # Imported here so headless runs never need a display
    from core import Application

    app = Application(args.bodies, args.dt, backend=args.backend, seed=args.seed)
    app.run()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        if args.headless:
            run_headless(args)
        else:
            run_viewer(args)
    except NBodyError as e:
        logger.error("Simulation aborted: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
