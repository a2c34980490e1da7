"""
CLI entry point for the live corona viewer.

Usage:
    solarscope [options]
    python -m solarscope [options]
"""

import argparse
import logging
import math
import sys
from dataclasses import replace
from pathlib import Path

from solarscope.core.params import SHAPES, STYLES, ParameterSet, load_knobs
from solarscope.core.signal import RandomWalkSignalSource, ReplaySignalSource
from solarscope.errors import SolarscopeError

# CLI flag -> ParameterSet field
_KNOB_FLAGS = {
    "bg_lightness": "bg_lightness",
    "base_particles": "base_particles",
    "particle_amp": "particle_amp",
    "wind": "wind_multiplier",
    "flare_amp": "flare_amp",
    "style": "style",
    "shape": "particle_shape",
    "posterize": "posterize",
}


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solarscope",
        description="Data-driven solar corona art, rendered live",
    )

    # Window
    parser.add_argument("--width", type=_positive_int, default=1280, help="Window width in logical px (default: 1280)")
    parser.add_argument("--height", type=_positive_int, default=720, help="Window height in logical px (default: 720)")
    parser.add_argument("-f", "--fps", type=_positive_int, default=60, help="Target frame rate (default: 60)")
    parser.add_argument(
        "--pixel-ratio", type=_positive_float, default=1.0,
        help="Device pixels per logical px (default: 1.0)",
    )

    # Signal
    parser.add_argument(
        "--replay", type=Path, default=None,
        help="JSON signal feed to replay instead of the random walk",
    )
    parser.add_argument(
        "--interval", type=_positive_float, default=1.2,
        help="Seconds between signal updates (default: 1.2)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--paused", action="store_true", help="Start with the live signal paused")

    # Knobs
    parser.add_argument("--knobs", type=Path, default=None, help="JSON knob preset; flags below override it")
    parser.add_argument("-s", "--style", choices=STYLES, default=None, help="Style preset (default: Deck223)")
    parser.add_argument("--shape", choices=SHAPES, default=None, help="Particle shape (default: square)")
    parser.add_argument("--posterize", type=int, default=None, help="Posterize levels (default: 6)")
    parser.add_argument("--bg-lightness", type=float, default=None, help="Background lightness %% (default: 10)")
    parser.add_argument("--base-particles", type=int, default=None, help="Base particle count (default: 350)")
    parser.add_argument("--particle-amp", type=float, default=None, help="Particles added at full sunspot area (default: 1200)")
    parser.add_argument("--wind", type=float, default=None, help="Wind multiplier (default: 1.0)")
    parser.add_argument("--flare-amp", type=float, default=None, help="Flare amplitude (default: 1.0)")
    parser.add_argument("--no-grain", action="store_true", help="Disable film grain")

    # Limits
    parser.add_argument(
        "--max-frames", type=int, default=None,
        help="Exit after N frames",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def knobs_from_args(args: argparse.Namespace) -> ParameterSet:
    """Knob file (if any) overlaid with explicitly given flags."""
    knobs = load_knobs(args.knobs) if args.knobs is not None else ParameterSet()
    overrides = {
        field: getattr(args, flag)
        for flag, field in _KNOB_FLAGS.items()
        if getattr(args, flag) is not None
    }
    if args.no_grain:
        overrides["grain"] = False
    return replace(knobs, **overrides).sanitized()


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.knobs is not None and not args.knobs.exists():
        print(f"Error: Knob file not found: {args.knobs}", file=sys.stderr)
        sys.exit(1)

    try:
        knobs = knobs_from_args(args)
        if args.replay is not None:
            source = ReplaySignalSource.from_json(args.replay, interval=args.interval)
        else:
            source = RandomWalkSignalSource(interval=args.interval, seed=args.seed)
    except (SolarscopeError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Deferred so --help works without a display stack
    from solarscope.host import SolarscopeHost

    print(f"Style {knobs.style}, {knobs.particle_shape} particles, posterize {knobs.posterize}")
    print(f"Window {args.width}x{args.height} @ {args.fps}fps (pixel ratio {args.pixel_ratio:g})")
    if args.replay is not None:
        print(f"Replaying {len(source.signals)} signal records from {args.replay}")

    host = SolarscopeHost(
        width=args.width,
        height=args.height,
        fps=args.fps,
        pixel_ratio=args.pixel_ratio,
        knobs=knobs,
        signal_source=source,
        seed=args.seed,
        start_paused=args.paused,
    )
    frames = host.run(max_frames=args.max_frames)
    print(f"Done. {frames} frames drawn.")


if __name__ == "__main__":
    main()
