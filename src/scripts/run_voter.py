#!/usr/bin/env python3
"""
Single Voter Model Runner

Generates the swap timelines, reconstructs the space-time coloring and
prints a short summary. Nothing is written to disk.
"""

import argparse
import sys
import time
from pathlib import Path

# Add src/ to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from voter_sim import VoterConfig, VoterSimulator, utils


def build_parser() -> argparse.ArgumentParser:
    defaults = VoterConfig()
    parser = argparse.ArgumentParser(
        description="Run a single voter model simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--params",
        type=str,
        default=None,
        help="JSON or TOML file with VoterConfig fields (flags below override it)",
    )
    parser.add_argument("--horizon", type=float, default=None,
                        help=f"Time horizon (default: {defaults.horizon})")
    parser.add_argument("--workers", type=int, default=None,
                        help=f"Parallel generation workers (default: {defaults.workers})")
    parser.add_argument("--rate", type=float, default=None,
                        help=f"Swap rate parameter (default: {defaults.rate})")
    parser.add_argument("--height", type=int, default=None,
                        help=f"Number of lattice positions N (default: {defaults.height})")
    parser.add_argument("--width", type=int, default=None,
                        help=f"Number of time slices T (default: {defaults.width})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility (default: none)")
    parser.add_argument(
        "--backend",
        choices=["process", "thread"],
        default=None,
        help="Executor used for generation (default: process)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser


def config_from_args(args: argparse.Namespace) -> VoterConfig:
    params = utils.load_params(args.params) if args.params else {}
    for key in ("horizon", "workers", "rate", "height", "width", "seed", "backend"):
        value = getattr(args, key)
        if value is not None:
            params[key] = value
    if args.quiet:
        params["verbose"] = False
    return VoterConfig.from_dict(params)


def main():
    args = build_parser().parse_args()
    config = config_from_args(args)

    start_time = time.time()
    sim = VoterSimulator(config)
    grid = sim.run()
    elapsed_time = time.time() - start_time

    _, raw = grid.to_array()
    unknown = int((raw < 0).sum())
    last = raw[:, -1]
    white = int((last == utils.WHITE).sum())
    black = int((last == utils.BLACK).sum())

    print(f"\nSimulation completed!")
    print(f"   Time elapsed: {elapsed_time:.2f} seconds")
    print(f"   Swap events: {sim.swaps.num_events}")
    print(f"   Grid: {raw.shape[0]} positions x {raw.shape[1]} slices")
    print(f"   Unknown cells: {unknown} ({100.0 * unknown / max(1, raw.size):.1f}%)")
    print(f"   Final slice: white={white}, black={black}, unknown={raw.shape[0] - white - black}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
