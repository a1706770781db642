"""
Space-Time Plot of the Voter Model.

Runs a simulation and draws the reconstructed grid: rows are lattice
positions, columns are time slices. Unknown cells use the fallback color.
"""
import argparse
import sys
from pathlib import Path

import matplotlib.pyplot as plt

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from voter_sim import VoterConfig, VoterSimulator, utils


def parse_hex_color(text):
    text = text.lstrip("#")
    if len(text) != 6:
        raise argparse.ArgumentTypeError(f"expected RRGGBB, got {text!r}")
    return int(text, 16)


def render_grid(sim, output_path=None, fallback=utils.MAGENTA):
    cfg = sim.config
    image = utils.to_rgb_image(sim.grid, fallback)
    lo = sim.grid.range().start

    fig, ax = plt.subplots(figsize=(12, 12 * image.shape[0] / max(1, image.shape[1])))
    ax.imshow(
        image,
        interpolation="nearest",  # one pixel per cell
        aspect="auto",
        extent=(0.0, cfg.horizon, lo + image.shape[0], lo),
    )
    ax.set_xlabel("time")
    ax.set_ylabel("position")
    ax.set_title(f"Simple Voter Model, Maxtime = {cfg.horizon}")

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        print(f"Saved to {output_path}")
    else:
        plt.show()
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Voter model space-time plotter")
    parser.add_argument("--horizon", type=float, default=20.0, help="Time horizon (default 20)")
    parser.add_argument("--height", type=int, default=360, help="Lattice positions (default 360)")
    parser.add_argument("--width", type=int, default=640, help="Time slices (default 640)")
    parser.add_argument("--rate", type=float, default=1.0, help="Swap rate (default 1)")
    parser.add_argument("--workers", type=int, default=4, help="Generation workers (default 4)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--fallback", type=parse_hex_color, default=utils.MAGENTA,
                        help="RRGGBB color for unknown cells (default ff00ff)")
    parser.add_argument("--out", default=None, help="Output image; shows a window when omitted")

    args = parser.parse_args()

    sim = VoterSimulator(
        VoterConfig(
            horizon=args.horizon,
            workers=args.workers,
            rate=args.rate,
            height=args.height,
            width=args.width,
            seed=args.seed,
        )
    )
    sim.run()
    render_grid(sim, args.out, args.fallback)


if __name__ == "__main__":
    main()
