"""
Voter model simulator via duality.

Pipeline:
1.  **Generation:** every lattice position gets a Poisson swap timeline,
    produced in parallel by independent workers (``swaps.generate_swap_timeline``).
2.  **Seeding:** column t=0 of the ColorGrid is the initial coloring
    (random white/black by default, or supplied by the caller).
3.  **Reconstruction:** columns t=1..width-1 are filled in order by tracing
    the dual coalescing walks back through the frozen timelines.

The finished grid is read through ``color_at`` / ``grid.get`` or converted
to a frame buffer for display.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from . import utils
from .config import VoterConfig
from .reconstruct import ColorGrid, StateReconstructor
from .swaps import SwapTimeline, generate_swap_timeline


class VoterSimulator:
    """
    The Manager Class.

    Responsibilities:
    1. Validate the configuration before any work starts.
    2. Run the parallel generation phase and keep the frozen timelines.
    3. Seed and build the ColorGrid.
    """

    def __init__(self, config: VoterConfig | None = None) -> None:
        self.config = (config or VoterConfig()).validate()
        self.swaps: Optional[SwapTimeline] = None
        self.grid: Optional[ColorGrid] = None
        self.timings: Dict[str, float] = {}

    # ------------------------------------------------------------------ phases
    def generate(self) -> SwapTimeline:
        cfg = self.config
        start_time = time.time()
        self.swaps = generate_swap_timeline(
            cfg.height,
            cfg.horizon,
            cfg.rate,
            cfg.workers,
            seed=cfg.seed,
            backend=cfg.backend,
        )
        self.timings["generate"] = time.time() - start_time
        if cfg.verbose:
            print(
                f"[voter] Generated {len(self.swaps)} timelines "
                f"({self.swaps.num_events} swaps) on {cfg.workers} {cfg.backend} workers "
                f"in {self.timings['generate']:.2f}s"
            )
        return self.swaps

    def seed_grid(self, seed_row: Optional[Sequence[Optional[int]]] = None) -> ColorGrid:
        cfg = self.config
        if seed_row is None:
            # separate stream from the generation workers
            rng = np.random.default_rng(None if cfg.seed is None else [cfg.seed, 1])
            seed_row = utils.random_seed_row(cfg.height, rng)
        self.grid = ColorGrid.from_seed_row(seed_row, cfg.width)
        return self.grid

    def reconstruct(self) -> ColorGrid:
        if self.swaps is None or self.grid is None:
            raise RuntimeError("generate() and seed_grid() must run before reconstruct()")
        cfg = self.config
        start_time = time.time()
        reconstructor = StateReconstructor(self.swaps, cfg.horizon, cfg.width, verbose=cfg.verbose)
        reconstructor.build(self.grid)
        self.timings["reconstruct"] = time.time() - start_time
        if cfg.verbose:
            print(
                f"[voter] Reconstructed {cfg.width} columns x {len(self.grid)} positions "
                f"in {self.timings['reconstruct']:.2f}s"
            )
        return self.grid

    # ------------------------------------------------------------------ public
    def run(self, seed_row: Optional[Sequence[Optional[int]]] = None) -> ColorGrid:
        """Generate, seed and reconstruct the full space-time grid."""
        cfg = self.config
        if cfg.verbose:
            print(
                f"Running Voter Model: N={cfg.height}, T={cfg.width}, "
                f"horizon={cfg.horizon}, rate={cfg.rate}"
            )
        self.generate()
        self.seed_grid(seed_row)
        return self.reconstruct()

    def color_at(self, position: int, time_index: int) -> Optional[int]:
        if self.grid is None:
            raise RuntimeError("run() has not been called")
        return self.grid.get(position, time_index)

    def rgb_buffer(self, fallback: int = utils.MAGENTA) -> np.ndarray:
        """Packed (height, width) uint32 frame, unknown cells painted ``fallback``."""
        if self.grid is None:
            raise RuntimeError("run() has not been called")
        return utils.to_rgb_buffer(self.grid, fallback)

    def result(self) -> utils.VoterResult:
        meta = {
            "model": "voter",
            **self.config.to_dict(),
            "num_swaps": None if self.swaps is None else self.swaps.num_events,
            "timings": dict(self.timings),
        }
        return utils.VoterResult(grid=self.grid, swaps=self.swaps, meta=meta)


def run_model(config: VoterConfig | Mapping[str, Any] | None = None) -> utils.VoterResult:
    if config is None:
        config = VoterConfig()
    elif not isinstance(config, VoterConfig):
        config = VoterConfig.from_dict(config)
    sim = VoterSimulator(config)
    sim.run()
    return sim.result()


__all__ = ["VoterSimulator", "run_model"]


if __name__ == "__main__":
    # Standalone execution for testing
    sim = VoterSimulator(VoterConfig(height=120, width=200, seed=42))
    sim.run()
    print(f"Unknown cells: {int((sim.grid.to_array()[1] < 0).sum())}")
