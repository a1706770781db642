# src/voter_sim/utils.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import numpy as np

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from .reconstruct import ColorGrid
    from .swaps import SwapTimeline


def from_u8_rgb(r: int, g: int, b: int) -> int:
    """Pack 8-bit r, g, b into a single 0xRRGGBB integer."""
    return (int(r) << 16) | (int(g) << 8) | int(b)


WHITE = from_u8_rgb(255, 255, 255)
BLACK = from_u8_rgb(0, 0, 0)
MAGENTA = from_u8_rgb(255, 0, 255)  # fallback for unknown cells
DEFAULT_PALETTE = (WHITE, BLACK)


@dataclass
class VoterResult:
    """Container for the outputs of one voter model run."""

    grid: Optional["ColorGrid"] = None
    swaps: Optional["SwapTimeline"] = None
    meta: Optional[Dict[str, Any]] = None


def random_seed_row(
    n: int,
    rng: np.random.Generator | int | None = None,
    palette: Sequence[int] = DEFAULT_PALETTE,
) -> List[int]:
    """Initial coloring: each of ``n`` positions picks a palette color uniformly."""
    if len(palette) == 0:
        raise ValueError("palette must contain at least one color")
    rng = np.random.default_rng(rng)
    picks = rng.integers(0, len(palette), size=n)
    return [int(palette[i]) for i in picks]


def to_rgb_buffer(grid: "ColorGrid", fallback: int = MAGENTA) -> np.ndarray:
    """
    Packed (positions, time) uint32 frame buffer, rows in ascending position
    order. Unknown cells and unresolved time columns take ``fallback``.
    """
    _, raw = grid.to_array()
    frame = np.full((raw.shape[0], grid.capacity), fallback, dtype=np.uint32)
    known = raw >= 0
    frame[:, : raw.shape[1]][known] = raw[known].astype(np.uint32)
    return frame


def to_rgb_image(grid: "ColorGrid", fallback: int = MAGENTA) -> np.ndarray:
    """(positions, time, 3) uint8 image suitable for ``plt.imshow``."""
    frame = to_rgb_buffer(grid, fallback)
    image = np.empty(frame.shape + (3,), dtype=np.uint8)
    image[..., 0] = (frame >> 16) & 0xFF
    image[..., 1] = (frame >> 8) & 0xFF
    image[..., 2] = frame & 0xFF
    return image


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        if tomllib is None:
            raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
