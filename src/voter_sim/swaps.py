"""
Swap event timelines for the voter model dual.

Every lattice position carries a Poisson clock of rate ``2 * rate``. Each ring
is a swap with the left or right neighbour (fair coin). Reading those swaps
backwards in time gives the coalescing random walks that carry colors, so the
timelines are generated once, up front, and never touched again.

Generation is split across a pool of workers, one block of positions each:
each worker receives its own ``SeedSequence`` by value, builds a
private ``numpy.random.Generator`` and returns plain arrays. The blocks are
joined in worker order, so a seeded run is reproducible for any backend.
"""

from __future__ import annotations

import math
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from .devec import NEGATIVE, POSITIVE, BidirectionalArray
from .errors import ConfigurationError, TimelineOrderError


class Direction(IntEnum):
    """Neighbour a swap exchanges with; the value is the lattice step."""

    LEFT = -1
    RIGHT = 1


class SwapEvent(NamedTuple):
    direction: Direction
    timestamp: float


###############################################################################
# Per-position timeline
###############################################################################


@dataclass(frozen=True, eq=False)
class EventTimeline:
    """
    Swap events of a single position, sorted by time.

    ``timestamps`` must be strictly increasing and positive and
    ``directions`` must hold -1 (left) or +1 (right). Both arrays are
    made read-only on construction.
    """

    timestamps: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    directions: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int8))

    def __post_init__(self) -> None:
        ts = np.array(self.timestamps, dtype=np.float64).reshape(-1)
        dirs = np.array(self.directions, dtype=np.int8).reshape(-1)
        if ts.shape != dirs.shape:
            raise TimelineOrderError(
                f"timestamps and directions differ in length ({ts.size} vs {dirs.size})"
            )
        if ts.size:
            if not np.all(np.isfinite(ts)) or ts[0] <= 0.0:
                raise TimelineOrderError(f"timestamps must be finite and positive, got {ts[:3]}...")
            if ts.size > 1 and not np.all(np.diff(ts) > 0.0):
                raise TimelineOrderError("timestamps must be strictly increasing")
            if not np.all((dirs == Direction.LEFT) | (dirs == Direction.RIGHT)):
                raise TimelineOrderError("directions must be -1 (left) or +1 (right)")
        ts.setflags(write=False)
        dirs.setflags(write=False)
        object.__setattr__(self, "timestamps", ts)
        object.__setattr__(self, "directions", dirs)

    @classmethod
    def from_events(cls, events: Iterable[Tuple[int, float]]) -> "EventTimeline":
        """Build from (direction, timestamp) pairs already in time order."""
        events = list(events)
        return cls(
            timestamps=np.array([float(t) for _, t in events], dtype=np.float64),
            directions=np.array([int(d) for d, _ in events], dtype=np.int8),
        )

    def __reduce__(self):
        # rebuild through __post_init__ so unpickled arrays are validated and read-only
        return (type(self), (self.timestamps, self.directions))

    def __len__(self) -> int:
        return int(self.timestamps.size)

    def __iter__(self) -> Iterator[SwapEvent]:
        for d, t in zip(self.directions, self.timestamps):
            yield SwapEvent(Direction(int(d)), float(t))

    def __getitem__(self, idx: int) -> SwapEvent:
        return SwapEvent(Direction(int(self.directions[idx])), float(self.timestamps[idx]))

    def __repr__(self) -> str:
        return f"EventTimeline(n={len(self)})"


###############################################################################
# Whole lattice
###############################################################################


class SwapTimeline(BidirectionalArray[EventTimeline]):
    """
    Position -> EventTimeline map. Filled once by the generator, then frozen.

    Freezing also packs every timeline into flat arrays (CSR style: one
    ``offsets`` array plus concatenated times and directions) for the numba
    reconstruction kernel.
    """

    def __init__(
        self,
        positive: Optional[Iterable[EventTimeline]] = None,
        negative: Optional[Iterable[EventTimeline]] = None,
    ) -> None:
        super().__init__()
        self._frozen = False
        self._flat: Optional[Tuple[int, np.ndarray, np.ndarray, np.ndarray]] = None
        if positive is not None:
            self.extend(positive, POSITIVE)
        if negative is not None:
            self.extend(negative, NEGATIVE)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def extend(self, values: Iterable[EventTimeline], side: str = POSITIVE) -> None:
        if self._frozen:
            raise TimelineOrderError("SwapTimeline is frozen and cannot grow")
        values = list(values)
        for v in values:
            if not isinstance(v, EventTimeline):
                raise TypeError(f"expected EventTimeline, got {type(v).__name__}")
        super().extend(values, side)

    def get_mut(self, position: int) -> Optional[EventTimeline]:
        if self._frozen:
            raise TimelineOrderError("SwapTimeline is frozen; mutable access is not allowed")
        return super().get_mut(position)

    def freeze(self) -> "SwapTimeline":
        if self._frozen:
            return self
        timelines = list(self)
        counts = np.array([len(tl) for tl in timelines], dtype=np.int64)
        offsets = np.zeros(len(timelines) + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])
        if timelines:
            times = np.concatenate([tl.timestamps for tl in timelines])
            dirs = np.concatenate([tl.directions for tl in timelines]).astype(np.int64)
        else:
            times = np.empty(0, dtype=np.float64)
            dirs = np.empty(0, dtype=np.int64)
        self._flat = (self.range().start, offsets, times, dirs)
        self._frozen = True
        return self

    def flattened(self) -> Tuple[int, np.ndarray, np.ndarray, np.ndarray]:
        """Return (lowest position, offsets, times, directions)."""
        if self._flat is None:
            raise TimelineOrderError("SwapTimeline must be frozen before it is read")
        return self._flat

    @property
    def num_events(self) -> int:
        return sum(len(tl) for tl in self)


###############################################################################
# Generation
###############################################################################


def partition_sizes(n: int, workers: int) -> List[int]:
    """Split ``n`` positions over ``workers``; the first n % workers get one extra."""
    if workers < 1:
        raise ConfigurationError(f"workers must be a positive integer, got {workers!r}")
    if n < 0:
        raise ConfigurationError(f"number of positions must be non-negative, got {n!r}")
    base, extra = divmod(n, workers)
    return [base + (1 if i < extra else 0) for i in range(workers)]


def _check_clock(horizon: float, rate: float) -> None:
    if not (math.isfinite(horizon) and horizon > 0.0):
        raise ConfigurationError(f"horizon must be a positive finite number, got {horizon!r}")
    if not (math.isfinite(rate) and rate > 0.0):
        raise ConfigurationError(f"rate must be a positive finite number, got {rate!r}")


def _chunk_size(horizon: float, rate: float) -> int:
    # expected events per position plus a few standard deviations
    mean = 2.0 * rate * horizon
    return max(16, int(mean + 4.0 * math.sqrt(mean)) + 1)


def _draw_times(rng: np.random.Generator, horizon: float, scale: float, chunk: int) -> np.ndarray:
    """
    Accumulate exponential gaps while the clock is below ``horizon``.

    Matches ``while clock < horizon: clock += draw; keep(clock)``, so the
    last kept time is the first one at or past the horizon.
    """
    clock = 0.0
    pieces = []
    while clock < horizon:
        times = clock + np.cumsum(rng.exponential(scale, size=chunk))
        stop = int(np.searchsorted(times, horizon, side="left"))
        if stop < chunk:
            pieces.append(times[: stop + 1])
        else:
            pieces.append(times)
        clock = float(pieces[-1][-1])
    return np.concatenate(pieces)


def generate_block(
    count: int,
    horizon: float,
    rate: float,
    seed: np.random.SeedSequence | int | None,
) -> List[EventTimeline]:
    """
    Worker body: build ``count`` independent timelines with a private RNG.

    Kept at module level so it can be pickled for a process pool.
    """
    _check_clock(horizon, rate)
    rng = np.random.default_rng(seed)
    scale = 1.0 / (2.0 * rate)
    chunk = _chunk_size(horizon, rate)
    sample: List[EventTimeline] = []
    for _ in range(count):
        times = _draw_times(rng, horizon, scale, chunk)
        coins = rng.integers(0, 2, size=times.size)
        dirs = np.where(coins == 0, Direction.LEFT, Direction.RIGHT).astype(np.int8)
        sample.append(EventTimeline(times, dirs))
    return sample


def generate_swap_timeline(
    n: int,
    horizon: float,
    rate: float,
    workers: int,
    seed: Optional[int] = None,
    backend: str = "process",
) -> SwapTimeline:
    """
    Generate timelines for positions 0..n-1 across ``workers`` parallel tasks
    and return them as a frozen SwapTimeline.
    """
    _check_clock(horizon, rate)
    sizes = partition_sizes(n, workers)
    if backend == "process":
        executor_cls = ProcessPoolExecutor
    elif backend == "thread":
        executor_cls = ThreadPoolExecutor
    else:
        raise ConfigurationError(f"Unknown backend: {backend!r}")

    seeds = np.random.SeedSequence(seed).spawn(workers)
    with executor_cls(max_workers=workers) as executor:
        blocks = list(
            executor.map(
                generate_block,
                sizes,
                [horizon] * workers,
                [rate] * workers,
                seeds,
            )
        )

    full_sample = SwapTimeline()
    for block in blocks:
        full_sample.extend(block, POSITIVE)
    return full_sample.freeze()


__all__ = [
    "Direction",
    "SwapEvent",
    "EventTimeline",
    "SwapTimeline",
    "partition_sizes",
    "generate_block",
    "generate_swap_timeline",
]
