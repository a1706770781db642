"""
Backward-trace reconstruction of the voter model.

The color seen at (position, t) is found by running the dual coalescing walk
backwards: starting at the right edge of the time slice, follow the latest
swap of the current position that falls strictly inside the slice, hop to
the neighbour, and repeat from the new position with the swap's time as the
new upper bound. When no swap is left inside the slice the walk has settled,
and the answer is the already resolved color of that position one slice
earlier. Walking off the generated lattice yields "unknown".

Columns are produced strictly left to right. Within a column every position
is independent; the hot loop runs in a numba kernel over the flattened
SwapTimeline, with a plain Python ``backtrace`` kept as the readable
reference for single cells.
"""

from __future__ import annotations

import math
import time
from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np
from numba import njit

from .devec import POSITIVE, BidirectionalArray
from .errors import ColumnOrderError, ConfigurationError
from .swaps import SwapTimeline

# sentinel for "no causal information" inside integer color buffers
UNKNOWN = -1


def _to_raw(value: Optional[int]) -> int:
    if value is None:
        return UNKNOWN
    value = int(value)
    if value < 0:
        raise ValueError(f"colors must be non-negative integers, got {value}")
    return value


def _from_raw(value) -> Optional[int]:
    value = int(value)
    return None if value == UNKNOWN else value


###############################################################################
# Color storage
###############################################################################


class ColorColumn:
    """Append-only color history of one position, one entry per time slice."""

    __slots__ = ("_values", "_length")

    def __init__(self, capacity: int) -> None:
        self._values = np.full(capacity, UNKNOWN, dtype=np.int64)
        self._length = 0

    def append(self, value: Optional[int]) -> None:
        self._append_raw(_to_raw(value))

    def _append_raw(self, raw: int) -> None:
        if self._length >= self._values.size:
            raise ColumnOrderError(f"ColorColumn is full (capacity {self._values.size})")
        self._values[self._length] = raw
        self._length += 1

    def get(self, time_index: int) -> Optional[int]:
        if 0 <= time_index < self._length:
            return _from_raw(self._values[time_index])
        return None

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the resolved entries (UNKNOWN for unknown)."""
        view = self._values[: self._length]
        view.setflags(write=False)
        return view

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Optional[int]]:
        for raw in self._values[: self._length]:
            yield _from_raw(raw)


class ColorGrid:
    """
    Position -> ColorColumn map, seeded at t=0 and grown one time column at a
    time. Written columns are never revised.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ConfigurationError(f"capacity must be at least 1, got {capacity}")
        self.capacity = int(capacity)
        self.columns: BidirectionalArray[ColorColumn] = BidirectionalArray()
        self._num_columns = 0

    @classmethod
    def from_seed_row(cls, row: Iterable[Optional[int]], capacity: int) -> "ColorGrid":
        """Seed positions 0..len(row)-1 with the t=0 colors in ``row``."""
        grid = cls(capacity)
        grid.seed(row, POSITIVE)
        return grid

    def seed(self, row: Iterable[Optional[int]], side: str = POSITIVE) -> None:
        """
        Add positions carrying only a t=0 color. On the negative side the first
        entry of ``row`` becomes position -1.
        """
        if self._num_columns > 1:
            raise ColumnOrderError("cannot seed new positions once time columns are built")
        new_columns = []
        for value in row:
            column = ColorColumn(self.capacity)
            column.append(value)
            new_columns.append(column)
        self.columns.extend(new_columns, side)
        self._num_columns = 1

    # ------------------------------------------------------------------ access
    @property
    def num_columns(self) -> int:
        return self._num_columns

    def range(self) -> range:
        return self.columns.range()

    def __len__(self) -> int:
        return len(self.columns)

    def get(self, position: int, time_index: int) -> Optional[int]:
        """Color at (position, time_index), or None when unknown or absent."""
        column = self.columns.get(position)
        if column is None:
            return None
        return column.get(time_index)

    def column(self, time_index: int) -> Tuple[int, np.ndarray]:
        """Return (lowest position, raw colors of every position at time_index)."""
        if not 0 <= time_index < self._num_columns:
            raise ColumnOrderError(
                f"column {time_index} is not resolved yet ({self._num_columns} available)"
            )
        out = np.empty(len(self.columns), dtype=np.int64)
        for i, col in enumerate(self.columns):
            out[i] = col.values[time_index]
        return self.range().start, out

    def append_column(self, time_index: int, values: Sequence[int]) -> None:
        """Write the raw colors of column ``time_index`` for every position."""
        if time_index != self._num_columns:
            raise ColumnOrderError(
                f"columns must be appended in order: expected {self._num_columns}, got {time_index}"
            )
        if time_index >= self.capacity:
            raise ColumnOrderError(f"grid capacity {self.capacity} exceeded")
        if len(values) != len(self.columns):
            raise ColumnOrderError(
                f"column has {len(values)} entries but the grid has {len(self.columns)} positions"
            )
        for col, raw in zip(self.columns, values):
            col._append_raw(int(raw))
        self._num_columns += 1

    def to_array(self) -> Tuple[int, np.ndarray]:
        """Return (lowest position, int64 array indexed [position - lo, time])."""
        if len(self.columns) == 0:
            return 0, np.zeros((0, self._num_columns), dtype=np.int64)
        stacked = np.stack([col.values for col in self.columns])
        return self.range().start, stacked


###############################################################################
# Numba kernel
###############################################################################


@njit(cache=True)
def _trace_cell(position, current_time, min_time, tl_lo, offsets, times, dirs, prev, prev_lo):
    n_timelines = offsets.shape[0] - 1
    current = position
    while current_time > min_time:
        idx = current - tl_lo
        if idx < 0 or idx >= n_timelines:
            return UNKNOWN
        start = offsets[idx]
        stop = offsets[idx + 1]
        # latest swap strictly before current_time (timestamps are sorted)
        k = start + np.searchsorted(times[start:stop], current_time) - 1
        if k >= start and times[k] > min_time:
            current_time = times[k]
            current += dirs[k]
            continue
        j = current - prev_lo
        if j < 0 or j >= prev.shape[0]:
            return UNKNOWN
        return prev[j]
    return UNKNOWN


@njit(cache=True)
def trace_column(current_time, min_time, tl_lo, offsets, times, dirs, prev, prev_lo):
    """
    Colors of every grid position at the slice (min_time, current_time].

    ``prev`` holds the previous column for positions prev_lo, prev_lo + 1, ...
    and the timeline arrays are the output of ``SwapTimeline.flattened``.
    """
    out = np.empty(prev.shape[0], dtype=np.int64)
    for i in range(prev.shape[0]):
        out[i] = _trace_cell(
            prev_lo + i, current_time, min_time, tl_lo, offsets, times, dirs, prev, prev_lo
        )
    return out


###############################################################################
# Reconstructor
###############################################################################


class StateReconstructor:
    """Fills a ColorGrid column by column from a frozen SwapTimeline."""

    def __init__(self, swaps: SwapTimeline, horizon: float, slices: int, verbose: bool = False) -> None:
        if not (math.isfinite(horizon) and horizon > 0.0):
            raise ConfigurationError(f"horizon must be a positive finite number, got {horizon!r}")
        if slices < 1:
            raise ConfigurationError(f"slices must be at least 1, got {slices!r}")
        self.swaps = swaps.freeze()
        self.horizon = float(horizon)
        self.slices = int(slices)
        self.verbose = verbose

    def window(self, time_index: int) -> Tuple[float, float]:
        """Return (min_time, current_time) bounding slice ``time_index``."""
        current_time = time_index * self.horizon / self.slices
        min_time = (time_index - 1) * self.horizon / self.slices
        return min_time, current_time

    def backtrace(self, grid: ColorGrid, time_index: int, position: int) -> Optional[int]:
        """Trace a single cell with a plain reverse scan of each timeline."""
        if not 1 <= time_index <= grid.num_columns:
            raise ColumnOrderError(
                f"cannot trace t={time_index} with {grid.num_columns} resolved columns"
            )
        min_time, current_time = self.window(time_index)
        current = position
        while current_time > min_time:
            timeline = self.swaps.get(current)
            if timeline is None:
                return None
            for direction, stamp in zip(timeline.directions[::-1], timeline.timestamps[::-1]):
                if min_time < stamp < current_time:
                    current_time = float(stamp)
                    current += int(direction)
                    break
            else:
                return grid.get(current, time_index - 1)
        return None

    def fill_column(self, grid: ColorGrid, time_index: int) -> np.ndarray:
        """Compute and append column ``time_index``; it must be the next one."""
        if time_index < 1 or time_index != grid.num_columns:
            raise ColumnOrderError(
                f"next column to build is {grid.num_columns}, got {time_index}"
            )
        min_time, current_time = self.window(time_index)
        prev_lo, prev = grid.column(time_index - 1)
        tl_lo, offsets, times, dirs = self.swaps.flattened()
        values = trace_column(current_time, min_time, tl_lo, offsets, times, dirs, prev, prev_lo)
        grid.append_column(time_index, values)
        return values

    def build(self, grid: ColorGrid) -> ColorGrid:
        """Resolve every remaining column up to ``slices - 1``, in order."""
        if grid.num_columns < 1:
            raise ColumnOrderError("grid must be seeded before building")
        if grid.capacity < self.slices:
            raise ColumnOrderError(
                f"grid capacity {grid.capacity} is smaller than slices {self.slices}"
            )
        start_time = time.time()
        report_every = max(1, self.slices // 10)
        for t in range(grid.num_columns, self.slices):
            self.fill_column(grid, t)
            if self.verbose and t % report_every == 0:
                elapsed = time.time() - start_time
                print(f"[voter] Column {t}/{self.slices - 1}, elapsed={elapsed:.1f}s")
        return grid


__all__ = [
    "UNKNOWN",
    "ColorColumn",
    "ColorGrid",
    "StateReconstructor",
    "trace_column",
]
