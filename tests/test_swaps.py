"""
Tests for swap timeline generation.
"""

import math

import numpy as np
import pytest

from voter_sim.errors import ConfigurationError, TimelineOrderError
from voter_sim.swaps import (
    Direction,
    EventTimeline,
    SwapTimeline,
    generate_block,
    generate_swap_timeline,
    partition_sizes,
)


@pytest.mark.parametrize("n, workers", [(720, 10), (10, 3), (7, 7), (3, 5), (0, 4), (1281, 16)])
def test_partition_is_exact(n, workers):
    sizes = partition_sizes(n, workers)
    assert len(sizes) == workers
    assert sum(sizes) == n
    extra = n % workers
    assert all(s == n // workers + 1 for s in sizes[:extra])
    assert all(s == n // workers for s in sizes[extra:])


def test_partition_rejects_zero_workers():
    with pytest.raises(ConfigurationError):
        partition_sizes(10, 0)


def test_generated_timelines_are_sorted_and_bounded():
    horizon = 5.0
    sample = generate_block(40, horizon, 1.0, np.random.SeedSequence(3))
    assert len(sample) == 40
    for timeline in sample:
        ts = timeline.timestamps
        assert ts.size >= 1
        assert np.all(ts > 0.0)
        assert np.all(np.diff(ts) > 0.0)
        # exactly one trailing event at or past the horizon
        assert ts[-1] >= horizon
        assert np.all(ts[:-1] < horizon)
        assert set(np.unique(timeline.directions)) <= {-1, 1}


def test_interarrival_and_direction_statistics():
    rate = 2.0
    sample = generate_block(50, 50.0, rate, np.random.SeedSequence(12))
    gaps = np.concatenate([np.diff(np.concatenate([[0.0], tl.timestamps])) for tl in sample])
    dirs = np.concatenate([tl.directions for tl in sample])

    # ~10000 draws with mean 1 / (2 * rate)
    assert abs(gaps.mean() - 1.0 / (2.0 * rate)) < 0.02
    assert 0.45 < np.mean(dirs == Direction.LEFT) < 0.55


def test_block_is_reproducible_from_seed():
    a = generate_block(5, 3.0, 1.0, np.random.SeedSequence(99))
    b = generate_block(5, 3.0, 1.0, np.random.SeedSequence(99))
    for x, y in zip(a, b):
        assert np.array_equal(x.timestamps, y.timestamps)
        assert np.array_equal(x.directions, y.directions)


def test_swap_timeline_layout_and_freeze():
    swaps = generate_swap_timeline(23, 2.0, 1.0, workers=4, seed=1, backend="thread")
    assert swaps.frozen
    assert swaps.range() == range(0, 23)
    assert swaps.get(-1) is None
    assert swaps.get(23) is None

    with pytest.raises(TimelineOrderError):
        swaps.extend([EventTimeline()], "negative")
    with pytest.raises(TimelineOrderError):
        swaps.get_mut(0)

    lo, offsets, times, dirs = swaps.flattened()
    assert lo == 0
    assert offsets[-1] == swaps.num_events == times.size == dirs.size
    third = swaps.get(3)
    assert np.array_equal(times[offsets[3]:offsets[4]], third.timestamps)


def test_backends_agree_for_same_seed():
    kwargs = dict(n=7, horizon=3.0, rate=1.5, workers=3, seed=5)
    threaded = generate_swap_timeline(backend="thread", **kwargs)
    processed = generate_swap_timeline(backend="process", **kwargs)
    assert threaded.range() == processed.range()
    for a, b in zip(threaded, processed):
        assert np.array_equal(a.timestamps, b.timestamps)
        assert np.array_equal(a.directions, b.directions)


def test_generation_rejects_bad_parameters():
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, 0.0, 1.0, 2)
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, 1.0, -1.0, 2)
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, 1.0, 1.0, 0)
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, 1.0, 1.0, 2, backend="gpu")
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, math.inf, 1.0, 2)
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, 1.0, math.inf, 2)
    with pytest.raises(ConfigurationError):
        generate_swap_timeline(5, float("nan"), 1.0, 2)


def test_block_rejects_infinite_clock_parameters():
    with pytest.raises(ConfigurationError):
        generate_block(1, 1.0, math.inf, 0)
    with pytest.raises(ConfigurationError):
        generate_block(1, math.inf, 1.0, 0)


def test_event_timeline_validation():
    with pytest.raises(TimelineOrderError):
        EventTimeline.from_events([(Direction.LEFT, 0.5), (Direction.RIGHT, 0.4)])
    with pytest.raises(TimelineOrderError):
        EventTimeline.from_events([(Direction.LEFT, 0.5), (Direction.RIGHT, 0.5)])
    with pytest.raises(TimelineOrderError):
        EventTimeline.from_events([(Direction.LEFT, 0.0)])
    with pytest.raises(TimelineOrderError):
        EventTimeline(np.array([0.1, 0.2]), np.array([1]))
    with pytest.raises(TimelineOrderError):
        EventTimeline(np.array([0.1]), np.array([0]))


def test_event_timeline_iteration():
    timeline = EventTimeline.from_events([(Direction.LEFT, 0.25), (Direction.RIGHT, 0.75)])
    events = list(timeline)
    assert len(timeline) == 2
    assert events[0].direction is Direction.LEFT
    assert events[1].timestamp == 0.75
    assert timeline[1].direction is Direction.RIGHT
    assert not timeline.timestamps.flags.writeable


def test_swap_timeline_rejects_foreign_values():
    swaps = SwapTimeline()
    with pytest.raises(TypeError):
        swaps.extend([[0.1, 0.2]])
