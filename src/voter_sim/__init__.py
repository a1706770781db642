"""
Voter Model Simulation Library

Computes the space-time coloring of the one-dimensional voter model from its
dual, coalescing random walks driven by Poisson swap events:
- BidirectionalArray: signed-position growable array
- generate_swap_timeline: parallel per-position swap timelines
- StateReconstructor / ColorGrid: backward-trace reconstruction
- VoterSimulator: end-to-end runner
"""

from .config import VoterConfig
from .devec import BidirectionalArray
from .errors import ColumnOrderError, ConfigurationError, TimelineOrderError, VoterError
from .reconstruct import UNKNOWN, ColorColumn, ColorGrid, StateReconstructor
from .simulator import VoterSimulator, run_model
from .swaps import (
    Direction,
    EventTimeline,
    SwapEvent,
    SwapTimeline,
    generate_swap_timeline,
    partition_sizes,
)
from . import utils

__all__ = [
    # Simulator
    "VoterSimulator",
    "run_model",
    # Configuration
    "VoterConfig",
    # Containers
    "BidirectionalArray",
    "EventTimeline",
    "SwapEvent",
    "SwapTimeline",
    "ColorColumn",
    "ColorGrid",
    "Direction",
    "UNKNOWN",
    # Algorithms
    "StateReconstructor",
    "generate_swap_timeline",
    "partition_sizes",
    # Errors
    "VoterError",
    "ConfigurationError",
    "TimelineOrderError",
    "ColumnOrderError",
    # Utilities
    "utils",
]
