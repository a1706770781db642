from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

###############################################################################
# Defaults (viewer window size and run constants)
###############################################################################

WIDTH = 1280  # number of discrete time slices
HEIGHT = 720  # number of lattice positions
NTHREADS = 10
MAXTIME = 20.0
RATEPARAMETER = 1.0

BACKENDS = ("process", "thread")


def _is_integer(value) -> bool:
    # bool is an Integral but never a valid count
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_positive_real(value) -> bool:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    return math.isfinite(value) and value > 0.0


@dataclass
class VoterConfig:
    """Startup parameters for one voter model run."""

    horizon: float = MAXTIME
    workers: int = NTHREADS
    rate: float = RATEPARAMETER
    height: int = HEIGHT
    width: int = WIDTH
    seed: Optional[int] = None
    backend: str = "process"
    verbose: bool = True

    def validate(self) -> "VoterConfig":
        """Raise ConfigurationError on any invalid value, else return self."""
        if not _is_integer(self.workers) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")
        if not _is_positive_real(self.horizon):
            raise ConfigurationError(f"horizon must be a positive finite number, got {self.horizon!r}")
        if not _is_positive_real(self.rate):
            raise ConfigurationError(f"rate must be a positive finite number, got {self.rate!r}")
        if not _is_integer(self.height) or self.height < 1:
            raise ConfigurationError(f"height must be a positive integer, got {self.height!r}")
        # column 0 is the seed, so a single slice is a valid (trivial) run
        if not _is_integer(self.width) or self.width < 1:
            raise ConfigurationError(f"width must be a positive integer, got {self.width!r}")
        if self.seed is not None and (not _is_integer(self.seed) or self.seed < 0):
            raise ConfigurationError(f"seed must be a non-negative integer or None, got {self.seed!r}")
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"backend must be one of {BACKENDS}, got {self.backend!r}"
            )
        self.workers = int(self.workers)
        self.height = int(self.height)
        self.width = int(self.width)
        self.seed = None if self.seed is None else int(self.seed)
        self.horizon = float(self.horizon)
        self.rate = float(self.rate)
        return self

    @property
    def slice_width(self) -> float:
        return self.horizon / self.width

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "VoterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(params))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["VoterConfig", "BACKENDS", "WIDTH", "HEIGHT", "NTHREADS", "MAXTIME", "RATEPARAMETER"]
