"""Exceptions raised by the voter model simulator."""


class VoterError(Exception):
    """Base class for simulator errors."""


class ConfigurationError(VoterError, ValueError):
    """Invalid startup parameters; raised before any generation work starts."""


class TimelineOrderError(VoterError, RuntimeError):
    """A swap timeline is malformed or was mutated after being frozen."""


class ColumnOrderError(VoterError, RuntimeError):
    """A color column was requested or written out of time order."""


__all__ = [
    "VoterError",
    "ConfigurationError",
    "TimelineOrderError",
    "ColumnOrderError",
]
