"""Simulation error hierarchy."""


class SimulationError(Exception):
    """Base class for all simulation engine failures."""


class InvalidConfigError(SimulationError, ValueError):
    """Caller supplied out-of-domain parameters. Raised before any trial runs."""


class NumericDegeneracyError(SimulationError, ArithmeticError):
    """Unrecoverable arithmetic condition (bad uniform draws, overflow)."""


class SimulationCancelledError(SimulationError):
    """The caller cancelled a run before it completed."""
