"""Discrete-time multiplicative random walk with Box-Muller normal steps.

Each trial starts at the current price and takes ``horizon_days`` steps:
    z = sqrt(-2 ln u1) * cos(2 pi u2)
    price *= 1 + (mean_daily_return + daily_volatility * z)
"""

import logging
from typing import Protocol, Sequence

import numpy as np

from stockrisk.exceptions import NumericDegeneracyError

from . import SimulationConfig

logger = logging.getLogger(__name__)

# ln(0) is undefined: u1 == 0 is clamped to the smallest positive normal double
MIN_UNIFORM = float(np.finfo(np.float64).tiny)

# Trial-days held in memory at once (a few float64 arrays of this many cells)
MAX_CELLS_PER_BLOCK = 250_000


class UniformSource(Protocol):
    """Anything that can produce uniform variates in [0, 1)."""

    def uniform(self, size: int) -> np.ndarray: ...


class NumpyUniformSource:
    """Uniform variates from a NumPy ``Generator``."""

    def __init__(self, seed: int | np.random.SeedSequence | None = None):
        self._rng = np.random.default_rng(seed)

    def uniform(self, size: int) -> np.ndarray:
        return self._rng.random(size)


class SequenceUniformSource:
    """Replays a fixed sequence of uniform draws, in order."""

    def __init__(self, values: Sequence[float]):
        self._values = np.asarray(values, dtype=np.float64).ravel()
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._values) - self._pos

    def uniform(self, size: int) -> np.ndarray:
        if size > self.remaining:
            raise NumericDegeneracyError(
                f"Uniform sequence exhausted: requested {size}, {self.remaining} left"
            )
        out = self._values[self._pos:self._pos + size].copy()
        self._pos += size
        return out


def box_muller(u1, u2):
    """Standard-normal variate(s) from two independent uniform variates.

    Accepts scalars or arrays of equal shape.
    """
    u1 = np.maximum(u1, MIN_UNIFORM)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def simulate_terminal_values(
    config: SimulationConfig,
    source: UniformSource,
    num_trials: int,
    max_cells: int | None = None,
) -> np.ndarray:
    """Simulate ``num_trials`` independent price paths.

    Draws are consumed trial-major: for trial t and day d the pair
    (u1, u2) sits at positions 2*(t*horizon + d) and 2*(t*horizon + d) + 1
    of the source stream, so a fixed sequence of draws always reproduces
    the same values.

    Work is done in blocks of at most ``max_cells`` trial-days. Trials share
    a block only when their whole horizons fit; a horizon longer than the
    budget is walked one trial at a time, a block of days at a time.

    Args:
        config: Validated simulation parameters.
        source: Uniform random source.
        num_trials: Number of trials in this chunk.
        max_cells: Trial-days per block (default: MAX_CELLS_PER_BLOCK).

    Returns:
        Terminal portfolio values in production order (unsorted).
    """
    horizon = config.horizon_days
    prices = np.full(num_trials, config.current_price, dtype=np.float64)

    if horizon > 0 and num_trials > 0:
        budget = max(1, max_cells if max_cells is not None else MAX_CELLS_PER_BLOCK)
        trials_per_block = max(1, budget // horizon)
        days_per_block = min(horizon, budget)
        for start in range(0, num_trials, trials_per_block):
            _walk_block(config, source, prices[start:start + trials_per_block], days_per_block)

    # initial_investment * price / current_price == share_count * price,
    # but exact when the price never moved
    terminal = config.initial_investment * (prices / config.current_price)

    if not np.all(np.isfinite(terminal)):
        bad = int(np.count_nonzero(~np.isfinite(terminal)))
        raise NumericDegeneracyError(
            f"{bad} of {num_trials} simulated paths overflowed to a non-finite value"
        )

    logger.debug("Simulated %d paths over %d days", num_trials, horizon)
    return terminal


def _walk_block(
    config: SimulationConfig,
    source: UniformSource,
    prices: np.ndarray,
    days_per_block: int,
) -> None:
    """Compound ``prices`` (a view, updated in place) over the whole horizon."""
    n = len(prices)
    horizon = config.horizon_days
    for day0 in range(0, horizon, days_per_block):
        days = min(days_per_block, horizon - day0)
        draws = _draw_uniform(source, n * days * 2).reshape(n, days, 2)
        z = box_muller(draws[:, :, 0], draws[:, :, 1])

        # Column 0 carries the running price so the accumulate folds left to
        # right, the same order as price *= 1 + r one day at a time
        factors = np.empty((n, days + 1), dtype=np.float64)
        factors[:, 0] = prices
        factors[:, 1:] = 1.0 + (config.mean_daily_return + config.daily_volatility * z)
        prices[:] = np.multiply.accumulate(factors, axis=1)[:, -1]


def _draw_uniform(source: UniformSource, size: int) -> np.ndarray:
    """Pull ``size`` draws from the source and reject unusable values."""
    u = np.asarray(source.uniform(size), dtype=np.float64)
    if u.shape != (size,):
        raise NumericDegeneracyError(
            f"Uniform source returned shape {u.shape}, expected ({size},)"
        )
    if not np.all(np.isfinite(u)) or np.any(u < 0.0) or np.any(u > 1.0):
        raise NumericDegeneracyError("Uniform source produced values outside [0, 1]")
    return u
