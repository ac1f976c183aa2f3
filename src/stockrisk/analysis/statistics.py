"""Sample aggregation and summary statistics.

Pure computation over the sorted terminal-value sample. Percentiles use the
nearest-rank method (index = floor(n * p), no interpolation), so results
differ slightly from ``np.percentile`` on small samples.
"""

import logging
import math
from typing import Iterable

import numpy as np

from stockrisk.analysis.sim_models import PERCENTILE_LEVELS, ResultsSummary, SimulationConfig
from stockrisk.exceptions import NumericDegeneracyError, SimulationError

logger = logging.getLogger(__name__)

LOSS_THRESHOLD = 0.9  # "10% loss" means ending below 90% of the investment


def aggregate_sample(chunks: Iterable[np.ndarray], expected_count: int) -> np.ndarray:
    """Concatenate chunks of terminal values into one sorted, read-only sample.

    Raises:
        SimulationError: if the chunks do not hold exactly ``expected_count`` values.
        NumericDegeneracyError: if any value is NaN or infinite.
    """
    parts = [np.asarray(c, dtype=np.float64).ravel() for c in chunks]
    sample = np.concatenate(parts) if parts else np.empty(0, dtype=np.float64)

    if sample.size != expected_count:
        raise SimulationError(
            f"Sample size mismatch: got {sample.size} values, expected {expected_count}"
        )
    if not np.all(np.isfinite(sample)):
        raise NumericDegeneracyError("Sample contains non-finite values")

    sample.sort(kind="stable")
    sample.setflags(write=False)
    return sample


def nearest_rank_percentile(sample: np.ndarray, p: float) -> float:
    """Value at index floor(n * p) of an ascending sample, clamped to n - 1."""
    n = len(sample)
    if n == 0:
        raise SimulationError("Cannot take a percentile of an empty sample")
    idx = min(math.floor(n * p), n - 1)
    return float(sample[idx])


def summarize(sample: np.ndarray, config: SimulationConfig) -> ResultsSummary:
    """Derive descriptive and risk statistics from a sorted sample.

    Args:
        sample: Ascending terminal portfolio values (see ``aggregate_sample``).
        config: The configuration the sample was produced from.

    Returns:
        ResultsSummary over the full sample.
    """
    n = len(sample)
    if n == 0:
        raise SimulationError("Cannot summarize an empty sample")

    investment = config.initial_investment

    if sample[0] == sample[-1]:
        # Constant sample: exact mean, no rounding noise in the spread
        mean = float(sample[0])
        std = 0.0
    else:
        mean = float(np.mean(sample))
        std = float(np.std(sample))  # population (ddof=0)

    p5, p25, p50, p75, p95 = (nearest_rank_percentile(sample, p) for p in PERCENTILE_LEVELS)

    prob_profit = np.count_nonzero(sample > investment) / n
    prob_loss_10 = np.count_nonzero(sample < investment * LOSS_THRESHOLD) / n

    return ResultsSummary(
        mean=mean,
        std=std,
        p5=p5,
        p25=p25,
        p50=p50,
        p75=p75,
        p95=p95,
        var_5pct=investment - p5,
        expected_return=mean - investment,
        prob_profit=float(prob_profit),
        prob_loss_10=float(prob_loss_10),
        current_price=config.current_price,
        share_count=config.share_count,
        initial_investment=investment,
        trial_count=n,
        sample=sample,
    )
