"""Monte Carlo simulation orchestrator.

Validates the config, runs the random-walk path generator over chunks of
trials (in-process or across worker processes), aggregates the terminal
values into one sorted sample and summarizes it.
"""

import logging
import math
import numbers
import threading
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait

import numpy as np

from stockrisk.analysis.sim_models import ResultsSummary, SimulationConfig
from stockrisk.analysis.sim_models.random_walk import (
    NumpyUniformSource,
    UniformSource,
    simulate_terminal_values,
)
from stockrisk.analysis.statistics import aggregate_sample, summarize
from stockrisk.exceptions import InvalidConfigError, SimulationCancelledError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CHUNK_SIZE = 2000
CANCEL_POLL_SECONDS = 0.1


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_simulation(
    config: SimulationConfig,
    source: UniformSource | None = None,
    *,
    seed: int | None = None,
    max_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: threading.Event | None = None,
) -> ResultsSummary:
    """Run a single-asset Monte Carlo simulation.

    Without an injected ``source`` every chunk of trials draws from its own
    stream spawned from ``SeedSequence(seed)``, so a seeded run gives the same
    sample for any ``max_workers``. An injected source is consumed in order,
    in-process.

    Args:
        config: Simulation parameters.
        source: Optional uniform random source (deterministic tests, replays).
        seed: Seed for the spawned per-chunk streams (None = fresh entropy).
        max_workers: Worker processes for chunk execution (1 = in-process).
        chunk_size: Trials per chunk.
        cancel_event: Set by the caller to abort the run between chunks.

    Returns:
        ResultsSummary over exactly ``config.trial_count`` trials.

    Raises:
        InvalidConfigError: before any trial runs, for out-of-domain input.
        NumericDegeneracyError: if the random source or arithmetic degenerates.
        SimulationCancelledError: if ``cancel_event`` was set mid-run.
    """
    validate_config(config)
    _validate_execution(max_workers, chunk_size)

    sizes = _chunk_sizes(config.trial_count, chunk_size)
    logger.info(
        "Running %d trials x %d days (%d chunks, mu=%.6f, sigma=%.6f)",
        config.trial_count, config.horizon_days, len(sizes),
        config.mean_daily_return, config.daily_volatility,
    )

    if source is not None:
        if max_workers > 1:
            logger.warning("Injected uniform source: ignoring max_workers=%d", max_workers)
        chunks = _run_with_source(config, source, sizes, cancel_event)
    else:
        root = np.random.SeedSequence(seed)
        logger.debug("Seed entropy: %s", root.entropy)
        streams = root.spawn(len(sizes))
        workers = min(max_workers, len(sizes))
        if workers > 1:
            chunks = _run_parallel(config, sizes, streams, workers, cancel_event)
        else:
            chunks = _run_sequential(config, sizes, streams, cancel_event)

    sample = aggregate_sample(chunks, config.trial_count)
    summary = summarize(sample, config)

    logger.info(
        "Simulation complete: mean=%.2f, P5=%.2f, P95=%.2f, prob_profit=%.4f",
        summary.mean, summary.p5, summary.p95, summary.prob_profit,
    )
    return summary


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_config(config: SimulationConfig) -> None:
    """Raise InvalidConfigError when any parameter is out of domain."""
    for name in ("initial_investment", "mean_daily_return", "daily_volatility", "current_price"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidConfigError(f"{name} must be a real number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidConfigError(f"{name} must be finite, got {value!r}")

    for name in ("horizon_days", "trial_count"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidConfigError(f"{name} must be an integer, got {value!r}")

    if config.initial_investment <= 0:
        raise InvalidConfigError(
            f"initial_investment must be positive, got {config.initial_investment}"
        )
    if config.horizon_days < 0:
        raise InvalidConfigError(
            f"horizon_days must be non-negative, got {config.horizon_days}"
        )
    if config.trial_count <= 0:
        raise InvalidConfigError(f"trial_count must be positive, got {config.trial_count}")
    if config.current_price <= 0:
        raise InvalidConfigError(f"current_price must be positive, got {config.current_price}")
    if config.daily_volatility < 0:
        raise InvalidConfigError(
            f"daily_volatility must be non-negative, got {config.daily_volatility}"
        )


def _validate_execution(max_workers: int, chunk_size: int) -> None:
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise InvalidConfigError(f"max_workers must be a positive integer, got {max_workers!r}")
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise InvalidConfigError(f"chunk_size must be a positive integer, got {chunk_size!r}")


# ---------------------------------------------------------------------------
# Execution strategies
# ---------------------------------------------------------------------------


def _chunk_sizes(total: int, chunk_size: int) -> list[int]:
    """Split ``total`` trials into chunks of at most ``chunk_size``."""
    full, rest = divmod(total, chunk_size)
    sizes = [chunk_size] * full
    if rest:
        sizes.append(rest)
    return sizes


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise SimulationCancelledError("Simulation cancelled by caller")


def _run_chunk_worker(
    config: SimulationConfig,
    num_trials: int,
    stream: np.random.SeedSequence,
) -> np.ndarray:
    """Picklable worker for ProcessPoolExecutor."""
    return simulate_terminal_values(config, NumpyUniformSource(stream), num_trials)


def _run_with_source(
    config: SimulationConfig,
    source: UniformSource,
    sizes: list[int],
    cancel_event: threading.Event | None,
) -> list[np.ndarray]:
    chunks = []
    for n in sizes:
        _check_cancelled(cancel_event)
        chunks.append(simulate_terminal_values(config, source, n))
    return chunks


def _run_sequential(
    config: SimulationConfig,
    sizes: list[int],
    streams: list[np.random.SeedSequence],
    cancel_event: threading.Event | None,
) -> list[np.ndarray]:
    chunks = []
    for i, (n, stream) in enumerate(zip(sizes, streams)):
        _check_cancelled(cancel_event)
        chunks.append(_run_chunk_worker(config, n, stream))
        logger.debug("Chunk %d/%d done (%d trials)", i + 1, len(sizes), n)
    return chunks


def _run_parallel(
    config: SimulationConfig,
    sizes: list[int],
    streams: list[np.random.SeedSequence],
    max_workers: int,
    cancel_event: threading.Event | None,
) -> list[np.ndarray]:
    """Run chunks across worker processes; results keep chunk order."""
    logger.info("Running %d chunks with %d workers", len(sizes), max_workers)
    chunks: list[np.ndarray | None] = [None] * len(sizes)

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_run_chunk_worker, config, n, stream): i
            for i, (n, stream) in enumerate(zip(sizes, streams))
        }
        pending = set(futures)
        try:
            while pending:
                _check_cancelled(cancel_event)
                done, pending = wait(
                    pending, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED,
                )
                for future in done:
                    chunks[futures[future]] = future.result()
        except BaseException:
            for future in pending:
                future.cancel()
            raise

    return chunks
