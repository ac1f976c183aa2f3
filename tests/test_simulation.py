"""Integration tests for the run_simulation entry point."""

import dataclasses
import logging
import threading

import numpy as np
import pytest

from stockrisk.analysis.sim_models import SimulationConfig, random_walk
from stockrisk.analysis.sim_models.random_walk import NumpyUniformSource, SequenceUniformSource
from stockrisk.analysis.simulation import run_simulation, validate_config
from stockrisk.exceptions import (
    InvalidConfigError,
    SimulationCancelledError,
    SimulationError,
)


class RecordingSource:
    """Uniform source that counts how many draws were requested."""

    def __init__(self, seed=0, on_call=None):
        self._inner = NumpyUniformSource(seed)
        self._on_call = on_call
        self.calls = 0
        self.drawn = 0
        self.largest = 0

    def uniform(self, size):
        self.calls += 1
        self.drawn += size
        self.largest = max(self.largest, size)
        if self._on_call is not None:
            self._on_call(self)
        return self._inner.uniform(size)


# ---------------------------------------------------------------------------
# Sample properties
# ---------------------------------------------------------------------------

class TestSampleProperties:
    def test_sample_length_and_order(self, small_config):
        s = run_simulation(small_config, seed=1)
        assert len(s.sample) == small_config.trial_count
        assert np.all(np.diff(s.sample) >= 0)

    def test_monotonic_percentiles(self, small_config):
        s = run_simulation(small_config, seed=2)
        assert s.p5 <= s.p25 <= s.p50 <= s.p75 <= s.p95

    def test_probabilities_bounded(self, small_config):
        s = run_simulation(small_config, seed=3)
        assert 0.0 <= s.prob_profit <= 1.0
        assert 0.0 <= s.prob_loss_10 <= 1.0

    def test_percentiles_index_full_sample(self, small_config):
        s = run_simulation(small_config, seed=4)
        assert s.p5 == s.sample[50]
        assert s.p95 == s.sample[950]

    def test_trial_count_not_multiple_of_chunk(self, small_config):
        config = dataclasses.replace(small_config, trial_count=1234)
        s = run_simulation(config, seed=5, chunk_size=500)
        assert s.trial_count == 1234
        assert len(s.sample) == 1234

    def test_default_config_statistics(self, default_config):
        s = run_simulation(default_config, seed=2024)
        expected_mean = 100_000 * (1 + 0.0006) ** 30
        assert s.mean == pytest.approx(expected_mean, rel=0.01)
        # sd of a 30-day compounded walk ~ 0.012 * sqrt(30) of the position
        assert s.std == pytest.approx(100_000 * 0.012 * np.sqrt(30), rel=0.1)
        assert s.expected_return == pytest.approx(s.mean - 100_000)
        assert s.var_5pct == pytest.approx(100_000 - s.p5)
        assert s.share_count == pytest.approx(100_000 / 596.56)


# ---------------------------------------------------------------------------
# Degenerate inputs
# ---------------------------------------------------------------------------

class TestDegenerateInputs:
    def test_zero_horizon_returns_investment(self):
        config = SimulationConfig(horizon_days=0, trial_count=500)
        s = run_simulation(config, seed=6)
        assert np.all(s.sample == config.initial_investment)
        assert s.mean == s.p5 == s.p50 == s.p95 == config.initial_investment
        assert s.std == 0.0
        assert s.var_5pct == 0.0
        assert s.prob_profit == 0.0
        assert s.prob_loss_10 == 0.0

    def test_zero_drift_zero_volatility(self):
        config = SimulationConfig(
            initial_investment=50_000.0, horizon_days=250, trial_count=200,
            mean_daily_return=0.0, daily_volatility=0.0, current_price=33.3,
        )
        s = run_simulation(config, seed=7)
        assert np.all(s.sample == s.sample[0])
        assert s.std == 0.0

    def test_three_trial_scenario(self, flat_config):
        s = run_simulation(flat_config, seed=8)
        np.testing.assert_array_equal(s.sample, [100_000.0] * 3)
        assert s.mean == 100_000.0
        assert s.var_5pct == 0.0

    def test_positive_drift_zero_volatility_is_deterministic(self):
        config = SimulationConfig(
            initial_investment=1000.0, horizon_days=10, trial_count=50,
            mean_daily_return=0.01, daily_volatility=0.0, current_price=10.0,
        )
        s = run_simulation(config, seed=9)
        assert s.std == 0.0
        assert s.mean == pytest.approx(1000.0 * 1.01 ** 10)
        assert s.prob_profit == 1.0


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

class TestDeterminism:
    def test_fixed_draw_sequence_is_bit_reproducible(self, small_config):
        config = dataclasses.replace(small_config, trial_count=300, horizon_days=5)
        draws = np.random.default_rng(11).random(300 * 5 * 2)
        a = run_simulation(config, SequenceUniformSource(draws), chunk_size=64)
        b = run_simulation(config, SequenceUniformSource(draws), chunk_size=64)
        np.testing.assert_array_equal(a.sample, b.sample)
        assert a.to_dict() == b.to_dict()

    def test_chunking_does_not_change_injected_draw_order(self, small_config):
        config = dataclasses.replace(small_config, trial_count=300, horizon_days=5)
        draws = np.random.default_rng(12).random(300 * 5 * 2)
        a = run_simulation(config, SequenceUniformSource(draws), chunk_size=7)
        b = run_simulation(config, SequenceUniformSource(draws), chunk_size=300)
        np.testing.assert_array_equal(a.sample, b.sample)

    def test_injected_source_fully_consumed(self, small_config):
        config = dataclasses.replace(small_config, trial_count=10, horizon_days=3)
        src = SequenceUniformSource(np.full(60, 0.5))
        run_simulation(config, src)
        assert src.remaining == 0

    def test_seed_reproducibility(self, small_config):
        a = run_simulation(small_config, seed=123)
        b = run_simulation(small_config, seed=123)
        np.testing.assert_array_equal(a.sample, b.sample)

    def test_different_seeds_differ(self, small_config):
        a = run_simulation(small_config, seed=1)
        b = run_simulation(small_config, seed=2)
        assert not np.array_equal(a.sample, b.sample)

    def test_parallel_matches_sequential(self, small_config):
        config = dataclasses.replace(small_config, trial_count=600)
        seq = run_simulation(config, seed=77, chunk_size=100, max_workers=1)
        par = run_simulation(config, seed=77, chunk_size=100, max_workers=2)
        np.testing.assert_array_equal(seq.sample, par.sample)

    def test_injected_source_ignores_workers(self, small_config, caplog):
        config = dataclasses.replace(small_config, trial_count=50, horizon_days=2)
        with caplog.at_level(logging.WARNING):
            s = run_simulation(config, NumpyUniformSource(3), max_workers=4)
        assert s.trial_count == 50
        assert "ignoring max_workers" in caplog.text


# ---------------------------------------------------------------------------
# Long horizons
# ---------------------------------------------------------------------------

class TestLongHorizon:
    @pytest.fixture
    def long_config(self, small_config):
        return dataclasses.replace(
            small_config, trial_count=3, horizon_days=50_000,
            mean_daily_return=0.0, daily_volatility=0.0005,
        )

    def test_completes_under_small_block_budget(self, long_config, monkeypatch):
        baseline = run_simulation(long_config, seed=21, chunk_size=2)
        monkeypatch.setattr(random_walk, "MAX_CELLS_PER_BLOCK", 1000)
        blocked = run_simulation(long_config, seed=21, chunk_size=2)
        assert blocked.trial_count == 3
        assert np.all(np.isfinite(blocked.sample))
        np.testing.assert_allclose(blocked.sample, baseline.sample, rtol=1e-12)

    def test_draws_never_exceed_block_budget(self, long_config, monkeypatch):
        monkeypatch.setattr(random_walk, "MAX_CELLS_PER_BLOCK", 1000)
        src = RecordingSource(4)
        run_simulation(long_config, src, chunk_size=3)
        assert src.drawn == 2 * 3 * 50_000
        assert src.largest <= 2000


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize("overrides, match", [
        ({"initial_investment": 0.0}, "initial_investment"),
        ({"initial_investment": -5.0}, "initial_investment"),
        ({"horizon_days": -1}, "horizon_days"),
        ({"trial_count": 0}, "trial_count"),
        ({"current_price": 0.0}, "current_price"),
        ({"daily_volatility": -0.01}, "daily_volatility"),
        ({"mean_daily_return": float("nan")}, "finite"),
        ({"current_price": float("inf")}, "finite"),
        ({"trial_count": 10.5}, "integer"),
        ({"horizon_days": True}, "integer"),
    ])
    def test_invalid_config(self, overrides, match):
        config = dataclasses.replace(SimulationConfig(), **overrides)
        with pytest.raises(InvalidConfigError, match=match):
            run_simulation(config, seed=0)

    def test_no_draws_before_validation_failure(self):
        config = SimulationConfig(trial_count=0)
        src = RecordingSource()
        with pytest.raises(InvalidConfigError):
            run_simulation(config, src)
        assert src.calls == 0

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            validate_config(SimulationConfig(current_price=-1.0))

    def test_valid_defaults(self, default_config):
        validate_config(default_config)

    @pytest.mark.parametrize("kwargs", [{"max_workers": 0}, {"chunk_size": 0}])
    def test_invalid_execution_options(self, small_config, kwargs):
        with pytest.raises(InvalidConfigError):
            run_simulation(small_config, **kwargs)

    def test_config_not_mutated(self, small_config):
        before = dataclasses.asdict(small_config)
        run_simulation(small_config, seed=1)
        assert dataclasses.asdict(small_config) == before


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class TestCancellation:
    def test_cancel_before_start(self, small_config):
        event = threading.Event()
        event.set()
        with pytest.raises(SimulationCancelledError):
            run_simulation(small_config, seed=1, cancel_event=event)

    def test_cancel_mid_run(self, small_config):
        event = threading.Event()
        src = RecordingSource(on_call=lambda s: event.set())
        with pytest.raises(SimulationCancelledError):
            run_simulation(small_config, src, chunk_size=100, cancel_event=event)
        assert src.calls == 1

    def test_cancel_in_parallel_run(self, small_config):
        event = threading.Event()
        event.set()
        with pytest.raises(SimulationCancelledError):
            run_simulation(small_config, seed=1, chunk_size=100, max_workers=2,
                           cancel_event=event)

    def test_next_run_unaffected(self, small_config):
        event = threading.Event()
        event.set()
        with pytest.raises(SimulationCancelledError):
            run_simulation(small_config, seed=1, cancel_event=event)
        s = run_simulation(small_config, seed=1)
        assert s.trial_count == small_config.trial_count

    def test_cancelled_is_simulation_error(self):
        assert issubclass(SimulationCancelledError, SimulationError)
