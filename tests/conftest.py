"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from stockrisk.analysis.sim_models import ResultsSummary, SimulationConfig


def make_summary(prob_profit=0.5, prob_loss_10=0.1, initial_investment=100_000.0, **overrides):
    """Hand-built ResultsSummary for classifier and recommendation tests."""
    fields = dict(
        mean=initial_investment,
        std=5_000.0,
        p5=92_000.0,
        p25=97_000.0,
        p50=100_000.0,
        p75=104_000.0,
        p95=110_000.0,
        var_5pct=initial_investment - 92_000.0,
        expected_return=0.0,
        prob_profit=prob_profit,
        prob_loss_10=prob_loss_10,
        current_price=100.0,
        share_count=initial_investment / 100.0,
        initial_investment=initial_investment,
        trial_count=1000,
        sample=np.array([initial_investment]),
    )
    fields.update(overrides)
    return ResultsSummary(**fields)


@pytest.fixture
def default_config():
    """Reference parameters: $100k in a ~$597 stock over 30 trading days."""
    return SimulationConfig()


@pytest.fixture
def small_config():
    """Fast config for tests that only need a realistic sample."""
    return SimulationConfig(
        initial_investment=100_000.0,
        horizon_days=20,
        trial_count=1000,
        mean_daily_return=0.0005,
        daily_volatility=0.015,
        current_price=250.0,
    )


@pytest.fixture
def flat_config():
    """Zero drift and zero volatility: every path stays at the current price."""
    return SimulationConfig(
        initial_investment=100_000.0,
        horizon_days=1,
        trial_count=3,
        mean_daily_return=0.0,
        daily_volatility=0.0,
        current_price=100.0,
    )


@pytest.fixture
def summary_factory():
    return make_summary
