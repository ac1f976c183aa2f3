"""Monte Carlo simulation models package.

Data model shared by the path generator, the aggregator and the summarizer:
- SimulationConfig: validated run parameters (never mutated by the engine)
- ResultsSummary: read-only statistics over the full sorted sample
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np

# Fractional ranks reported by the summarizer (nearest-rank, no interpolation)
PERCENTILE_LEVELS: tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters for one single-asset Monte Carlo run."""

    initial_investment: float = 100_000.0
    horizon_days: int = 30
    trial_count: int = 10_000
    mean_daily_return: float = 0.0006
    daily_volatility: float = 0.012
    current_price: float = 596.56

    @property
    def share_count(self) -> float:
        return self.initial_investment / self.current_price

    @classmethod
    def from_settings(cls, settings) -> "SimulationConfig":
        """Build the default config from application settings."""
        return cls(
            initial_investment=settings.default_initial_investment,
            horizon_days=settings.default_horizon_days,
            trial_count=settings.default_trial_count,
            mean_daily_return=settings.default_mean_daily_return,
            daily_volatility=settings.default_daily_volatility,
            current_price=settings.default_current_price,
        )


@dataclass(frozen=True)
class ResultsSummary:
    """Descriptive and risk statistics derived from one run."""

    mean: float
    std: float
    p5: float
    p25: float
    p50: float
    p75: float
    p95: float
    var_5pct: float          # currency amount: initial_investment - p5
    expected_return: float   # mean - initial_investment
    prob_profit: float       # fraction strictly above initial_investment
    prob_loss_10: float      # fraction strictly below 0.9 * initial_investment
    current_price: float
    share_count: float
    initial_investment: float
    trial_count: int
    sample: np.ndarray = field(repr=False, compare=False)

    @property
    def percentiles(self) -> dict[str, float]:
        return {
            "p5": self.p5,
            "p25": self.p25,
            "p50": self.p50,
            "p75": self.p75,
            "p95": self.p95,
        }

    def relative_to_investment(self) -> dict[str, float]:
        """Percentiles, VaR and expected return as fractions of the investment."""
        base = self.initial_investment
        rel = {key: value / base - 1.0 for key, value in self.percentiles.items()}
        rel["var_5pct"] = self.var_5pct / base
        rel["expected_return"] = self.expected_return / base
        return rel

    def sample_preview(self, limit: int = 1000) -> list[float]:
        """First ``limit`` values of the sorted sample, for charting."""
        return [float(v) for v in self.sample[:limit]]

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe mapping of every statistic (the sample is excluded)."""
        return {
            "mean": self.mean,
            "std": self.std,
            **self.percentiles,
            "var_5pct": self.var_5pct,
            "expected_return": self.expected_return,
            "prob_profit": self.prob_profit,
            "prob_loss_10": self.prob_loss_10,
            "current_price": self.current_price,
            "share_count": self.share_count,
            "initial_investment": self.initial_investment,
            "trial_count": self.trial_count,
        }


__all__ = ["PERCENTILE_LEVELS", "SimulationConfig", "ResultsSummary"]
