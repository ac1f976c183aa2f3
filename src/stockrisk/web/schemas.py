"""Pydantic request/response schemas for the stockrisk API."""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from stockrisk.analysis.sim_models import SimulationConfig

T = TypeVar("T")


# --- Base schemas ---


class Meta(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    cached: bool = False


class ApiResponse(BaseModel, Generic[T]):
    data: T
    meta: Meta = Field(default_factory=Meta)


class ErrorResponse(BaseModel):
    error: dict[str, Any] = Field(
        description="Error details with code, message, and optional detail"
    )


# --- Simulation schemas ---


class SimulationRequest(BaseModel):
    initial_investment: float = Field(100_000.0, description="Amount invested (USD)")
    horizon_days: int = Field(30, description="Trading days to simulate forward")
    trial_count: int = Field(10_000, description="Number of Monte Carlo trials")
    mean_daily_return: float = Field(0.0006, description="Mean daily return")
    daily_volatility: float = Field(0.012, description="Daily return volatility")
    current_price: float = Field(596.56, description="Current asset price")
    seed: int | None = Field(None, description="Seed for a reproducible (cacheable) run")

    def to_config(self) -> SimulationConfig:
        return SimulationConfig(
            initial_investment=self.initial_investment,
            horizon_days=self.horizon_days,
            trial_count=self.trial_count,
            mean_daily_return=self.mean_daily_return,
            daily_volatility=self.daily_volatility,
            current_price=self.current_price,
        )


class SimulationSummary(BaseModel):
    mean: float
    std: float
    p5: float
    p25: float
    p50: float
    p75: float
    p95: float
    var_5pct: float = Field(description="Value-at-Risk (95%) as a currency amount")
    expected_return: float
    prob_profit: float
    prob_loss_10: float
    current_price: float
    share_count: float
    initial_investment: float
    trial_count: int


class RiskLevel(BaseModel):
    level: str = Field(description="LOW RISK, MEDIUM RISK or HIGH RISK")
    color: str
    message: str


class RecommendationData(BaseModel):
    action: str
    headline: str
    position_size_min: float
    position_size_max: float
    stop_loss_pct: float | None = None
    stop_loss_level: float | None = None
    profit_target: float | None = None
    review_after_days: int | None = None
    notes: list[str] = []


class SimulationResponse(BaseModel):
    summary: SimulationSummary
    relative: dict[str, float] = Field(
        description="Percentiles, VaR and expected return as fractions of the investment"
    )
    annualized_return: float
    annualized_volatility: float
    risk: RiskLevel
    recommendation: RecommendationData
    sample_preview: list[float] = Field(
        description="Lowest values of the sorted sample, for charting"
    )
    seed: int | None = None


# --- System schemas ---


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "stockrisk-api"
    cached_results: int = 0
