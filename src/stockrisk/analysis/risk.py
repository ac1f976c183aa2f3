"""Risk classification and investment recommendation.

Pure functions of a ResultsSummary. Thresholds are fixed constants.
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from typing import Any

from stockrisk.analysis.sim_models import ResultsSummary

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TRADING_DAYS_PER_YEAR = 252

LOW_RISK_MIN_PROB = 0.65
MEDIUM_RISK_MIN_PROB = 0.50

PROCEED_MIN_PROB = 0.60
CAUTION_MIN_PROB = 0.45

PROCEED_STOP_LOSS = 0.08
CAUTION_STOP_LOSS = 0.05


@dataclass(frozen=True)
class RiskAssessment:
    level: str     # LOW RISK / MEDIUM RISK / HIGH RISK
    color: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Recommendation:
    action: str                        # PROCEED / PROCEED WITH CAUTION / RECONSIDER
    headline: str
    position_size_min: float
    position_size_max: float
    stop_loss_pct: float | None = None
    stop_loss_level: float | None = None
    profit_target: float | None = None
    review_after_days: int | None = None
    notes: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["notes"] = list(self.notes)
        return data


def classify_risk(summary: ResultsSummary) -> RiskAssessment:
    """Map probability of profit to a risk level.

    p >= 0.65 -> LOW RISK, 0.50 <= p < 0.65 -> MEDIUM RISK, else HIGH RISK.
    """
    p = summary.prob_profit
    if p >= LOW_RISK_MIN_PROB:
        return RiskAssessment(
            level="LOW RISK",
            color="green",
            message="High probability of profit. Suitable for conservative investors.",
        )
    if p >= MEDIUM_RISK_MIN_PROB:
        return RiskAssessment(
            level="MEDIUM RISK",
            color="orange",
            message="Balanced risk-reward profile. Suitable for moderate investors.",
        )
    return RiskAssessment(
        level="HIGH RISK",
        color="red",
        message="Lower probability of profit. Only for aggressive investors.",
    )


def recommend(summary: ResultsSummary, horizon_days: int) -> Recommendation:
    """Position sizing and exit guidance derived from the simulated outcome.

    Tiers on probability of profit:
        - >= 0.60  PROCEED: full position, 8% stop-loss, partial profits at P75
        - >= 0.45  PROCEED WITH CAUTION: 50-75% position, 5% stop-loss,
                   review halfway through the horizon
        - else     RECONSIDER: 25-50% position at most
    """
    investment = summary.initial_investment
    p = summary.prob_profit

    if p >= PROCEED_MIN_PROB:
        stop_level = investment * (1 - PROCEED_STOP_LOSS)
        upside = summary.p75 / investment - 1
        return Recommendation(
            action="PROCEED",
            headline="Favorable risk-reward profile",
            position_size_min=investment,
            position_size_max=investment,
            stop_loss_pct=PROCEED_STOP_LOSS,
            stop_loss_level=stop_level,
            profit_target=summary.p75,
            notes=(
                "Position sizing: full investment acceptable for moderate-aggressive investors",
                f"Risk management: set stop-loss at {_pct(PROCEED_STOP_LOSS)} below entry "
                f"({_usd(stop_level)})",
                f"Profit taking: consider partial profits at {_usd(summary.p75)} ({_pct(upside, signed=True)})",
                "Monitoring: track performance weekly and adjust to market conditions",
            ),
        )

    if p >= CAUTION_MIN_PROB:
        stop_level = investment * (1 - CAUTION_STOP_LOSS)
        review = horizon_days // 2
        return Recommendation(
            action="PROCEED WITH CAUTION",
            headline="Balanced but uncertain",
            position_size_min=investment * 0.5,
            position_size_max=investment * 0.75,
            stop_loss_pct=CAUTION_STOP_LOSS,
            stop_loss_level=stop_level,
            review_after_days=review,
            notes=(
                f"Position sizing: consider reducing to {_usd(investment * 0.5)} - "
                f"{_usd(investment * 0.75)}",
                f"Risk management: tight stop-loss at {_pct(CAUTION_STOP_LOSS)} ({_usd(stop_level)})",
                "Diversification: allocate remaining capital to bonds or safer assets",
                f"Review: re-evaluate after {review} days",
            ),
        )

    return Recommendation(
        action="RECONSIDER",
        headline="High risk - reconsider this investment",
        position_size_min=investment * 0.25,
        position_size_max=investment * 0.5,
        notes=(
            f"Position sizing: reduce to {_usd(investment * 0.25)} - {_usd(investment * 0.5)} maximum",
            "Alternative strategy: wait for better market conditions or consider hedging",
            f"Risk tolerance: only for aggressive investors who can tolerate a "
            f"{_pct(summary.prob_loss_10)} chance of a 10.0% loss",
            "Exit plan: define clear exit criteria before entering the position",
        ),
    )


def annualized_volatility(daily_volatility: float, trading_days: int = TRADING_DAYS_PER_YEAR) -> float:
    """Scale daily volatility to annual using the sqrt-of-time rule."""
    return daily_volatility * math.sqrt(trading_days)


def annualized_return(mean_daily_return: float, trading_days: int = TRADING_DAYS_PER_YEAR) -> float:
    """Simple (non-compounded) annual drift: daily mean times trading days."""
    return mean_daily_return * trading_days


def _usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _pct(value: float, signed: bool = False) -> str:
    return f"{value * 100:+.1f}%" if signed else f"{value * 100:.1f}%"
