"""Simulation API endpoints."""

import logging

from fastapi import APIRouter, Depends

from stockrisk.analysis.risk import (
    annualized_return,
    annualized_volatility,
    classify_risk,
    recommend,
)
from stockrisk.analysis.simulation import run_simulation
from stockrisk.config import Settings
from stockrisk.exceptions import InvalidConfigError
from stockrisk.web.cache import CacheService
from stockrisk.web.dependencies import get_cache, get_settings
from stockrisk.web.schemas import ApiResponse, Meta, SimulationRequest, SimulationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulation", tags=["simulation"])


@router.post("", response_model=ApiResponse[SimulationResponse])
def create_simulation(
    request: SimulationRequest,
    settings: Settings = Depends(get_settings),
    cache: CacheService = Depends(get_cache),
):
    """Run a Monte Carlo simulation and return the risk report."""
    if request.trial_count > settings.max_trial_count:
        raise InvalidConfigError(
            f"trial_count {request.trial_count} exceeds the server limit of "
            f"{settings.max_trial_count}"
        )
    if request.trial_count * request.horizon_days > settings.max_path_cells:
        raise InvalidConfigError(
            f"trial_count x horizon_days = {request.trial_count * request.horizon_days} "
            f"exceeds the server limit of {settings.max_path_cells}"
        )

    # Only seeded runs are deterministic, so only they are cached
    cache_key = None
    if request.seed is not None:
        cache_key = f"simulation:{request.model_dump_json()}"
        cached = cache.get(cache_key)
        if cached:
            return ApiResponse(data=cached, meta=Meta(cached=True))

    config = request.to_config()
    summary = run_simulation(
        config,
        seed=request.seed,
        max_workers=settings.simulation_max_workers,
        chunk_size=settings.simulation_chunk_size,
    )

    result = SimulationResponse(
        summary=summary.to_dict(),
        relative=summary.relative_to_investment(),
        annualized_return=annualized_return(config.mean_daily_return),
        annualized_volatility=annualized_volatility(config.daily_volatility),
        risk=classify_risk(summary).to_dict(),
        recommendation=recommend(summary, config.horizon_days).to_dict(),
        sample_preview=summary.sample_preview(settings.sample_preview_size),
        seed=request.seed,
    )

    if cache_key is not None:
        cache.set(cache_key, result.model_dump())
    return ApiResponse(data=result)
