"""System endpoints: health check."""

from fastapi import APIRouter, Depends

from stockrisk.web.cache import CacheService
from stockrisk.web.dependencies import get_cache
from stockrisk.web.schemas import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health(cache: CacheService = Depends(get_cache)):
    """API health check."""
    return HealthResponse(status="ok", cached_results=len(cache))
