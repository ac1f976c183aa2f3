"""FastAPI application factory for the stockrisk API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockrisk.config import Settings
from stockrisk.exceptions import InvalidConfigError, NumericDegeneracyError
from stockrisk.web.cache import CacheService
from stockrisk.web.schemas import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: log startup and drop cached results on shutdown."""
    logger.info("Starting stockrisk API...")
    yield
    app.state.cache.clear()
    logger.info("stockrisk API shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="stockrisk API",
        description="Monte Carlo single-asset risk analysis - VaR, percentiles, probability of profit",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.cache = CacheService(ttl=settings.cache_ttl)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept"],
    )

    _register_exception_handlers(app)
    _register_routers(app)

    return app


def _register_exception_handlers(app: FastAPI):
    @app.exception_handler(InvalidConfigError)
    async def invalid_config_handler(request: Request, exc: InvalidConfigError):
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error={"code": "invalid_config", "message": str(exc)}
            ).model_dump(),
        )

    @app.exception_handler(NumericDegeneracyError)
    async def numeric_degeneracy_handler(request: Request, exc: NumericDegeneracyError):
        logger.error("Simulation failed on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error={"code": "numeric_degeneracy", "message": str(exc)}
            ).model_dump(),
        )


def _register_routers(app: FastAPI):
    """Register all API routers."""
    from stockrisk.web.routers.simulation import router as simulation_router
    from stockrisk.web.routers.system import router as system_router

    app.include_router(simulation_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")
