"""
StockScope API - FastAPI application entry point.

Run in development mode:
    uvicorn api.main:app --reload --port 8000

Swagger docs available at:
    http://localhost:8000/docs

The API is a thin JSON layer over the engine: clients post historical
bars, the engine computes, and nothing is persisted between requests.

    - Request body size limiting (5 MB default)
    - Global exception handlers (no stack traces leaked)
    - CORS origins from ENGINE_CORS_ORIGINS
"""

import logging
import os
import time
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_engine, get_startup_time, lifespan
from api.middleware import RequestSizeLimitMiddleware, register_exception_handlers
from api.routes import forecast, risk
from api.schemas import ConfigResponse, HealthCheckResponse
from src import __version__

logger = logging.getLogger(__name__)

# ─── App ──────────────────────────────────────────────────────────

app = FastAPI(
    title="StockScope API",
    description="Stock forecasting, backtesting and risk-simulation engine.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if os.getenv("ENGINE_ENV") != "production" else None,
    redoc_url="/redoc" if os.getenv("ENGINE_ENV") != "production" else None,
)

register_exception_handlers(app)

app.add_middleware(RequestSizeLimitMiddleware)

# ─── CORS ─────────────────────────────────────────────────────────

_cors_origins = os.getenv(
    "ENGINE_CORS_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _cors_origins],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

# ─── Routers ──────────────────────────────────────────────────────

app.include_router(forecast.router, prefix="/api/forecast", tags=["Forecast"])
app.include_router(risk.router, prefix="/api/risk", tags=["Risk"])


# ─── System Routes ────────────────────────────────────────────────


@app.get("/api/health", response_model=HealthCheckResponse)
async def health_check():
    """Liveness check; always returns 200 if the process is alive."""
    return HealthCheckResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(),
    )


@app.get("/api/config", response_model=ConfigResponse)
async def engine_config():
    """Effective engine defaults and where they were loaded from."""
    cfg = get_engine().config
    logger.debug(f"Config requested, uptime {time.time() - get_startup_time():.0f}s")
    return ConfigResponse(
        source=cfg.source,
        horizon_days=cfg.forecast.horizon_days,
        default_variant=cfg.forecast.default_variant,
        max_test_days=cfg.backtest.max_test_days,
        simulation_days=cfg.monte_carlo.simulation_days,
        num_simulations=cfg.monte_carlo.num_simulations,
        max_simulations=cfg.monte_carlo.max_simulations,
        visible_cap=cfg.monte_carlo.visible_cap,
        bins=cfg.monte_carlo.bins,
        shock=cfg.monte_carlo.shock,
        confidence_levels=cfg.tail_risk.confidence_levels,
        risk_free_rate=cfg.risk_profile.risk_free_rate,
    )
