"""
Forecast API routes.

Endpoints:
    GET  /api/forecast/variants   - Available forecast variants and labels
    POST /api/forecast/predict    - Forward forecast for one variant
    POST /api/forecast/backtest   - Hold-out backtest with metrics
    POST /api/forecast/compare    - All variants side by side
    POST /api/forecast/signal     - BUY / SELL / HOLD trading signal
"""

import logging
from typing import Dict, List

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_engine
from api.routes._bars import to_bars
from api.schemas import (
    BacktestRequest,
    BacktestResponse,
    CompareRequest,
    CompareResponse,
    ForecastRequest,
    ForecastResponse,
    SignalRequest,
    SignalResponse,
)
from src.forecasting.comparison import best_variant
from src.forecasting.generators import VARIANT_PARAMS, ForecastVariant
from src.forecasting.metrics import calculate_metrics

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/variants")
async def list_variants() -> List[Dict]:
    """Return every variant with its dashboard label and confidence floor."""
    return [
        {
            "variant": v.value,
            "label": v.label,
            "confidence_floor": VARIANT_PARAMS[v].confidence_floor,
            "confidence_decay": VARIANT_PARAMS[v].confidence_decay,
        }
        for v in ForecastVariant
    ]


@router.post("/predict", response_model=ForecastResponse)
async def predict(req: ForecastRequest):
    """Generate a forward forecast from the posted history."""
    engine = get_engine()
    variant = ForecastVariant.parse(req.variant)
    horizon = engine.config.forecast.horizon_days if req.horizon_days is None else req.horizon_days

    predictions = await run_in_threadpool(
        engine.forecast, to_bars(req.bars), variant, horizon, req.seed
    )
    return ForecastResponse(
        variant=variant.value,
        label=variant.label,
        horizon_days=horizon,
        predictions=[p.to_dict() for p in predictions],
    )


@router.post("/backtest", response_model=BacktestResponse)
async def backtest(req: BacktestRequest):
    """Backtest a variant against the trailing window of the history."""
    engine = get_engine()
    result = await run_in_threadpool(
        engine.backtest, to_bars(req.bars), req.variant, req.test_days, req.seed
    )
    payload = result.to_dict()
    payload["metrics"] = calculate_metrics(result.predictions).to_dict()
    return BacktestResponse(**payload)


@router.post("/compare", response_model=CompareResponse)
async def compare(req: CompareRequest):
    """Forecast, backtest and score each variant concurrently."""
    engine = get_engine()
    reports = await run_in_threadpool(
        engine.compare,
        to_bars(req.bars),
        req.horizon_days,
        req.test_days,
        req.seed,
        req.variants,
    )

    items = {}
    for variant, report in reports.items():
        data = report.to_dict()
        if data["backtest"] is not None:
            data["backtest"]["metrics"] = data["metrics"]
        items[variant.value] = data

    def _best(metric: str, higher_is_better: bool = True):
        winner = best_variant(reports, metric, higher_is_better)
        return winner.value if winner else None

    return CompareResponse(
        reports=items,
        best_by_r2=_best("r2"),
        best_by_mae=_best("mae", higher_is_better=False),
        best_by_sharpe=_best("sharpe_ratio"),
    )


@router.post("/signal", response_model=SignalResponse)
async def signal(req: SignalRequest):
    """BUY / SELL / HOLD from the three forecasts, sentiment and technicals."""
    engine = get_engine()
    result = await run_in_threadpool(
        engine.signal, to_bars(req.bars), req.sentiment, req.horizon_days, req.seed
    )
    return SignalResponse(**result.to_dict())
