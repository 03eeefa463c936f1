"""
Risk API routes.

Endpoints:
    POST /api/risk/monte-carlo   - Terminal-price Monte Carlo simulation
    POST /api/risk/var           - Historical VaR / CVaR
    POST /api/risk/profile       - Realised risk profile of a history
"""

import logging

import numpy as np
from fastapi import APIRouter, HTTPException
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_engine
from api.routes._bars import to_bars
from api.schemas import (
    RiskProfileRequest,
    RiskProfileResponse,
    SimulationRequest,
    SimulationResponse,
    VarRequest,
    VarResponse,
)
from src.forecasting.estimators import simple_returns
from src.risk.profile import compute_risk_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/monte-carlo", response_model=SimulationResponse)
async def monte_carlo(req: SimulationRequest):
    """Run a Monte Carlo simulation.

    With ``bars`` the drift and volatility come from the history's
    risk profile; otherwise the explicit parameters are used directly.
    """
    engine = get_engine()
    mc = engine.config.monte_carlo
    days = mc.simulation_days if req.simulation_days is None else req.simulation_days
    trials = mc.num_simulations if req.num_simulations is None else req.num_simulations
    timeout = req.timeout_seconds if req.timeout_seconds is not None else mc.timeout_seconds

    if req.bars:
        result = await run_in_threadpool(
            engine.simulate, to_bars(req.bars), days, trials, req.seed, timeout
        )
    elif None not in (req.current_price, req.daily_drift, req.daily_volatility):
        result = await run_in_threadpool(
            engine.simulator.run,
            req.current_price,
            req.daily_drift,
            req.daily_volatility,
            days,
            trials,
            rng=np.random.default_rng(req.seed),
            timeout=timeout,
        )
    else:
        raise HTTPException(
            status_code=422,
            detail="Provide bars or current_price, daily_drift and daily_volatility",
        )

    return SimulationResponse(**result.to_dict())


@router.post("/var", response_model=VarResponse)
async def value_at_risk(req: VarRequest):
    """VaR / CVaR at each requested confidence level."""
    engine = get_engine()
    if req.returns is not None:
        returns = np.asarray(req.returns, dtype=float)
    elif req.bars:
        returns = simple_returns(to_bars(req.bars))
    else:
        raise HTTPException(status_code=422, detail="Provide bars or returns")

    results = engine.tail_risk.analyze(returns, req.confidence_levels)
    return VarResponse(
        results=[r.to_dict() for r in results],
        sample_size=len(returns),
    )


@router.post("/profile", response_model=RiskProfileResponse)
async def risk_profile(req: RiskProfileRequest):
    """Annualized return, volatility, Sharpe, Sortino, drawdown and VaR."""
    engine = get_engine()
    rf = (
        req.risk_free_rate
        if req.risk_free_rate is not None
        else engine.config.risk_profile.risk_free_rate
    )
    profile = await run_in_threadpool(compute_risk_profile, to_bars(req.bars), rf)
    return RiskProfileResponse(**profile.to_dict())
