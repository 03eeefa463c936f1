"""
Historical risk profile of a price series.

Summary statistics over realised history, used both for display and to
seed the Monte Carlo simulator with drift / volatility:

    annualized_return   mean(r) * 252 * 100
    volatility          std(r) * sqrt(252) * 100
    sharpe_ratio        (mean(r) * 252 - rf) / (std(r) * sqrt(252))
    sortino_ratio       same numerator over downside deviation
    max_drawdown        largest decline from a running peak (percent)

Ratios with a zero denominator are reported as 0.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices
from src.forecasting.estimators import simple_returns
from src.forecasting.metrics import TRADING_DAYS, max_drawdown
from src.risk.tail_risk import compute_var

logger = logging.getLogger(__name__)

DEFAULT_RISK_FREE_RATE = 0.04


@dataclass
class RiskProfile:
    """Realised risk statistics of a price history.

    Attributes:
        annualized_return: Mean daily return x 252, in percent.
        volatility: Annualized return std, in percent.
        sharpe_ratio: Excess annual return over annual volatility.
        sortino_ratio: Excess annual return over annual downside deviation.
        max_drawdown: Largest peak-to-trough decline, in percent.
        var_95: Historical 95 % VaR in percent (None if sample too small).
        var_99: Historical 99 % VaR in percent (None if sample too small).
        cvar_95: Historical 95 % CVaR in percent.
        cvar_99: Historical 99 % CVaR in percent.
        observations: Number of returns used.
        drawdowns: Drawdown from running peak at every price, in percent.
    """

    annualized_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    var_95: Optional[float] = None
    var_99: Optional[float] = None
    cvar_95: Optional[float] = None
    cvar_99: Optional[float] = None
    observations: int = 0
    drawdowns: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        def _r(v: Optional[float]) -> Optional[float]:
            return round(v, 2) if v is not None else None

        return {
            "annualized_return": round(self.annualized_return, 2),
            "volatility": round(self.volatility, 2),
            "sharpe_ratio": round(self.sharpe_ratio, 2),
            "sortino_ratio": round(self.sortino_ratio, 2),
            "max_drawdown": round(self.max_drawdown, 2),
            "var_95": _r(self.var_95),
            "var_99": _r(self.var_99),
            "cvar_95": _r(self.cvar_95),
            "cvar_99": _r(self.cvar_99),
            "observations": self.observations,
            "drawdowns": [round(d, 4) for d in self.drawdowns],
        }


def drawdown_series(prices: np.ndarray) -> np.ndarray:
    """Percent drawdown from the running peak at each point (0 where peak <= 0)."""
    if len(prices) == 0:
        return np.empty(0, dtype=float)
    peaks = np.maximum.accumulate(prices)
    out = np.zeros(len(prices), dtype=float)
    mask = peaks > 0
    out[mask] = (peaks[mask] - prices[mask]) / peaks[mask] * 100
    return out


def compute_risk_profile(
    series: PriceSeries,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> RiskProfile:
    """Build a RiskProfile from a close-price history.

    Args:
        series: Historical prices, oldest first.
        risk_free_rate: Annual risk-free rate as a fraction (0.04 = 4 %).

    Returns:
        RiskProfile; all fields zero / None for fewer than 2 prices.
    """
    prices = close_prices(series)
    returns = simple_returns(prices)
    if len(returns) == 0:
        logger.info("Risk profile requested for fewer than 2 prices")
        return RiskProfile(drawdowns=drawdown_series(prices).tolist())

    mean_ret = float(np.mean(returns))
    std_ret = float(np.std(returns))
    annual_return = mean_ret * TRADING_DAYS
    annual_vol = std_ret * math.sqrt(TRADING_DAYS)

    downside = returns[returns < 0]
    downside_dev = float(np.sqrt(np.mean(downside ** 2))) if len(downside) else 0.0
    annual_downside = downside_dev * math.sqrt(TRADING_DAYS)

    sharpe = (annual_return - risk_free_rate) / annual_vol if annual_vol != 0 else 0.0
    sortino = (
        (annual_return - risk_free_rate) / annual_downside if annual_downside != 0 else 0.0
    )

    v95 = compute_var(returns, 95)
    v99 = compute_var(returns, 99)

    return RiskProfile(
        annualized_return=annual_return * 100,
        volatility=annual_vol * 100,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        max_drawdown=max_drawdown(prices),
        var_95=v95.var,
        var_99=v99.var,
        cvar_95=v95.cvar,
        cvar_99=v99.cvar,
        observations=len(returns),
        drawdowns=drawdown_series(prices).tolist(),
    )
