"""
Trend / volatility estimation over historical close prices.

These statistics drive both the forecast generators and the Monte Carlo
simulator.  All functions are pure and return finite values for any
input; short series degrade to 0 instead of raising.

Functions:
    simple_returns: Period-over-period simple returns.
    volatility: Unannualized standard deviation of simple returns.
    linear_trend: OLS slope of close against the sequential time index.
    window_return: Total return over a trailing window.
"""

from __future__ import annotations

import logging

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices

logger = logging.getLogger(__name__)


def simple_returns(series: PriceSeries) -> np.ndarray:
    """Compute ``(p[i] - p[i-1]) / p[i-1]`` for consecutive prices.

    Pairs whose previous price is 0 are dropped so the result never
    contains inf / NaN.

    Args:
        series: Price series (bars, floats, array or pandas object).

    Returns:
        Array of length <= len(series) - 1.
    """
    prices = close_prices(series)
    if len(prices) < 2:
        return np.empty(0, dtype=float)

    prev = prices[:-1]
    curr = prices[1:]
    mask = prev != 0
    return (curr[mask] - prev[mask]) / prev[mask]


def volatility(series: PriceSeries) -> float:
    """Population standard deviation of simple returns (not annualized).

    Returns:
        0.0 for fewer than 2 points or a constant series.
    """
    returns = simple_returns(series)
    if len(returns) == 0:
        return 0.0
    return float(np.std(returns))


def linear_trend(series: PriceSeries) -> float:
    """Ordinary-least-squares slope of close price vs index 0..n-1.

    Returns:
        Slope in price units per period; 0.0 for fewer than 2 points.
    """
    prices = close_prices(series)
    n = len(prices)
    if n < 2:
        return 0.0

    x = np.arange(n, dtype=float)
    x_centered = x - x.mean()
    denom = float(np.sum(x_centered ** 2))
    if denom == 0:
        return 0.0
    return float(np.sum(x_centered * (prices - prices.mean())) / denom)


def window_return(series: PriceSeries, window: int) -> float:
    """Total simple return across the trailing ``window`` points.

    ``(last - first) / first`` where ``first`` is the oldest point in the
    window.  Uses the whole series when it is shorter than ``window``.

    Returns:
        0.0 for fewer than 2 points or a zero starting price.
    """
    prices = close_prices(series)[-window:]
    if len(prices) < 2 or prices[0] == 0:
        return 0.0
    return float((prices[-1] - prices[0]) / prices[0])
