"""
Forecast accuracy and risk metrics.

Error metrics (MAE, RMSE, MAPE, R²) use only predictions that carry an
actual price.  Return-based metrics (Sharpe, volatility, max drawdown)
are computed on the predicted path itself, treating the forecast as if
it were a price series.

Every ratio is guarded: a zero denominator yields an explicit 0 and no
NaN or Infinity ever reaches the caller.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence

import numpy as np

from src.forecasting.generators import Prediction

logger = logging.getLogger(__name__)

TRADING_DAYS = 252


@dataclass
class Metrics:
    """Accuracy and risk statistics for one forecast.

    Attributes:
        mae: Mean absolute error.
        rmse: Root mean squared error.
        mape: Mean absolute percentage error (percent).
        r2: Coefficient of determination.
        sharpe_ratio: Annualized mean / std of predicted returns.
        volatility: Annualized std of predicted returns (percent).
        max_drawdown: Largest peak-to-trough decline of the path (percent).
    """

    mae: float = 0.0
    rmse: float = 0.0
    mape: float = 0.0
    r2: float = 0.0
    sharpe_ratio: float = 0.0
    volatility: float = 0.0
    max_drawdown: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mae": round(self.mae, 2),
            "rmse": round(self.rmse, 2),
            "mape": round(self.mape, 2),
            "r2": round(self.r2, 4),
            "sharpe_ratio": round(self.sharpe_ratio, 2),
            "volatility": round(self.volatility, 2),
            "max_drawdown": round(self.max_drawdown, 2),
        }


def _finite(value: float) -> float:
    return float(value) if math.isfinite(value) else 0.0


def r_squared(actual: np.ndarray, predicted: np.ndarray) -> float:
    """1 - SSres / SStot, defined as 0 when SStot is 0 or there is no data."""
    if len(actual) == 0:
        return 0.0
    ss_res = float(np.sum((actual - predicted) ** 2))
    ss_tot = float(np.sum((actual - np.mean(actual)) ** 2))
    if ss_tot == 0:
        return 0.0
    return 1.0 - ss_res / ss_tot


def path_returns(values: np.ndarray) -> np.ndarray:
    """Simple returns of a path, skipping steps whose base is 0."""
    if len(values) < 2:
        return np.empty(0, dtype=float)
    prev = values[:-1]
    mask = prev != 0
    return (values[1:][mask] - prev[mask]) / prev[mask]


def max_drawdown(values: np.ndarray) -> float:
    """Largest (peak - value) / peak over the running peak, in percent."""
    if len(values) == 0:
        return 0.0
    peaks = np.maximum.accumulate(values)
    mask = peaks > 0
    if not mask.any():
        return 0.0
    drawdowns = (peaks[mask] - values[mask]) / peaks[mask] * 100
    return float(max(0.0, np.max(drawdowns)))


def calculate_metrics(predictions: Sequence[Prediction]) -> Metrics:
    """Compute accuracy and risk metrics for a forecast.

    Args:
        predictions: Forecast days; entries with ``actual_price`` set
            contribute to the error metrics.

    Returns:
        Metrics with every field finite.
    """
    paired = [p for p in predictions if p.actual_price is not None]
    actual = np.array([p.actual_price for p in paired], dtype=float)
    paired_pred = np.array([p.predicted_price for p in paired], dtype=float)

    mae = rmse = mape = r2 = 0.0
    if len(paired):
        errors = paired_pred - actual
        mae = float(np.mean(np.abs(errors)))
        rmse = float(np.sqrt(np.mean(errors ** 2)))

        nonzero = actual != 0
        if nonzero.any():
            mape = float(np.mean(np.abs(errors[nonzero]) / np.abs(actual[nonzero])) * 100)

        r2 = r_squared(actual, paired_pred)

    # Return metrics follow the predicted path across all entries
    predicted = np.array([p.predicted_price for p in predictions], dtype=float)
    returns = path_returns(predicted)

    sharpe = vol = 0.0
    if len(returns):
        mean_ret = float(np.mean(returns))
        std_ret = float(np.std(returns))
        if std_ret != 0:
            sharpe = mean_ret / std_ret * math.sqrt(TRADING_DAYS)
        vol = std_ret * math.sqrt(TRADING_DAYS) * 100

    metrics = Metrics(
        mae=_finite(mae),
        rmse=_finite(rmse),
        mape=_finite(mape),
        r2=_finite(r2),
        sharpe_ratio=_finite(sharpe),
        volatility=_finite(vol),
        max_drawdown=_finite(max_drawdown(predicted)),
    )
    logger.debug(f"Metrics over {len(paired)} paired points: {metrics.to_dict()}")
    return metrics
