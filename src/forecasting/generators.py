"""
Synthetic forward price generators.

Three forecast variants share one stochastic recurrence and differ only
in their coefficients.  The dashboard labels them after neural network
families, but none of them is a trained model:

    Variant          Dashboard label   Character
    ───────────────  ────────────────  ───────────────────────────────────
    MOMENTUM         LSTM              trend drift + self-reinforcing move
    MEAN_REVERSION   GRU               short-window drift + pull to anchor
    BLENDED          Transformer       long + short drift + periodic term

Recurrence, for day i = 1..H starting from the last close P0:

    P_i = max(0, P_{i-1} * (1 + trend + short + shock + feedback + cycle))

Randomness comes exclusively from the ``numpy.random.Generator`` passed
in by the caller, so a fixed seed reproduces a forecast exactly and
concurrent calls never share state.

Example:
    >>> rng = np.random.default_rng(7)
    >>> preds = generate_forecast(bars, 30, rng, ForecastVariant.BLENDED)
    >>> preds[0].confidence
    0.99
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices, last_date
from src.forecasting.estimators import linear_trend, volatility, window_return
from src.utils.validation import InvalidParameterError, require_int_range

logger = logging.getLogger(__name__)


class ForecastVariant(str, Enum):
    """Forecast generator variants."""

    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    BLENDED = "blended"

    @property
    def label(self) -> str:
        """Dashboard model label for this variant."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, "ForecastVariant"]) -> "ForecastVariant":
        """Resolve a variant from its value, member name or dashboard label.

        Raises:
            InvalidParameterError: For unknown names.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        if key in _ALIASES:
            return _ALIASES[key]
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise InvalidParameterError(
            "variant", value, f"expected one of {[m.value for m in cls]}"
        )


_LABELS: Dict[ForecastVariant, str] = {
    ForecastVariant.MOMENTUM: "LSTM",
    ForecastVariant.MEAN_REVERSION: "GRU",
    ForecastVariant.BLENDED: "Transformer",
}

_ALIASES: Dict[str, ForecastVariant] = {
    label.lower(): variant for variant, label in _LABELS.items()
}


@dataclass(frozen=True)
class VariantParams:
    """Recurrence coefficients for one forecast variant.

    Attributes:
        trend_weight: Weight on the OLS slope expressed as a fraction of P0.
        short_window: Trailing window (points) for the short-term return.
        short_weight: Weight on the short-term window return.
        shock_bias: Centre subtracted from the uniform draw u ~ U[0, 1).
        shock_scale: Multiplier on volatility for the random shock.
        momentum_weight: Weight on (P - P0) / P0, pushes away from P0.
        reversion_weight: Weight on (P0 - P) / P0, pulls back to P0.
        cycle_amplitude: Amplitude of the sin(i / cycle_period) term.
        cycle_period: Period divisor of the periodic term.
        confidence_floor: Lowest confidence the variant reports.
        confidence_decay: Confidence lost across the whole horizon.
    """

    trend_weight: float = 0.0
    short_window: int = 0
    short_weight: float = 0.0
    shock_bias: float = 0.5
    shock_scale: float = 1.0
    momentum_weight: float = 0.0
    reversion_weight: float = 0.0
    cycle_amplitude: float = 0.0
    cycle_period: float = 5.0
    confidence_floor: float = 0.5
    confidence_decay: float = 0.5


VARIANT_PARAMS: Dict[ForecastVariant, VariantParams] = {
    ForecastVariant.MOMENTUM: VariantParams(
        trend_weight=0.8,
        shock_bias=0.48,
        shock_scale=0.8,
        momentum_weight=0.05,
        confidence_floor=0.6,
        confidence_decay=0.4,
    ),
    ForecastVariant.MEAN_REVERSION: VariantParams(
        short_window=20,
        short_weight=0.015,
        shock_bias=0.5,
        shock_scale=0.7,
        reversion_weight=0.1,
        confidence_floor=0.65,
        confidence_decay=0.35,
    ),
    ForecastVariant.BLENDED: VariantParams(
        trend_weight=0.6,
        short_window=10,
        short_weight=0.01,
        shock_bias=0.49,
        shock_scale=0.6,
        cycle_amplitude=0.002,
        cycle_period=5.0,
        confidence_floor=0.7,
        confidence_decay=0.3,
    ),
}


@dataclass
class Prediction:
    """One forecast day.

    Attributes:
        date: Calendar date of the forecast point.
        predicted_price: Generated price (never negative).
        confidence: Reliability in [variant floor, 1].
        actual_price: Withheld close, set only on backtest output.
    """

    date: date
    predicted_price: float
    confidence: float
    actual_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "predicted_price": round(self.predicted_price, 4),
            "actual_price": (
                round(self.actual_price, 4) if self.actual_price is not None else None
            ),
            "confidence": round(self.confidence, 4),
        }


def confidence_at(step: int, horizon: int, params: VariantParams) -> float:
    """Linear confidence decay from 1.0 towards the variant floor."""
    return max(params.confidence_floor, 1.0 - (step / horizon) * params.confidence_decay)


def _run_recurrence(
    series: PriceSeries,
    horizon_days: int,
    rng: np.random.Generator,
    params: VariantParams,
    anchor_date: Optional[date],
) -> List[Prediction]:
    horizon_days = require_int_range("horizon_days", horizon_days, minimum=1)
    prices = close_prices(series)
    if len(prices) == 0:
        logger.warning("Empty price series, returning no predictions")
        return []

    start = anchor_date or last_date(series)
    if start is None:
        raise InvalidParameterError(
            "anchor_date", None, "required when the series carries no dates"
        )

    p0 = float(prices[-1])
    sigma = volatility(prices)
    trend = params.trend_weight * linear_trend(prices) / p0 if p0 != 0 else 0.0
    short = (
        params.short_weight * window_return(prices, params.short_window)
        if params.short_window
        else 0.0
    )
    drift = trend + short

    draws = rng.random(horizon_days)

    predictions: List[Prediction] = []
    price = p0
    for i in range(1, horizon_days + 1):
        step = drift + (draws[i - 1] - params.shock_bias) * sigma * params.shock_scale
        if p0 != 0:
            deviation = (price - p0) / p0
            step += params.momentum_weight * deviation
            step -= params.reversion_weight * deviation
        if params.cycle_amplitude:
            step += math.sin(i / params.cycle_period) * params.cycle_amplitude

        price = max(0.0, price * (1.0 + step))
        predictions.append(
            Prediction(
                date=start + timedelta(days=i),
                predicted_price=price,
                confidence=confidence_at(i, horizon_days, params),
            )
        )

    return predictions


def momentum_forecast(
    series: PriceSeries,
    horizon_days: int,
    rng: np.random.Generator,
    anchor_date: Optional[date] = None,
) -> List[Prediction]:
    """Trend drift plus a term that amplifies the path's own deviation."""
    return _run_recurrence(
        series, horizon_days, rng, VARIANT_PARAMS[ForecastVariant.MOMENTUM], anchor_date
    )


def mean_reversion_forecast(
    series: PriceSeries,
    horizon_days: int,
    rng: np.random.Generator,
    anchor_date: Optional[date] = None,
) -> List[Prediction]:
    """Short-window drift with a pull back towards the last actual close."""
    return _run_recurrence(
        series,
        horizon_days,
        rng,
        VARIANT_PARAMS[ForecastVariant.MEAN_REVERSION],
        anchor_date,
    )


def blended_forecast(
    series: PriceSeries,
    horizon_days: int,
    rng: np.random.Generator,
    anchor_date: Optional[date] = None,
) -> List[Prediction]:
    """Long and short drift, damped shock and a fixed sinusoidal term."""
    return _run_recurrence(
        series, horizon_days, rng, VARIANT_PARAMS[ForecastVariant.BLENDED], anchor_date
    )


_GENERATORS: Dict[ForecastVariant, Callable[..., List[Prediction]]] = {
    ForecastVariant.MOMENTUM: momentum_forecast,
    ForecastVariant.MEAN_REVERSION: mean_reversion_forecast,
    ForecastVariant.BLENDED: blended_forecast,
}


def generate_forecast(
    series: PriceSeries,
    horizon_days: int,
    rng: np.random.Generator,
    variant: Union[str, ForecastVariant] = ForecastVariant.MOMENTUM,
    anchor_date: Optional[date] = None,
) -> List[Prediction]:
    """Generate ``horizon_days`` synthetic future prices.

    Args:
        series: Historical prices, oldest first.
        horizon_days: Number of future days (>= 1).
        rng: Random source owned by the caller.
        variant: Variant enum member, value or dashboard label.
        anchor_date: Date of the last observation; required when
            ``series`` carries no dates.

    Returns:
        Exactly ``horizon_days`` predictions with strictly increasing
        dates, or an empty list for an empty series.

    Raises:
        InvalidParameterError: If ``horizon_days`` < 1 or the variant is
            unknown.
    """
    variant = ForecastVariant.parse(variant)
    predictions = _GENERATORS[variant](series, horizon_days, rng, anchor_date=anchor_date)
    if predictions:
        logger.debug(
            f"{variant.label} forecast: {len(predictions)} days, "
            f"{predictions[0].predicted_price:.2f} -> {predictions[-1].predicted_price:.2f}"
        )
    return predictions
