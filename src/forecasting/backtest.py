"""
Hold-out Backtest Harness for the forecast generators.

Splits a price history into a training head and a withheld test tail,
runs a generator on the head with a horizon equal to the tail length,
and pairs every forecast day with the close it was trying to predict.

    ┌──────────────────────────────────────┬──────────────┐
    │            Train (L - T)             │   Test (T)   │
    └──────────────────────────────────────┴──────────────┘
                                           ↑ forecast starts here

The test window is capped at one third of the history.  Requests
outside [1, ⌊L/3⌋] are rejected rather than truncated, because a
shortened backtest silently misreports accuracy.

Classes:
    BacktestSummary: Hit-rate / average-error digest of a backtest.
    BacktestResult: Predictions plus split metadata.
    BacktestHarness: Runs backtests for any forecast variant.

Example:
    >>> harness = BacktestHarness()
    >>> result = harness.run(bars, "momentum", test_days=30,
    ...                      rng=np.random.default_rng(1))
    >>> print(f"hit rate: {result.summary.hit_rate:.1f}%")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices, last_date
from src.forecasting.generators import ForecastVariant, Prediction, generate_forecast
from src.utils.validation import InvalidParameterError, require_int_range

logger = logging.getLogger(__name__)

# Largest share of the history a test window may occupy
MAX_TEST_FRACTION = 3


def max_test_days(n_points: int) -> int:
    """Largest permitted test window for a history of ``n_points``."""
    return n_points // MAX_TEST_FRACTION


@dataclass
class BacktestSummary:
    """Digest of paired backtest errors.

    Attributes:
        paired: Number of predictions carrying an actual price.
        hit_rate: Percent of paired points within ``tolerance`` of actual.
        avg_abs_pct_error: Mean absolute percentage error (percent).
        tolerance: Relative error counted as a hit.
    """

    paired: int = 0
    hit_rate: float = 0.0
    avg_abs_pct_error: float = 0.0
    tolerance: float = 0.05

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paired": self.paired,
            "hit_rate": round(self.hit_rate, 2),
            "avg_abs_pct_error": round(self.avg_abs_pct_error, 2),
            "tolerance": self.tolerance,
        }


@dataclass
class BacktestResult:
    """Output of a single hold-out backtest.

    Attributes:
        variant: Generator that produced the predictions.
        test_days: Size of the withheld window.
        train_size: Number of points the generator saw.
        train_end: Date of the last training observation, if dated.
        predictions: ``test_days`` predictions with actual prices attached.
        summary: Hit-rate / average-error digest.
    """

    variant: ForecastVariant
    test_days: int
    train_size: int
    train_end: Optional[date] = None
    predictions: List[Prediction] = field(default_factory=list)
    summary: BacktestSummary = field(default_factory=BacktestSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "label": self.variant.label,
            "test_days": self.test_days,
            "train_size": self.train_size,
            "train_end": self.train_end.isoformat() if self.train_end else None,
            "predictions": [p.to_dict() for p in self.predictions],
            "summary": self.summary.to_dict(),
        }


def summarize_backtest(
    predictions: Sequence[Prediction], tolerance: float = 0.05
) -> BacktestSummary:
    """Share of forecasts landing within ``tolerance`` of the actual close.

    Points whose actual price is 0 are left out of both statistics.
    """
    paired = [
        p for p in predictions if p.actual_price is not None and p.actual_price != 0
    ]
    if not paired:
        return BacktestSummary(tolerance=tolerance)

    rel_errors = np.array(
        [abs(p.predicted_price - p.actual_price) / p.actual_price for p in paired]
    )
    return BacktestSummary(
        paired=len(paired),
        hit_rate=float(np.mean(rel_errors < tolerance) * 100),
        avg_abs_pct_error=float(np.mean(rel_errors) * 100),
        tolerance=tolerance,
    )


def _slice(series: PriceSeries, stop: int) -> PriceSeries:
    if hasattr(series, "iloc"):
        return series.iloc[:stop]
    return series[:stop]


class BacktestHarness:
    """Runs hold-out backtests of the forecast generators.

    Args:
        hit_tolerance: Relative error counted as a hit in the summary.

    Example:
        >>> harness = BacktestHarness(hit_tolerance=0.03)
        >>> preds = harness.run(bars, ForecastVariant.BLENDED, 20, rng).predictions
    """

    def __init__(self, hit_tolerance: float = 0.05) -> None:
        self.hit_tolerance = hit_tolerance

    def run(
        self,
        series: PriceSeries,
        variant: Union[str, ForecastVariant],
        test_days: int,
        rng: np.random.Generator,
        anchor_date: Optional[date] = None,
    ) -> BacktestResult:
        """Backtest one variant on the trailing ``test_days`` of ``series``.

        Args:
            series: Full history, oldest first.
            variant: Generator variant (enum, value or dashboard label).
            test_days: Withheld window, 1 <= test_days <= len(series) // 3.
            rng: Random source owned by the caller.
            anchor_date: Date of the last observation of ``series``; only
                used, and then required, when the series carries no dates.
                The training split ends ``test_days`` days earlier.

        Returns:
            BacktestResult whose predictions have length ``test_days``.

        Raises:
            InvalidParameterError: If ``test_days`` is outside the allowed
                range, or the series is undated and ``anchor_date`` is None.
        """
        variant = ForecastVariant.parse(variant)
        closes = close_prices(series)
        n = len(closes)
        limit = max_test_days(n)
        if limit < 1:
            raise InvalidParameterError(
                "test_days", test_days, f"history of {n} points is too short to backtest"
            )
        test_days = require_int_range("test_days", test_days, minimum=1, maximum=limit)

        train = _slice(series, n - test_days)
        test = closes[n - test_days:]

        train_end = last_date(train)
        if train_end is None:
            if anchor_date is None:
                raise InvalidParameterError(
                    "anchor_date", None, "required when the series carries no dates"
                )
            train_end = anchor_date - timedelta(days=test_days)

        predictions = generate_forecast(train, test_days, rng, variant, anchor_date=train_end)
        for i, pred in enumerate(predictions):
            if i < len(test):
                pred.actual_price = float(test[i])

        summary = summarize_backtest(predictions, self.hit_tolerance)
        logger.info(
            f"Backtest {variant.label}: train={n - test_days} test={test_days} "
            f"hit_rate={summary.hit_rate:.1f}% "
            f"avg_error={summary.avg_abs_pct_error:.2f}%"
        )

        return BacktestResult(
            variant=variant,
            test_days=test_days,
            train_size=n - test_days,
            train_end=train_end,
            predictions=predictions,
            summary=summary,
        )


def run_backtest(
    series: PriceSeries,
    variant: Union[str, ForecastVariant],
    test_days: int,
    rng: np.random.Generator,
    anchor_date: Optional[date] = None,
) -> List[Prediction]:
    """Functional shortcut returning only the paired predictions."""
    return BacktestHarness().run(series, variant, test_days, rng, anchor_date).predictions
