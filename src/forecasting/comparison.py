"""
Side-by-side comparison of the forecast variants.

Each variant's forecast → backtest → metrics pipeline is an independent
task.  Tasks run on a thread pool, each with its own generator spawned
from one ``SeedSequence``; the per-variant reports are merged only after
every task has finished.  Child seeds are assigned by variant order, so
results for a given seed do not depend on thread scheduling.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices
from src.forecasting.backtest import (
    MAX_TEST_FRACTION,
    BacktestHarness,
    BacktestResult,
    max_test_days,
)
from src.forecasting.generators import ForecastVariant, Prediction, generate_forecast
from src.forecasting.metrics import Metrics, calculate_metrics
from src.utils.validation import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass
class VariantReport:
    """Forecast, backtest and metrics for one variant."""

    variant: ForecastVariant
    forecast: List[Prediction] = field(default_factory=list)
    backtest: Optional[BacktestResult] = None
    metrics: Metrics = field(default_factory=Metrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "label": self.variant.label,
            "forecast": [p.to_dict() for p in self.forecast],
            "backtest": self.backtest.to_dict() if self.backtest else None,
            "metrics": self.metrics.to_dict(),
        }


def default_test_days(n_points: int, cap: int = 30) -> int:
    """Dashboard default test window: min(cap, len // 3), at least 1."""
    return max(1, min(cap, max_test_days(n_points)))


def _evaluate_variant(
    series: PriceSeries,
    variant: ForecastVariant,
    horizon_days: int,
    test_days: int,
    seed_seq: np.random.SeedSequence,
    harness: BacktestHarness,
    anchor_date: Optional[date],
) -> VariantReport:
    forecast_rng, backtest_rng = (np.random.default_rng(s) for s in seed_seq.spawn(2))
    forecast = generate_forecast(
        series, horizon_days, forecast_rng, variant, anchor_date=anchor_date
    )
    backtest = harness.run(series, variant, test_days, backtest_rng, anchor_date)
    return VariantReport(
        variant=variant,
        forecast=forecast,
        backtest=backtest,
        metrics=calculate_metrics(backtest.predictions),
    )


def compare_variants(
    series: PriceSeries,
    horizon_days: int,
    test_days: Optional[int] = None,
    seed: Optional[int] = None,
    variants: Optional[Sequence[Union[str, ForecastVariant]]] = None,
    max_workers: Optional[int] = None,
    harness: Optional[BacktestHarness] = None,
    anchor_date: Optional[date] = None,
) -> Dict[ForecastVariant, VariantReport]:
    """Run every requested variant concurrently and merge the reports.

    Args:
        series: Historical prices, oldest first.
        horizon_days: Forward forecast length.
        test_days: Backtest window (default ``min(30, len // 3)``).
        seed: Root seed; None draws fresh OS entropy.
        variants: Subset of variants (default all three).
        max_workers: Thread count (default one per variant).
        harness: Backtest harness to use (default ``BacktestHarness()``).
        anchor_date: Date of the last observation; required when
            ``series`` carries no dates.

    Returns:
        Reports keyed by variant, in the requested order.

    Raises:
        InvalidParameterError: If the history is too short to backtest,
            or propagated from any task.
    """
    chosen = [ForecastVariant.parse(v) for v in (variants or list(ForecastVariant))]
    n = len(close_prices(series))
    if max_test_days(n) < 1:
        raise InvalidParameterError(
            "series",
            f"<{n} points>",
            f"comparison needs at least {MAX_TEST_FRACTION} points to backtest",
        )
    if test_days is None:
        test_days = default_test_days(n)
    harness = harness or BacktestHarness()

    children = np.random.SeedSequence(seed).spawn(len(chosen))
    with ThreadPoolExecutor(max_workers=max_workers or len(chosen)) as executor:
        futures = {
            variant: executor.submit(
                _evaluate_variant,
                series, variant, horizon_days, test_days, child, harness, anchor_date,
            )
            for variant, child in zip(chosen, children)
        }
        reports = {variant: future.result() for variant, future in futures.items()}

    logger.info(
        "Variant comparison: "
        + ", ".join(
            f"{v.label} r2={r.metrics.r2:.3f} mape={r.metrics.mape:.2f}%"
            for v, r in reports.items()
        )
    )
    return reports


def best_variant(
    reports: Dict[ForecastVariant, VariantReport],
    metric: str,
    higher_is_better: bool = True,
) -> Optional[ForecastVariant]:
    """Variant with the best value of ``metric``; ties keep the earlier one.

    Args:
        reports: Output of ``compare_variants``.
        metric: ``Metrics`` attribute name, e.g. ``"r2"`` or ``"mae"``.
        higher_is_better: False for error metrics.

    Returns:
        The winning variant, or None when ``reports`` is empty.
    """
    best: Optional[ForecastVariant] = None
    best_value = 0.0
    for variant, report in reports.items():
        value = getattr(report.metrics, metric)
        better = value > best_value if higher_is_better else value < best_value
        if best is None or better:
            best, best_value = variant, value
    return best
