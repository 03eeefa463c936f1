"""
Tests for the concurrent variant comparison.
"""

from datetime import date, timedelta

import pytest

from src.forecasting.comparison import (
    VariantReport,
    best_variant,
    compare_variants,
    default_test_days,
)
from src.forecasting.generators import ForecastVariant
from src.forecasting.metrics import Metrics
from src.utils.validation import InvalidParameterError


class TestCompareVariants:
    def test_all_variants_reported(self, random_walk_bars):
        reports = compare_variants(random_walk_bars, 10, seed=1)
        assert list(reports) == list(ForecastVariant)
        for variant, report in reports.items():
            assert report.variant is variant
            assert len(report.forecast) == 10
            assert len(report.backtest.predictions) == 30

    def test_seed_reproducible(self, random_walk_bars):
        a = compare_variants(random_walk_bars, 10, seed=42)
        b = compare_variants(random_walk_bars, 10, seed=42)
        for variant in ForecastVariant:
            assert [p.predicted_price for p in a[variant].forecast] == [
                p.predicted_price for p in b[variant].forecast
            ]
            assert a[variant].metrics == b[variant].metrics

    def test_result_independent_of_worker_count(self, random_walk_bars):
        a = compare_variants(random_walk_bars, 5, seed=3, max_workers=1)
        b = compare_variants(random_walk_bars, 5, seed=3, max_workers=3)
        for variant in ForecastVariant:
            assert a[variant].metrics == b[variant].metrics

    def test_subset_by_label(self, random_walk_bars):
        reports = compare_variants(random_walk_bars, 5, variants=["GRU"], seed=0)
        assert list(reports) == [ForecastVariant.MEAN_REVERSION]

    def test_explicit_test_days(self, random_walk_bars):
        reports = compare_variants(random_walk_bars, 5, test_days=12, seed=0)
        assert all(len(r.backtest.predictions) == 12 for r in reports.values())

    def test_invalid_variant(self, random_walk_bars):
        with pytest.raises(InvalidParameterError):
            compare_variants(random_walk_bars, 5, variants=["arima"])

    def test_task_error_propagates(self, random_walk_bars):
        with pytest.raises(InvalidParameterError):
            compare_variants(random_walk_bars, 0, seed=0)

    def test_to_dict(self, random_walk_bars):
        report = compare_variants(random_walk_bars, 3, seed=0)[ForecastVariant.BLENDED]
        data = report.to_dict()
        assert data["label"] == "Transformer"
        assert "r2" in data["metrics"]


class TestDefaultTestDays:
    @pytest.mark.parametrize("n, expected", [(250, 30), (60, 20), (3, 1), (1, 1)])
    def test_values(self, n, expected):
        assert default_test_days(n) == expected


class TestUndatedComparison:
    def test_float_list_with_anchor(self):
        anchor = date(2024, 3, 1)
        reports = compare_variants(
            [100.0 + i for i in range(60)], 5, seed=1, anchor_date=anchor
        )
        for report in reports.values():
            assert report.forecast[0].date == anchor + timedelta(days=1)
            assert len(report.backtest.predictions) == 20
            assert report.backtest.predictions[-1].date == anchor

    def test_short_history_rejected_before_fan_out(self, bar_factory):
        with pytest.raises(InvalidParameterError) as exc:
            compare_variants(bar_factory([100.0, 101.0]), 5, seed=1)
        assert exc.value.parameter == "series"


class TestBestVariant:
    def _reports(self):
        return {
            ForecastVariant.MOMENTUM: VariantReport(
                ForecastVariant.MOMENTUM, metrics=Metrics(mae=3.0, r2=0.9, sharpe_ratio=0.5)
            ),
            ForecastVariant.MEAN_REVERSION: VariantReport(
                ForecastVariant.MEAN_REVERSION, metrics=Metrics(mae=1.0, r2=0.4, sharpe_ratio=-0.2)
            ),
            ForecastVariant.BLENDED: VariantReport(
                ForecastVariant.BLENDED, metrics=Metrics(mae=2.0, r2=0.7, sharpe_ratio=1.4)
            ),
        }

    def test_highest_r2(self):
        assert best_variant(self._reports(), "r2") is ForecastVariant.MOMENTUM

    def test_lowest_mae(self):
        assert best_variant(self._reports(), "mae", higher_is_better=False) is (
            ForecastVariant.MEAN_REVERSION
        )

    def test_highest_sharpe(self):
        assert best_variant(self._reports(), "sharpe_ratio") is ForecastVariant.BLENDED

    def test_negative_values_still_ranked(self):
        reports = self._reports()
        for r in reports.values():
            r.metrics.sharpe_ratio = -abs(r.metrics.sharpe_ratio) - 1
        assert best_variant(reports, "sharpe_ratio") is ForecastVariant.MEAN_REVERSION

    def test_empty(self):
        assert best_variant({}, "r2") is None
