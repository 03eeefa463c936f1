"""
Tests for the trend / volatility estimators and bar conversions.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from src.data_pipeline.bars import (
    HistoricalBar,
    bars_from_frame,
    bars_to_frame,
    close_prices,
    last_date,
)
from src.forecasting.estimators import (
    linear_trend,
    simple_returns,
    volatility,
    window_return,
)


# ─── Estimators ──────────────────────────────────────────────────


class TestVolatility:
    def test_constant_series_is_zero(self, constant_bars):
        assert volatility(constant_bars) == 0.0

    def test_single_point_is_zero(self):
        assert volatility([42.0]) == 0.0

    def test_empty_is_zero(self):
        assert volatility([]) == 0.0

    def test_matches_population_std(self):
        prices = [100.0, 102.0, 99.0, 101.0, 103.0]
        returns = np.diff(prices) / np.array(prices[:-1])
        assert volatility(prices) == pytest.approx(np.std(returns))

    def test_finite_with_zero_price(self):
        assert np.isfinite(volatility([0.0, 10.0, 11.0, 0.0, 5.0]))


class TestLinearTrend:
    def test_perfect_line(self, linear_bars):
        assert linear_trend(linear_bars) == pytest.approx(1.0)

    def test_constant_series_is_zero(self, constant_bars):
        assert linear_trend(constant_bars) == 0.0

    def test_single_point_is_zero(self):
        assert linear_trend([5.0]) == 0.0

    def test_downward_line(self):
        assert linear_trend([10.0, 8.0, 6.0, 4.0]) == pytest.approx(-2.0)

    def test_accepts_pandas_series(self):
        assert linear_trend(pd.Series([1.0, 2.0, 3.0])) == pytest.approx(1.0)


class TestSimpleReturns:
    def test_values(self):
        np.testing.assert_allclose(simple_returns([100.0, 110.0, 99.0]), [0.1, -0.1])

    def test_zero_base_skipped(self):
        returns = simple_returns([0.0, 10.0, 20.0])
        assert len(returns) == 1
        assert returns[0] == pytest.approx(1.0)

    def test_short_series_empty(self):
        assert len(simple_returns([1.0])) == 0


class TestWindowReturn:
    def test_trailing_window(self):
        prices = [50.0, 100.0, 105.0, 110.0]
        assert window_return(prices, 3) == pytest.approx(0.1)

    def test_window_longer_than_series(self):
        assert window_return([100.0, 120.0], 20) == pytest.approx(0.2)

    def test_zero_start(self):
        assert window_return([0.0, 5.0], 5) == 0.0


# ─── Bars ────────────────────────────────────────────────────────


class TestBars:
    def test_from_frame_with_date_column(self):
        df = pd.DataFrame({
            "Date": pd.date_range("2024-03-01", periods=3, freq="D"),
            "Open": [1.0, 2.0, 3.0],
            "High": [1.5, 2.5, 3.5],
            "Low": [0.5, 1.5, 2.5],
            "Close": [1.2, 2.2, 3.2],
            "Volume": [10, 20, 30],
        })
        bars = bars_from_frame(df)
        assert len(bars) == 3
        assert bars[0].date == date(2024, 3, 1)
        assert bars[2].close == pytest.approx(3.2)
        assert bars[1].volume == 20.0

    def test_from_frame_with_index_dates(self):
        df = pd.DataFrame(
            {"close": [10.0, 11.0]},
            index=pd.date_range("2024-01-01", periods=2, freq="D"),
        )
        bars = bars_from_frame(df)
        assert bars[1].date == date(2024, 1, 2)
        assert bars[1].open == bars[1].close

    def test_missing_close_raises(self):
        with pytest.raises(ValueError):
            bars_from_frame(pd.DataFrame({"open": [1.0]}))

    def test_to_frame(self, linear_bars):
        df = bars_to_frame(linear_bars)
        assert list(df.columns) == ["open", "high", "low", "close", "volume"]
        assert len(df) == len(linear_bars)
        assert df.index.name == "date"

    def test_close_prices_accepts_every_form(self, linear_bars):
        expected = np.array([b.close for b in linear_bars])
        np.testing.assert_array_equal(close_prices(linear_bars), expected)
        np.testing.assert_array_equal(close_prices(list(expected)), expected)
        np.testing.assert_array_equal(close_prices(expected), expected)
        np.testing.assert_array_equal(close_prices(bars_to_frame(linear_bars)), expected)

    def test_last_date(self, linear_bars):
        assert last_date(linear_bars) == linear_bars[-1].date
        assert last_date([1.0, 2.0]) is None
        assert last_date(bars_to_frame(linear_bars)) == linear_bars[-1].date

    def test_bar_to_dict(self):
        bar = HistoricalBar(date(2024, 1, 5), 1.0, 2.0, 0.5, 1.5, 100.0)
        assert bar.to_dict()["date"] == "2024-01-05"
