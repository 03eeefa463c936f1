"""
Tests for the synthetic forecast generators.
"""

from datetime import date, timedelta

import numpy as np
import pytest

from src.forecasting.generators import (
    VARIANT_PARAMS,
    ForecastVariant,
    blended_forecast,
    generate_forecast,
    mean_reversion_forecast,
    momentum_forecast,
)
from src.utils.validation import InvalidParameterError

ALL_VARIANTS = list(ForecastVariant)


class TestForecastShape:
    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_exact_horizon(self, random_walk_bars, rng, variant):
        preds = generate_forecast(random_walk_bars, 30, rng, variant)
        assert len(preds) == 30

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_dates_strictly_increasing(self, random_walk_bars, rng, variant):
        preds = generate_forecast(random_walk_bars, 20, rng, variant)
        assert preds[0].date == random_walk_bars[-1].date + timedelta(days=1)
        for a, b in zip(preds, preds[1:]):
            assert b.date > a.date

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_confidence_decays_within_bounds(self, random_walk_bars, rng, variant):
        preds = generate_forecast(random_walk_bars, 45, rng, variant)
        floor = VARIANT_PARAMS[variant].confidence_floor
        for a, b in zip(preds, preds[1:]):
            assert b.confidence <= a.confidence
        for p in preds:
            assert floor <= p.confidence <= 1.0
        assert preds[-1].confidence == pytest.approx(floor)

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_prices_never_negative(self, bar_factory, rng, variant):
        crash = bar_factory([100.0, 40.0, 10.0, 2.0, 0.5, 0.1])
        preds = generate_forecast(crash, 60, rng, variant)
        assert all(p.predicted_price >= 0 for p in preds)

    def test_no_actual_price_on_forward_forecast(self, linear_bars, rng):
        preds = generate_forecast(linear_bars, 5, rng)
        assert all(p.actual_price is None for p in preds)


class TestForecastInputs:
    @pytest.mark.parametrize("horizon", [0, -3])
    def test_invalid_horizon_raises(self, linear_bars, rng, horizon):
        with pytest.raises(InvalidParameterError):
            generate_forecast(linear_bars, horizon, rng)

    def test_non_integer_horizon_raises(self, linear_bars, rng):
        with pytest.raises(InvalidParameterError):
            generate_forecast(linear_bars, 2.5, rng)

    def test_empty_series_returns_empty(self, rng):
        assert generate_forecast([], 10, rng) == []

    def test_undated_series_requires_anchor(self, rng):
        with pytest.raises(InvalidParameterError):
            generate_forecast([100.0, 101.0, 102.0], 5, rng)

    def test_anchor_date_for_plain_floats(self, rng):
        anchor = date(2024, 6, 30)
        preds = generate_forecast([100.0, 101.0, 102.0], 3, rng, anchor_date=anchor)
        assert [p.date for p in preds] == [anchor + timedelta(days=i) for i in (1, 2, 3)]

    def test_seed_reproduces_forecast(self, random_walk_bars):
        a = generate_forecast(random_walk_bars, 15, np.random.default_rng(7), "blended")
        b = generate_forecast(random_walk_bars, 15, np.random.default_rng(7), "blended")
        assert [p.predicted_price for p in a] == [p.predicted_price for p in b]

    def test_single_point_series(self, bar_factory, rng):
        preds = generate_forecast(bar_factory([50.0]), 4, rng, "momentum")
        assert [p.predicted_price for p in preds] == [50.0] * 4


class TestVariantParsing:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("momentum", ForecastVariant.MOMENTUM),
            ("LSTM", ForecastVariant.MOMENTUM),
            ("gru", ForecastVariant.MEAN_REVERSION),
            ("mean-reversion", ForecastVariant.MEAN_REVERSION),
            ("Transformer", ForecastVariant.BLENDED),
            ("BLENDED", ForecastVariant.BLENDED),
        ],
    )
    def test_parse(self, name, expected):
        assert ForecastVariant.parse(name) is expected

    def test_unknown_variant(self):
        with pytest.raises(InvalidParameterError):
            ForecastVariant.parse("arima")

    def test_labels(self):
        assert ForecastVariant.MOMENTUM.label == "LSTM"
        assert ForecastVariant.MEAN_REVERSION.label == "GRU"
        assert ForecastVariant.BLENDED.label == "Transformer"


class TestConstantSeries:
    """252 bars at a constant close of 100."""

    @pytest.mark.parametrize(
        "generator", [momentum_forecast, mean_reversion_forecast]
    )
    def test_flat_variants_stay_at_price(self, bar_factory, rng, generator):
        bars = bar_factory([100.0] * 252)
        preds = generator(bars, 30, rng)
        for p in preds:
            assert p.predicted_price == pytest.approx(100.0)

    def test_blended_stays_near_price(self, bar_factory, rng):
        bars = bar_factory([100.0] * 252)
        preds = blended_forecast(bars, 30, rng)
        for p in preds:
            assert p.predicted_price == pytest.approx(100.0, rel=0.05)
