"""
Tests for historical VaR / CVaR.
"""

import numpy as np
import pytest

from src.risk.tail_risk import (
    DEFAULT_CONFIDENCE_LEVELS,
    TailRiskAnalyzer,
    compute_var,
)
from src.utils.validation import InvalidParameterError


@pytest.fixture
def normal_returns():
    return np.random.default_rng(2024).normal(0.0, 0.02, 1000)


class TestComputeVar:
    def test_var99_matches_first_percentile(self, normal_returns):
        result = compute_var(normal_returns, 99)
        expected = abs(np.percentile(normal_returns, 1)) * 100
        assert result.sufficient
        assert result.var == pytest.approx(expected, rel=0.10)

    def test_var99_near_gaussian_quantile(self, normal_returns):
        result = compute_var(normal_returns, 99)
        assert result.var == pytest.approx(2.326 * 2.0, rel=0.25)
        assert result.parametric_var == pytest.approx(2.326 * 2.0, rel=0.15)

    def test_tail_index(self, normal_returns):
        assert compute_var(normal_returns, 90).tail_count == 100
        assert compute_var(normal_returns, 99.5).tail_count == 5

    def test_cvar_at_least_var(self, normal_returns):
        for level in DEFAULT_CONFIDENCE_LEVELS:
            r = compute_var(normal_returns, level)
            assert r.cvar >= r.var

    def test_insufficient_sample(self):
        r = compute_var(np.linspace(-0.05, 0.05, 50), 99.5)
        assert not r.sufficient
        assert r.var is None and r.cvar is None
        assert r.sample_size == 50

    def test_empty_returns(self):
        r = compute_var([], 95)
        assert not r.sufficient
        assert r.parametric_var is None

    @pytest.mark.parametrize("level", [0, 100, -5, 150, float("nan")])
    def test_invalid_level(self, level):
        with pytest.raises(InvalidParameterError):
            compute_var([0.01, -0.02], level)

    def test_to_dict(self, normal_returns):
        data = compute_var(normal_returns, 95).to_dict()
        assert data["confidence_level"] == 95.0
        assert data["sufficient"] is True


class TestTailRiskAnalyzer:
    def test_default_levels(self, normal_returns):
        results = TailRiskAnalyzer().analyze(normal_returns)
        assert [r.confidence_level for r in results] == DEFAULT_CONFIDENCE_LEVELS

    def test_var_monotone_in_confidence(self, normal_returns):
        results = TailRiskAnalyzer().analyze(normal_returns)
        vars_ = [r.var for r in results]
        assert vars_ == sorted(vars_)

    def test_override_levels(self, normal_returns):
        results = TailRiskAnalyzer().analyze(normal_returns, [97.5])
        assert len(results) == 1
        assert results[0].confidence_level == 97.5

    def test_invalid_configured_level(self):
        with pytest.raises(InvalidParameterError):
            TailRiskAnalyzer([95, 100])
