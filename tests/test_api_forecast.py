"""
Tests for StockScope API - forecast endpoints.

Covers:
    GET  /api/forecast/variants
    POST /api/forecast/predict
    POST /api/forecast/backtest
    POST /api/forecast/compare
    POST /api/forecast/signal
    GET  /api/health, /api/config
"""

import pytest


@pytest.fixture
def bars(random_walk_bars):
    return [b.to_dict() for b in random_walk_bars]


class TestSystemRoutes:
    def test_health(self, api_client):
        data = api_client.get("/api/health").json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"

    def test_config(self, api_client):
        data = api_client.get("/api/config").json()
        assert data["horizon_days"] == 30
        assert data["max_simulations"] == 5000
        assert data["shock"] == "normal"


class TestVariants:
    def test_lists_three_variants(self, api_client):
        data = api_client.get("/api/forecast/variants").json()
        assert [v["label"] for v in data] == ["LSTM", "GRU", "Transformer"]


class TestPredict:
    def test_returns_horizon(self, api_client, bars):
        resp = api_client.post("/api/forecast/predict", json={
            "bars": bars, "variant": "blended", "horizon_days": 14, "seed": 1,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["label"] == "Transformer"
        assert len(data["predictions"]) == 14

    def test_default_horizon(self, api_client, bars):
        data = api_client.post("/api/forecast/predict", json={"bars": bars}).json()
        assert data["horizon_days"] == 30
        assert data["variant"] == "momentum"

    def test_seed_reproducible(self, api_client, bars):
        body = {"bars": bars, "variant": "GRU", "horizon_days": 5, "seed": 9}
        a = api_client.post("/api/forecast/predict", json=body).json()
        b = api_client.post("/api/forecast/predict", json=body).json()
        assert a["predictions"] == b["predictions"]

    def test_unknown_variant_is_422(self, api_client, bars):
        resp = api_client.post("/api/forecast/predict", json={"bars": bars, "variant": "arima"})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Validation error"

    def test_invalid_horizon_is_422(self, api_client, bars):
        resp = api_client.post("/api/forecast/predict", json={"bars": bars, "horizon_days": -1})
        assert resp.status_code == 422

    def test_missing_bars_is_422(self, api_client):
        assert api_client.post("/api/forecast/predict", json={}).status_code == 422

    def test_ohlc_optional(self, api_client):
        bars = [{"date": f"2024-01-{d:02d}", "close": 100 + d} for d in range(1, 11)]
        resp = api_client.post("/api/forecast/predict", json={"bars": bars, "horizon_days": 3})
        assert resp.status_code == 200
        assert resp.json()["predictions"][0]["date"] == "2024-01-11"


class TestBacktest:
    def test_returns_metrics(self, api_client, bars):
        resp = api_client.post("/api/forecast/backtest", json={
            "bars": bars, "variant": "momentum", "test_days": 20, "seed": 3,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["test_days"] == 20
        assert len(data["predictions"]) == 20
        assert all(p["actual_price"] is not None for p in data["predictions"])
        assert "r2" in data["metrics"]
        assert 0 <= data["summary"]["hit_rate"] <= 100

    def test_default_window(self, api_client, bars):
        data = api_client.post("/api/forecast/backtest", json={"bars": bars}).json()
        assert data["test_days"] == 30

    def test_window_too_large_is_422(self, api_client, bars):
        resp = api_client.post("/api/forecast/backtest", json={"bars": bars, "test_days": 200})
        assert resp.status_code == 422


class TestCompare:
    def test_all_variants(self, api_client, bars):
        resp = api_client.post("/api/forecast/compare", json={
            "bars": bars, "horizon_days": 7, "seed": 1,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert set(data["reports"]) == {"momentum", "mean_reversion", "blended"}
        assert data["best_by_r2"] in data["reports"]
        assert len(data["reports"]["blended"]["forecast"]) == 7

    def test_subset(self, api_client, bars):
        data = api_client.post("/api/forecast/compare", json={
            "bars": bars, "variants": ["lstm"], "seed": 1,
        }).json()
        assert list(data["reports"]) == ["momentum"]

    def test_winners_by_each_metric(self, api_client, bars):
        data = api_client.post("/api/forecast/compare", json={
            "bars": bars, "horizon_days": 7, "seed": 1,
        }).json()
        reports = data["reports"]
        maes = {k: r["metrics"]["mae"] for k, r in reports.items()}
        sharpes = {k: r["metrics"]["sharpe_ratio"] for k, r in reports.items()}
        assert maes[data["best_by_mae"]] == min(maes.values())
        assert sharpes[data["best_by_sharpe"]] == max(sharpes.values())

    def test_short_history_is_422(self, api_client, bars):
        resp = api_client.post("/api/forecast/compare", json={"bars": bars[:2]})
        assert resp.status_code == 422
        assert "series" in resp.json()["detail"]


class TestSignal:
    def test_returns_action(self, api_client, bars):
        resp = api_client.post("/api/forecast/signal", json={
            "bars": bars, "sentiment": 0.7, "seed": 1,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["action"] in {"BUY", "SELL", "HOLD"}
        assert data["sentiment_score"] == pytest.approx(70.0)
        assert len(data["indicators"]) == 4
        assert 0 <= data["confidence"] <= 100

    def test_seed_reproducible(self, api_client, bars):
        body = {"bars": bars, "seed": 5}
        a = api_client.post("/api/forecast/signal", json=body).json()
        b = api_client.post("/api/forecast/signal", json=body).json()
        assert a == b

    def test_default_sentiment(self, api_client, bars):
        data = api_client.post("/api/forecast/signal", json={"bars": bars}).json()
        assert data["sentiment_score"] == pytest.approx(50.0)

    def test_sentiment_out_of_range_is_422(self, api_client, bars):
        resp = api_client.post("/api/forecast/signal", json={"bars": bars, "sentiment": 1.5})
        assert resp.status_code == 422
