"""
Tests for the command-line entry point.
"""

import json

import pandas as pd
import pytest

from src.main import main


@pytest.fixture
def bars_csv(tmp_path, random_walk_bars):
    path = tmp_path / "bars.csv"
    pd.DataFrame([b.to_dict() for b in random_walk_bars]).to_csv(path, index=False)
    return str(path)


class TestCli:
    def test_forecast(self, bars_csv, capsys):
        code = main(["--mode", "forecast", "--csv", bars_csv, "--days", "5", "--seed", "1"])
        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert len(output) == 5
        assert "predicted_price" in output[0]

    def test_backtest(self, bars_csv, capsys):
        code = main(["--mode", "backtest", "--csv", bars_csv, "--variant", "gru",
                     "--test-days", "10", "--seed", "1"])
        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["test_days"] == 10
        assert "mape" in output["metrics"]

    def test_simulate(self, bars_csv, capsys):
        code = main(["--mode", "simulate", "--csv", bars_csv, "--days", "10",
                     "--simulations", "50", "--seed", "1"])
        assert code == 0
        assert json.loads(capsys.readouterr().out)["num_simulations"] == 50

    def test_var(self, bars_csv, capsys):
        assert main(["--mode", "var", "--csv", bars_csv]) == 0
        output = json.loads(capsys.readouterr().out)
        assert [r["confidence_level"] for r in output] == [90.0, 95.0, 99.0, 99.5]

    def test_invalid_window_returns_error(self, bars_csv):
        assert main(["--mode", "backtest", "--csv", bars_csv, "--test-days", "500"]) == 1

    def test_missing_file_returns_error(self, tmp_path):
        assert main(["--csv", str(tmp_path / "missing.csv")]) == 1

    def test_signal(self, bars_csv, capsys):
        code = main(["--mode", "signal", "--csv", bars_csv, "--sentiment", "0.8",
                     "--seed", "1"])
        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["action"] in {"BUY", "SELL", "HOLD"}
        assert output["sentiment_score"] == pytest.approx(80.0)
