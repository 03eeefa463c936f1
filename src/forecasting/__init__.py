"""
Forecasting engine.

Synthetic forward price generation and its evaluation:

    estimators      - Volatility / OLS trend statistics
    generators      - Momentum, mean-reversion and blended recurrences
    backtest        - Hold-out backtest harness
    metrics         - MAE / RMSE / MAPE / R² / Sharpe / drawdown
    comparison      - Concurrent per-variant forecast + backtest + metrics
    signals         - BUY / SELL / HOLD from forecasts, sentiment and technicals
"""

from src.forecasting.backtest import BacktestHarness, BacktestResult, run_backtest
from src.forecasting.comparison import VariantReport, best_variant, compare_variants
from src.forecasting.estimators import linear_trend, volatility
from src.forecasting.generators import ForecastVariant, Prediction, generate_forecast
from src.forecasting.metrics import Metrics, calculate_metrics
from src.forecasting.signals import SignalAction, SignalEngine, TradingSignal

__all__ = [
    "BacktestHarness",
    "BacktestResult",
    "ForecastVariant",
    "Metrics",
    "Prediction",
    "SignalAction",
    "SignalEngine",
    "TradingSignal",
    "VariantReport",
    "best_variant",
    "calculate_metrics",
    "compare_variants",
    "generate_forecast",
    "linear_trend",
    "run_backtest",
    "volatility",
]
