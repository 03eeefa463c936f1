"""
StockScope - Forecasting & Risk-Simulation Engine

Pure numeric core behind the StockScope dashboard.  Every operation is a
stateless batch computation with an explicit random source.

Components:
- Forecasting: trend / volatility estimation, three synthetic forecast
  variants, hold-out backtesting, accuracy and risk metrics
- Risk: Monte Carlo terminal-price simulation, historical VaR / CVaR,
  realised risk profile
"""

__version__ = "0.1.0"
__author__ = "StockScope Development Team"

from src.forecasting import ForecastVariant, generate_forecast, compare_variants
from src.risk import MonteCarloSimulator, TailRiskAnalyzer

__all__ = [
    "ForecastVariant",
    "MonteCarloSimulator",
    "TailRiskAnalyzer",
    "compare_variants",
    "generate_forecast",
]
