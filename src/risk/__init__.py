"""
Risk engine.

    MonteCarloSimulator - Terminal-price Monte Carlo with percentiles / histogram
    TailRiskAnalyzer    - Historical VaR / CVaR at several confidence levels
    RiskProfile         - Realised return, volatility, Sharpe, Sortino, drawdown
"""

from src.risk.monte_carlo import (
    MonteCarloSimulator,
    RiskStatistics,
    SimulationResult,
    simulate_from_history,
)
from src.risk.profile import RiskProfile, compute_risk_profile
from src.risk.tail_risk import TailRiskAnalyzer, VarResult, compute_var

__all__ = [
    "MonteCarloSimulator",
    "RiskProfile",
    "RiskStatistics",
    "SimulationResult",
    "TailRiskAnalyzer",
    "VarResult",
    "compute_risk_profile",
    "compute_var",
    "simulate_from_history",
]
