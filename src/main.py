"""
StockScope - Forecasting & Risk-Simulation Engine.

Main entry point.  ``StockScope`` binds the engine components to one
configuration; the CLI reads bars from a CSV file and prints JSON.

Usage:
    python -m src.main --mode=forecast --csv aapl.csv --variant lstm --days 30
    python -m src.main --mode=compare --csv aapl.csv --seed 42
    python -m src.main --mode=simulate --csv aapl.csv --simulations 2000
    python -m src.main --mode=var --csv aapl.csv
    python -m src.main --mode=signal --csv aapl.csv --sentiment 0.6
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from dotenv import load_dotenv

from src.config import EngineConfig, load_config
from src.data_pipeline.bars import PriceSeries, bars_from_frame
from src.forecasting.backtest import BacktestHarness, BacktestResult
from src.forecasting.comparison import VariantReport, compare_variants, default_test_days
from src.forecasting.estimators import simple_returns
from src.forecasting.generators import ForecastVariant, Prediction, generate_forecast
from src.forecasting.metrics import Metrics, calculate_metrics
from src.forecasting.signals import SignalEngine, TradingSignal
from src.risk.monte_carlo import MonteCarloSimulator, SimulationResult, simulate_from_history
from src.risk.profile import RiskProfile, compute_risk_profile
from src.risk.tail_risk import TailRiskAnalyzer, VarResult

logger = logging.getLogger(__name__)


class StockScope:
    """Engine facade bound to one configuration.

    Holds no market data and no per-call state: every method is a pure
    function of its arguments plus the configured defaults, so a single
    instance can serve concurrent callers.

    Example:
        >>> engine = StockScope()
        >>> preds = engine.forecast(bars, "transformer", seed=1)
        >>> report = engine.compare(bars, seed=1)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        config_path: Optional[str] = None,
    ):
        """Initialize StockScope.

        Args:
            config: Ready-made configuration (takes precedence).
            config_path: Path to engine.yaml or its directory.
        """
        self.config = config or load_config(config_path)

        mc = self.config.monte_carlo
        self.harness = BacktestHarness(hit_tolerance=self.config.backtest.hit_tolerance)
        self.simulator = MonteCarloSimulator(
            max_simulations=mc.max_simulations,
            visible_cap=mc.visible_cap,
            bins=mc.bins,
            shock=mc.shock,
            workers=mc.workers,
            chunk_size=mc.chunk_size,
        )
        self.tail_risk = TailRiskAnalyzer(self.config.tail_risk.confidence_levels)
        self.signals = SignalEngine(
            buy_threshold=self.config.signals.buy_threshold,
            sell_threshold=self.config.signals.sell_threshold,
        )

        logger.info(
            f"StockScope initialized (config: {self.config.source or 'built-in defaults'})"
        )

    # ── Forecasting ───────────────────────────────────────────────

    def forecast(
        self,
        series: PriceSeries,
        variant: Union[str, ForecastVariant, None] = None,
        horizon_days: Optional[int] = None,
        seed: Optional[int] = None,
        anchor_date: Optional[date] = None,
    ) -> List[Prediction]:
        """Forward forecast with configured defaults for omitted arguments."""
        return generate_forecast(
            series,
            self.config.forecast.horizon_days if horizon_days is None else horizon_days,
            np.random.default_rng(seed),
            variant or self.config.forecast.default_variant,
            anchor_date=anchor_date,
        )

    def backtest(
        self,
        series: PriceSeries,
        variant: Union[str, ForecastVariant, None] = None,
        test_days: Optional[int] = None,
        seed: Optional[int] = None,
        anchor_date: Optional[date] = None,
    ) -> BacktestResult:
        """Hold-out backtest; the default window is min(max_test_days, len // 3)."""
        if test_days is None:
            test_days = default_test_days(len(series), self.config.backtest.max_test_days)
        return self.harness.run(
            series,
            variant or self.config.forecast.default_variant,
            test_days,
            np.random.default_rng(seed),
            anchor_date,
        )

    def metrics(self, predictions: Sequence[Prediction]) -> Metrics:
        return calculate_metrics(predictions)

    def compare(
        self,
        series: PriceSeries,
        horizon_days: Optional[int] = None,
        test_days: Optional[int] = None,
        seed: Optional[int] = None,
        variants: Optional[Sequence[Union[str, ForecastVariant]]] = None,
        anchor_date: Optional[date] = None,
    ) -> Dict[ForecastVariant, VariantReport]:
        """All variants side by side, evaluated concurrently."""
        if test_days is None:
            test_days = default_test_days(len(series), self.config.backtest.max_test_days)
        return compare_variants(
            series,
            self.config.forecast.horizon_days if horizon_days is None else horizon_days,
            test_days=test_days,
            seed=seed,
            variants=variants,
            harness=self.harness,
            anchor_date=anchor_date,
        )

    def signal(
        self,
        series: PriceSeries,
        sentiment: Optional[float] = None,
        horizon_days: Optional[int] = None,
        seed: Optional[int] = None,
        anchor_date: Optional[date] = None,
    ) -> TradingSignal:
        """BUY / SELL / HOLD from all three variant forecasts plus technicals.

        Each variant forecasts from its own generator spawned from ``seed``.
        """
        cfg = self.config.signals
        horizon = cfg.horizon_days if horizon_days is None else horizon_days
        children = np.random.SeedSequence(seed).spawn(len(ForecastVariant))
        forecasts = {
            variant: generate_forecast(
                series, horizon, np.random.default_rng(child), variant, anchor_date=anchor_date
            )
            for variant, child in zip(ForecastVariant, children)
        }
        return self.signals.generate(
            series,
            forecasts,
            cfg.default_sentiment if sentiment is None else sentiment,
        )

    # ── Risk ──────────────────────────────────────────────────────

    def simulate(
        self,
        series: PriceSeries,
        simulation_days: Optional[int] = None,
        num_simulations: Optional[int] = None,
        seed: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> SimulationResult:
        """Monte Carlo seeded from the history's realised drift and volatility."""
        mc = self.config.monte_carlo
        return simulate_from_history(
            series,
            mc.simulation_days if simulation_days is None else simulation_days,
            mc.num_simulations if num_simulations is None else num_simulations,
            rng=np.random.default_rng(seed),
            simulator=self.simulator,
            timeout=timeout if timeout is not None else mc.timeout_seconds,
        )

    def value_at_risk(
        self,
        series: PriceSeries,
        confidence_levels: Optional[Sequence[float]] = None,
    ) -> List[VarResult]:
        """Historical VaR / CVaR of the series' simple returns."""
        return self.tail_risk.analyze(simple_returns(series), confidence_levels)

    def risk_profile(self, series: PriceSeries) -> RiskProfile:
        return compute_risk_profile(series, self.config.risk_profile.risk_free_rate)


def _load_bars(path: str) -> list:
    frame = pd.read_csv(path)
    return bars_from_frame(frame)


def _run_mode(engine: StockScope, args: argparse.Namespace, bars: list) -> Any:
    if args.mode == "forecast":
        return [p.to_dict() for p in engine.forecast(bars, args.variant, args.days, args.seed)]
    if args.mode == "backtest":
        result = engine.backtest(bars, args.variant, args.test_days, args.seed)
        payload = result.to_dict()
        payload["metrics"] = calculate_metrics(result.predictions).to_dict()
        return payload
    if args.mode == "compare":
        reports = engine.compare(bars, args.days, args.test_days, args.seed)
        return {v.value: r.to_dict() for v, r in reports.items()}
    if args.mode == "simulate":
        return engine.simulate(bars, args.days, args.simulations, args.seed).to_dict()
    if args.mode == "signal":
        return engine.signal(bars, args.sentiment, args.days, args.seed).to_dict()
    if args.mode == "var":
        return [r.to_dict() for r in engine.value_at_risk(bars)]
    return engine.risk_profile(bars).to_dict()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    parser = argparse.ArgumentParser(description="StockScope - Forecast & Risk Engine")
    parser.add_argument("--mode",
                        choices=["forecast", "backtest", "compare", "signal", "simulate", "var", "profile"],
                        default="forecast", help="Operation mode")
    parser.add_argument("--csv", required=True,
                        help="CSV of daily bars (date, open, high, low, close, volume)")
    parser.add_argument("--variant", default=None,
                        help="momentum | mean_reversion | blended (or LSTM / GRU / Transformer)")
    parser.add_argument("--days", type=int, default=None,
                        help="Forecast horizon or simulation days")
    parser.add_argument("--test-days", type=int, default=None,
                        help="Backtest window")
    parser.add_argument("--simulations", type=int, default=None,
                        help="Monte Carlo trial count")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducible output")
    parser.add_argument("--sentiment", type=float, default=None,
                        help="Market sentiment in [0, 1] for signal mode")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to engine.yaml or its directory")

    args = parser.parse_args(argv)

    engine = StockScope(config_path=args.config)
    try:
        bars = _load_bars(args.csv)
        output = _run_mode(engine, args, bars)
    except (OSError, ValueError) as e:
        logger.error(f"{args.mode} failed: {e}")
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
