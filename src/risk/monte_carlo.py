"""
Monte Carlo terminal-price simulation.

Runs N independent price paths over D days with the multiplicative
recurrence

    price[d] = max(0, price[d-1] * (1 + drift + volatility * shock))

and summarises the distribution of terminal prices (mean, percentiles,
histogram).  Full paths are kept only for the first ``visible_cap``
trials; terminal prices are kept for every trial.

Trials are independent, so a run can be split into chunks executed on a
thread pool.  Each chunk draws from its own generator spawned from the
caller's random source, and a caller-supplied deadline aborts the run
without touching any shared state.

Classes:
    HistogramBin: One histogram bucket of terminal prices.
    RiskStatistics: Distribution summary of terminal prices.
    SimulationResult: Visible paths, terminal prices and statistics.
    MonteCarloSimulator: Configurable simulation engine.

Example:
    >>> sim = MonteCarloSimulator(workers=4)
    >>> result = sim.run(100.0, 0.0004, 0.012, simulation_days=30,
    ...                  num_simulations=2000, rng=np.random.default_rng(3))
    >>> result.statistics.p5 <= result.statistics.median
    True
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices
from src.risk.profile import TRADING_DAYS, compute_risk_profile
from src.utils.validation import (
    InvalidParameterError,
    SimulationCancelled,
    require_finite,
    require_int_range,
)

logger = logging.getLogger(__name__)

SHOCK_DISTRIBUTIONS = ("normal", "uniform")
PERCENTILES = (5, 25, 50, 75, 95)


# ─── Data Classes ─────────────────────────────────────────────────


@dataclass
class HistogramBin:
    """Terminal-price histogram bucket [lower, upper)."""

    lower: float
    upper: float
    midpoint: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lower": round(self.lower, 4),
            "upper": round(self.upper, 4),
            "midpoint": round(self.midpoint, 4),
            "count": self.count,
        }


@dataclass
class RiskStatistics:
    """Summary of the terminal-price distribution.

    Percentiles use the sorted floor-index rule ``sorted[floor(n * p)]``,
    so every reported value is an actual simulated terminal price.
    """

    mean: float
    median: float
    p5: float
    p25: float
    p75: float
    p95: float
    histogram: List[HistogramBin] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": round(self.mean, 4),
            "median": round(self.median, 4),
            "p5": round(self.p5, 4),
            "p25": round(self.p25, 4),
            "p75": round(self.p75, 4),
            "p95": round(self.p95, 4),
            "histogram": [b.to_dict() for b in self.histogram],
        }


@dataclass
class SimulationResult:
    """Output of one Monte Carlo run.

    Attributes:
        current_price: Starting price of every path.
        simulation_days: Days simulated (D).
        num_simulations: Trials run (N).
        paths: Array of shape (min(N, visible_cap), D + 1); column 0 is
            the current price.
        terminal_prices: Final price of every trial, ascending.
        statistics: Distribution summary of ``terminal_prices``.
    """

    current_price: float
    simulation_days: int
    num_simulations: int
    paths: np.ndarray
    terminal_prices: np.ndarray
    statistics: RiskStatistics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_price": self.current_price,
            "simulation_days": self.simulation_days,
            "num_simulations": self.num_simulations,
            "visible_paths": int(self.paths.shape[0]),
            "paths": np.round(self.paths, 4).tolist(),
            "statistics": self.statistics.to_dict(),
        }


# ─── Statistics ───────────────────────────────────────────────────


def floor_percentile(sorted_values: np.ndarray, pct: float) -> float:
    """Value at index floor(n * pct / 100) of an ascending array."""
    n = len(sorted_values)
    idx = min(int(math.floor(n * pct / 100.0)), n - 1)
    return float(sorted_values[idx])


def build_histogram(values: np.ndarray, bins: int) -> List[HistogramBin]:
    """Equal-width histogram over [min, max]; the last bin includes max."""
    if len(values) == 0:
        return []
    lo = float(np.min(values))
    hi = float(np.max(values))
    width = (hi - lo) / bins

    if width == 0:
        counts = np.zeros(bins, dtype=int)
        counts[0] = len(values)
    else:
        idx = np.minimum(np.floor((values - lo) / width).astype(int), bins - 1)
        counts = np.bincount(idx, minlength=bins)

    return [
        HistogramBin(
            lower=lo + i * width,
            upper=lo + (i + 1) * width,
            midpoint=lo + (i + 0.5) * width,
            count=int(counts[i]),
        )
        for i in range(bins)
    ]


def summarize_terminals(terminals: np.ndarray, bins: int = 40) -> RiskStatistics:
    """Mean, floor-index percentiles and histogram of terminal prices."""
    ordered = np.sort(terminals)
    return RiskStatistics(
        mean=float(np.mean(ordered)),
        median=floor_percentile(ordered, 50),
        p5=floor_percentile(ordered, 5),
        p25=floor_percentile(ordered, 25),
        p75=floor_percentile(ordered, 75),
        p95=floor_percentile(ordered, 95),
        histogram=build_histogram(ordered, bins),
    )


# ─── Simulator ────────────────────────────────────────────────────


class MonteCarloSimulator:
    """Terminal-price Monte Carlo engine.

    Args:
        max_simulations: Upper bound accepted for ``num_simulations``.
        visible_cap: Number of leading trials whose full path is kept.
        bins: Histogram bin count.
        shock: ``"normal"`` (standard Gaussian) or ``"uniform"`` (U(-1, 1)).
        workers: Thread count; 1 runs inline.
        chunk_size: Trials per parallel task.
    """

    def __init__(
        self,
        max_simulations: int = 5000,
        visible_cap: int = 100,
        bins: int = 40,
        shock: str = "normal",
        workers: int = 1,
        chunk_size: int = 500,
    ) -> None:
        self.max_simulations = require_int_range("max_simulations", max_simulations, minimum=1)
        self.visible_cap = require_int_range("visible_cap", visible_cap, minimum=0)
        self.bins = require_int_range("bins", bins, minimum=1)
        if shock not in SHOCK_DISTRIBUTIONS:
            raise InvalidParameterError("shock", shock, f"expected one of {SHOCK_DISTRIBUTIONS}")
        self.shock = shock
        self.workers = require_int_range("workers", workers, minimum=1)
        self.chunk_size = require_int_range("chunk_size", chunk_size, minimum=1)

    # ── Public API ────────────────────────────────────────────────

    def run(
        self,
        current_price: float,
        daily_drift: float,
        daily_volatility: float,
        simulation_days: int,
        num_simulations: int,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        deadline: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> SimulationResult:
        """Simulate ``num_simulations`` paths of ``simulation_days`` days.

        Args:
            current_price: Starting price (>= 0).
            daily_drift: Expected daily return (annual return / 252).
            daily_volatility: Daily return volatility (annual vol / sqrt(252)).
            simulation_days: D >= 0; D = 0 returns the current price unchanged.
            num_simulations: N in [1, max_simulations].
            rng: Caller-owned random source; takes precedence over ``seed``.
            seed: Seed for a fresh generator when ``rng`` is None.
            deadline: Absolute ``time.monotonic()`` value after which the
                run is abandoned.
            timeout: Seconds from now, an alternative to ``deadline``.

        Returns:
            SimulationResult with visible paths and terminal statistics.

        Raises:
            InvalidParameterError: For out-of-range parameters.
            SimulationCancelled: If the deadline passes mid-run.
        """
        current_price = require_finite("current_price", current_price)
        if current_price < 0:
            raise InvalidParameterError("current_price", current_price, "must be >= 0")
        daily_drift = require_finite("daily_drift", daily_drift)
        daily_volatility = require_finite("daily_volatility", daily_volatility)
        if daily_volatility < 0:
            raise InvalidParameterError("daily_volatility", daily_volatility, "must be >= 0")
        simulation_days = require_int_range("simulation_days", simulation_days, minimum=0)
        num_simulations = require_int_range(
            "num_simulations", num_simulations, minimum=1, maximum=self.max_simulations
        )

        if timeout is not None:
            timeout_deadline = time.monotonic() + require_finite("timeout", timeout)
            deadline = timeout_deadline if deadline is None else min(deadline, timeout_deadline)

        rng = rng if rng is not None else np.random.default_rng(seed)
        visible = min(num_simulations, self.visible_cap)
        started = time.monotonic()

        chunks = self._plan_chunks(num_simulations)
        if self.workers == 1 or len(chunks) == 1:
            parts = [
                self._simulate_chunk(
                    start, count, rng, current_price, daily_drift,
                    daily_volatility, simulation_days, visible, deadline,
                )
                for start, count in chunks
            ]
        else:
            child_rngs = rng.spawn(len(chunks))
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [
                    executor.submit(
                        self._simulate_chunk,
                        start, count, child, current_price, daily_drift,
                        daily_volatility, simulation_days, visible, deadline,
                    )
                    for (start, count), child in zip(chunks, child_rngs)
                ]
                try:
                    parts = [f.result() for f in futures]
                except SimulationCancelled:
                    for f in futures:
                        f.cancel()
                    raise

        terminals = np.concatenate([p[0] for p in parts])
        path_blocks = [p[1] for p in parts if p[1].shape[0] > 0]
        paths = (
            np.vstack(path_blocks)
            if path_blocks
            else np.empty((0, simulation_days + 1), dtype=float)
        )

        statistics = summarize_terminals(terminals, self.bins)
        logger.info(
            f"Monte Carlo: N={num_simulations} D={simulation_days} "
            f"shock={self.shock} workers={self.workers} "
            f"mean={statistics.mean:.2f} p5={statistics.p5:.2f} "
            f"p95={statistics.p95:.2f} ({time.monotonic() - started:.2f}s)"
        )

        return SimulationResult(
            current_price=current_price,
            simulation_days=simulation_days,
            num_simulations=num_simulations,
            paths=paths,
            terminal_prices=np.sort(terminals),
            statistics=statistics,
        )

    # ── Private helpers ───────────────────────────────────────────

    def _plan_chunks(self, num_simulations: int) -> List[Tuple[int, int]]:
        """Split trials into (start_index, count) blocks."""
        if self.workers == 1:
            return [(0, num_simulations)]
        return [
            (start, min(self.chunk_size, num_simulations - start))
            for start in range(0, num_simulations, self.chunk_size)
        ]

    def _draw(self, rng: np.random.Generator, size: int) -> np.ndarray:
        if self.shock == "uniform":
            return (rng.random(size) - 0.5) * 2
        return rng.standard_normal(size)

    def _simulate_chunk(
        self,
        start: int,
        count: int,
        rng: np.random.Generator,
        current_price: float,
        daily_drift: float,
        daily_volatility: float,
        simulation_days: int,
        visible: int,
        deadline: Optional[float],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Simulate trials [start, start + count).

        Returns:
            (terminal prices, full paths for the trials below ``visible``).
        """
        keep = max(0, min(count, visible - start))
        paths = np.empty((keep, simulation_days + 1), dtype=float)
        prices = np.full(count, current_price, dtype=float)
        paths[:, 0] = current_price

        for day in range(1, simulation_days + 1):
            if deadline is not None and time.monotonic() > deadline:
                raise SimulationCancelled(
                    f"Simulation deadline exceeded at day {day}/{simulation_days}"
                )
            shocks = self._draw(rng, count)
            prices = np.maximum(0.0, prices * (1.0 + daily_drift + daily_volatility * shocks))
            if keep:
                paths[:, day] = prices[:keep]

        return prices, paths


def simulate_from_history(
    series: PriceSeries,
    simulation_days: int,
    num_simulations: int,
    rng: Optional[np.random.Generator] = None,
    simulator: Optional[MonteCarloSimulator] = None,
    **kwargs: Any,
) -> SimulationResult:
    """Run a simulation seeded from a price history.

    Drift and volatility come from the historical risk profile:
    ``annualized return / 252`` and ``annualized volatility / sqrt(252)``.
    The starting price is the last close.

    Raises:
        InvalidParameterError: If the series is empty.
    """
    closes = close_prices(series)
    if len(closes) == 0:
        raise InvalidParameterError("series", "[]", "cannot simulate from an empty history")

    profile = compute_risk_profile(closes)
    daily_drift = profile.annualized_return / 100 / TRADING_DAYS
    daily_vol = profile.volatility / 100 / math.sqrt(TRADING_DAYS)

    simulator = simulator or MonteCarloSimulator()
    return simulator.run(
        float(closes[-1]),
        daily_drift,
        daily_vol,
        simulation_days,
        num_simulations,
        rng=rng,
        **kwargs,
    )
