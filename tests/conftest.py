"""
Test configuration for StockScope.
"""

import os
import sys
import time
from datetime import date, timedelta

import numpy as np
import pytest

# Add repo root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.data_pipeline.bars import HistoricalBar  # noqa: E402


# ─── Bar Factories ────────────────────────────────────────────────


def make_bars(closes, start=date(2024, 1, 1)):
    """Build daily bars with open/high/low equal to the close."""
    return [
        HistoricalBar(
            date=start + timedelta(days=i),
            open=float(c),
            high=float(c),
            low=float(c),
            close=float(c),
            volume=1_000_000.0,
        )
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def constant_bars():
    """100 bars with every close at 100."""
    return make_bars([100.0] * 100)


@pytest.fixture
def linear_bars():
    """100 bars rising by 1 per day from 100."""
    return make_bars([100.0 + i for i in range(100)])


@pytest.fixture
def random_walk_bars():
    """250 bars of a seeded geometric random walk."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.0005, 0.015, 250)
    closes = 100.0 * np.cumprod(1 + returns)
    return make_bars(closes)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


# ─── API Client ───────────────────────────────────────────────────


@pytest.fixture
def api_client():
    """FastAPI TestClient with a real engine built from defaults.

    The lifespan is bypassed and the engine is injected directly into
    the dependencies module.
    """
    import api.dependencies as deps
    from contextlib import asynccontextmanager

    from src.config import EngineConfig
    from src.main import StockScope

    orig_engine = deps._engine
    orig_time = deps._startup_time

    deps._engine = StockScope(config=EngineConfig())
    deps._startup_time = time.time()

    from api.main import app

    @asynccontextmanager
    async def _noop_lifespan(_app):
        yield

    saved_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan

    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client

    app.router.lifespan_context = saved_lifespan
    deps._engine = orig_engine
    deps._startup_time = orig_time


@pytest.fixture
def bar_factory():
    """The ``make_bars`` helper as a fixture."""
    return make_bars
