"""
Dependency injection for the StockScope API.

Provides:
- StockScope engine singleton (built on startup from engine.yaml)
- Startup/shutdown lifespan manager
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from src.main import StockScope

logger = logging.getLogger(__name__)

# ─── Singleton state ──────────────────────────────────────────────

_engine: Optional[StockScope] = None
_startup_time: Optional[float] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine on startup and drop it on shutdown."""
    global _engine, _startup_time

    logger.info("Starting StockScope engine…")
    _startup_time = time.time()
    _engine = StockScope(config_path=os.getenv("ENGINE_CONFIG_PATH"))

    yield  # ── app is running ──

    logger.info("Shutting down StockScope…")
    _engine = None
    _startup_time = None


# ─── Dependency getters ──────────────────────────────────────────


def get_engine() -> StockScope:
    """Return the singleton engine.

    Raises:
        RuntimeError: If the engine has not been initialized yet.
    """
    if _engine is None:
        raise RuntimeError("StockScope engine is not initialized")
    return _engine


def get_startup_time() -> float:
    """Return the epoch timestamp when the server started."""
    return _startup_time or time.time()
