"""
Engine configuration.

Defaults live in ``config/engine.yaml``.  The loader looks for, in order:

    1. An explicit path (file, or directory containing engine.yaml)
    2. The ENGINE_CONFIG_PATH environment variable
    3. config/engine.yaml, ../config/engine.yaml, <repo>/config/engine.yaml

and falls back to the built-in dataclass defaults if none exists.

Example:
    >>> cfg = load_config()
    >>> cfg.monte_carlo.num_simulations
    1000
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "engine.yaml"


@dataclass
class ForecastSettings:
    horizon_days: int = 30
    default_variant: str = "momentum"


@dataclass
class BacktestSettings:
    max_test_days: int = 30
    hit_tolerance: float = 0.05


@dataclass
class MonteCarloSettings:
    simulation_days: int = 30
    num_simulations: int = 1000
    max_simulations: int = 5000
    visible_cap: int = 100
    bins: int = 40
    shock: str = "normal"
    workers: int = 1
    chunk_size: int = 500
    timeout_seconds: Optional[float] = 10.0


@dataclass
class TailRiskSettings:
    confidence_levels: List[float] = field(default_factory=lambda: [90.0, 95.0, 99.0, 99.5])


@dataclass
class RiskProfileSettings:
    risk_free_rate: float = 0.04


@dataclass
class SignalSettings:
    horizon_days: int = 7
    default_sentiment: float = 0.5
    buy_threshold: float = 70.0
    sell_threshold: float = 30.0


@dataclass
class EngineConfig:
    """Typed view of engine.yaml.

    Attributes:
        forecast: Forward forecast defaults.
        backtest: Backtest window and hit tolerance.
        monte_carlo: Simulator defaults and bounds.
        tail_risk: VaR confidence levels.
        risk_profile: Risk-free rate for Sharpe / Sortino.
        signals: Trading-signal horizon, sentiment default and thresholds.
        source: Path the values were read from (None = built-in defaults).
    """

    forecast: ForecastSettings = field(default_factory=ForecastSettings)
    backtest: BacktestSettings = field(default_factory=BacktestSettings)
    monte_carlo: MonteCarloSettings = field(default_factory=MonteCarloSettings)
    tail_risk: TailRiskSettings = field(default_factory=TailRiskSettings)
    risk_profile: RiskProfileSettings = field(default_factory=RiskProfileSettings)
    signals: SignalSettings = field(default_factory=SignalSettings)
    source: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], source: Optional[str] = None) -> "EngineConfig":
        """Build a config from a parsed YAML mapping, ignoring unknown keys."""
        sections = {
            "forecast": ForecastSettings,
            "backtest": BacktestSettings,
            "monte_carlo": MonteCarloSettings,
            "tail_risk": TailRiskSettings,
            "risk_profile": RiskProfileSettings,
            "signals": SignalSettings,
        }
        kwargs: Dict[str, Any] = {}
        for name, section_cls in sections.items():
            values = raw.get(name) or {}
            known = {f.name for f in fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                logger.warning(f"Ignoring unknown {name} settings: {sorted(unknown)}")
            kwargs[name] = section_cls(**{k: v for k, v in values.items() if k in known})
        return cls(source=source, **kwargs)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _candidate_paths(config_path: Optional[Union[str, Path]]) -> List[Path]:
    paths: List[Path] = []
    for explicit in (config_path, os.getenv("ENGINE_CONFIG_PATH")):
        if explicit:
            p = Path(explicit)
            paths.append(p / CONFIG_FILENAME if p.is_dir() else p)
    paths.extend(
        [
            Path("config") / CONFIG_FILENAME,
            Path("..") / "config" / CONFIG_FILENAME,
            Path(__file__).parent.parent / "config" / CONFIG_FILENAME,
        ]
    )
    return paths


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load engine configuration from YAML.

    Args:
        config_path: File or directory; overrides the search path.

    Returns:
        EngineConfig populated from the first file found, else defaults.
    """
    for path in _candidate_paths(config_path):
        if path.is_file():
            config = EngineConfig.from_dict(_read_yaml(path), source=str(path))
            logger.debug(f"Loaded engine config from {path}")
            return config

    logger.warning("No engine.yaml found, using built-in defaults")
    return EngineConfig()
