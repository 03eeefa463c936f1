"""
Empirical Value-at-Risk / Conditional VaR.

Historical-simulation tail risk over a return series at several
confidence levels.  Each level is computed independently:

    idx   = floor(n * (100 - c) / 100)        into ascending returns
    VaR   = |sorted[idx]| * 100               (percent)
    CVaR  = mean(|sorted[0:idx]|) * 100       (percent)

When ``idx`` is 0 the sample holds no observation beyond the cutoff, so
the result is flagged ``sufficient=False`` with ``var``/``cvar`` set to
None rather than reporting a misleading 0.

A Gaussian (parametric) VaR is attached to each result for reference.

Classes:
    VarResult: VaR / CVaR at one confidence level.
    TailRiskAnalyzer: Multi-level historical VaR engine.

Example:
    >>> analyzer = TailRiskAnalyzer()
    >>> for r in analyzer.analyze(returns):
    ...     print(r.confidence_level, r.var, r.cvar)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy.stats import norm

from src.utils.validation import require_confidence_level

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_LEVELS: List[float] = [90.0, 95.0, 99.0, 99.5]


@dataclass
class VarResult:
    """Tail-loss statistics at a single confidence level.

    Attributes:
        confidence_level: Confidence in percent, e.g. 99.0.
        var: Historical VaR in percent, None when the sample is too small.
        cvar: Expected shortfall in percent, None when the sample is too small.
        sufficient: False when no observation lies beyond the VaR cutoff.
        sample_size: Number of returns analysed.
        tail_count: Observations strictly inside the tail (the cutoff index).
        parametric_var: Gaussian VaR in percent from the sample mean / std.
    """

    confidence_level: float
    var: Optional[float]
    cvar: Optional[float]
    sufficient: bool
    sample_size: int
    tail_count: int
    parametric_var: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_level": self.confidence_level,
            "var": round(self.var, 4) if self.var is not None else None,
            "cvar": round(self.cvar, 4) if self.cvar is not None else None,
            "sufficient": self.sufficient,
            "sample_size": self.sample_size,
            "tail_count": self.tail_count,
            "parametric_var": (
                round(self.parametric_var, 4) if self.parametric_var is not None else None
            ),
        }


def _parametric_var(returns: np.ndarray, confidence_level: float) -> Optional[float]:
    if len(returns) == 0:
        return None
    z = norm.ppf(1 - confidence_level / 100)
    value = abs(float(np.mean(returns)) + z * float(np.std(returns))) * 100
    return value if math.isfinite(value) else None


def compute_var(returns: Sequence[float], confidence_level: float) -> VarResult:
    """Historical VaR / CVaR of ``returns`` at ``confidence_level`` percent.

    Args:
        returns: Simple returns (fractions, not percent), any order.
        confidence_level: Percent in the open interval (0, 100).

    Returns:
        VarResult; ``sufficient`` is False when the tail is empty.

    Raises:
        InvalidParameterError: If the confidence level is outside (0, 100).
    """
    confidence_level = require_confidence_level(confidence_level)
    ordered = np.sort(np.asarray(returns, dtype=float))
    ordered = ordered[np.isfinite(ordered)]
    n = len(ordered)
    idx = int(math.floor(n * (100.0 - confidence_level) / 100.0))

    if idx == 0:
        logger.warning(
            f"Insufficient sample for VaR at {confidence_level}%: "
            f"{n} returns leave an empty tail"
        )
        return VarResult(
            confidence_level=confidence_level,
            var=None,
            cvar=None,
            sufficient=False,
            sample_size=n,
            tail_count=0,
            parametric_var=_parametric_var(ordered, confidence_level),
        )

    return VarResult(
        confidence_level=confidence_level,
        var=abs(float(ordered[idx])) * 100,
        cvar=float(np.mean(np.abs(ordered[:idx]))) * 100,
        sufficient=True,
        sample_size=n,
        tail_count=idx,
        parametric_var=_parametric_var(ordered, confidence_level),
    )


class TailRiskAnalyzer:
    """Historical VaR / CVaR at a set of confidence levels.

    Args:
        confidence_levels: Levels in percent (default 90, 95, 99, 99.5).

    Raises:
        InvalidParameterError: If any level is outside (0, 100).
    """

    def __init__(self, confidence_levels: Optional[Sequence[float]] = None) -> None:
        levels = confidence_levels if confidence_levels is not None else DEFAULT_CONFIDENCE_LEVELS
        self.confidence_levels = [require_confidence_level(c) for c in levels]

    def analyze(
        self,
        returns: Sequence[float],
        confidence_levels: Optional[Sequence[float]] = None,
    ) -> List[VarResult]:
        """Compute one VarResult per confidence level, in the order given."""
        levels = (
            self.confidence_levels if confidence_levels is None else list(confidence_levels)
        )
        results = [compute_var(returns, c) for c in levels]
        logger.debug(
            f"Tail risk over {len(returns)} returns: "
            + ", ".join(
                f"{r.confidence_level}%={r.var:.2f}" if r.sufficient else f"{r.confidence_level}%=n/a"
                for r in results
            )
        )
        return results
