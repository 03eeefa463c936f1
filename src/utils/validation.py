"""
Parameter validation for the forecasting and risk engine.

Every public engine operation validates its scalar parameters at the
boundary and raises ``InvalidParameterError`` synchronously.  Values are
never silently clamped.

Classes:
    InvalidParameterError: Raised for out-of-range parameters.
    SimulationCancelled: Raised when a simulation passes its deadline.
"""

from __future__ import annotations

import math
import operator
from typing import Optional


class InvalidParameterError(ValueError):
    """A parameter violates the documented bounds of an engine operation.

    Attributes:
        parameter: Name of the offending parameter.
        value: The rejected value.
    """

    def __init__(self, parameter: str, value: object, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"Invalid {parameter}={value!r}: {reason}")


class SimulationCancelled(RuntimeError):
    """A Monte Carlo run exceeded its caller-supplied deadline."""


def require_int_range(
    name: str,
    value: int,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """Validate that ``value`` is an integer within [minimum, maximum].

    Args:
        name: Parameter name used in the error message.
        value: Value to check.
        minimum: Inclusive lower bound (None = unbounded).
        maximum: Inclusive upper bound (None = unbounded).

    Returns:
        The value as ``int``.

    Raises:
        InvalidParameterError: If the value is not integral or out of range.
    """
    if isinstance(value, bool):
        raise InvalidParameterError(name, value, "must be an integer")
    try:
        value = operator.index(value)
    except TypeError:
        raise InvalidParameterError(name, value, "must be an integer") from None

    if minimum is not None and value < minimum:
        raise InvalidParameterError(name, value, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise InvalidParameterError(name, value, f"must be <= {maximum}")
    return value


def require_finite(name: str, value: float) -> float:
    """Validate that ``value`` is a finite real number."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, value, "must be a number") from None
    if not math.isfinite(value):
        raise InvalidParameterError(name, value, "must be finite")
    return value


def require_confidence_level(value: float) -> float:
    """Validate a confidence level expressed in percent, open interval (0, 100)."""
    value = require_finite("confidence_level", value)
    if not 0.0 < value < 100.0:
        raise InvalidParameterError(
            "confidence_level", value, "must lie strictly between 0 and 100"
        )
    return value
