"""
BUY / SELL / HOLD trading signals.

Combines three 0-100 scores into one recommendation:

    Score       Weight   Source
    ──────────  ──────   ─────────────────────────────────────────────
    ml           0.5     mean terminal forecast vs the last close
    sentiment    0.3     caller-supplied sentiment in [0, 1] x 100
    technical    0.2     weighted RSI / MACD / SMA crossover / volume

    overall >= 70  → BUY
    overall <= 30  → SELL
    otherwise      → HOLD

Confidence is the distance of the overall score from 50, rescaled to
0-100; it sets the risk level and the target price.  The technical
indicators need at least 20 observations; with fewer, the technical
score is a neutral 50.

Classes:
    SignalAction: BUY / SELL / HOLD.
    Indicator: One technical indicator reading.
    TradingSignal: Full recommendation with scores and reasoning.
    SignalEngine: Builds signals from history plus forecasts.

Example:
    >>> engine = SignalEngine()
    >>> forecasts = {v: generate_forecast(bars, 7, rng, v) for v in ForecastVariant}
    >>> signal = engine.generate(bars, forecasts, sentiment=0.62)
    >>> signal.action, signal.confidence
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from src.data_pipeline.bars import PriceSeries, close_prices, volumes
from src.forecasting.generators import Prediction
from src.utils.validation import InvalidParameterError, require_finite

logger = logging.getLogger(__name__)

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MIN_TECHNICAL_POINTS = 20
VOLUME_SURGE = 1.2

# Weights of the technical indicators in the technical score
INDICATOR_WEIGHTS = {"RSI": 0.3, "MACD": 0.3, "Moving Average": 0.25, "Volume": 0.15}
# Weights of the ml / sentiment / technical scores in the overall score
SCORE_WEIGHTS = (0.5, 0.3, 0.2)


class SignalAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class Bias(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


_BIAS_SCORE = {Bias.BULLISH: 100.0, Bias.BEARISH: 0.0, Bias.NEUTRAL: 50.0}


# ─── Data Classes ─────────────────────────────────────────────────


@dataclass
class Indicator:
    """One technical indicator reading.

    Attributes:
        name: Indicator name.
        value: Raw reading (RSI level, MACD value, or percent gap).
        bias: Bullish / bearish / neutral interpretation.
        weight: Contribution to the technical score.
    """

    name: str
    value: float
    bias: Bias
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": round(self.value, 4),
            "signal": self.bias.value,
            "weight": self.weight,
        }


@dataclass
class TradingSignal:
    """Trading recommendation for one instrument.

    Attributes:
        action: BUY, SELL or HOLD.
        confidence: 0-100, distance of the overall score from neutral.
        current_price: Last close the signal was computed against.
        target_price: Price objective (None for HOLD).
        stop_loss: Protective exit level (None for HOLD).
        risk_level: LOW / MEDIUM / HIGH from the confidence.
        overall_score: Weighted 0-100 score behind the action.
        ml_score: Forecast-derived score, 0-100.
        sentiment_score: Sentiment x 100.
        technical_score: Weighted indicator score, 0-100.
        indicators: Technical readings (empty for short histories).
        reasoning: Human-readable drivers of the decision.
        timeframe: Holding horizon the signal is meant for.
    """

    action: SignalAction
    confidence: float
    current_price: float
    target_price: Optional[float]
    stop_loss: Optional[float]
    risk_level: str
    overall_score: float
    ml_score: float
    sentiment_score: float
    technical_score: float
    indicators: List[Indicator] = field(default_factory=list)
    reasoning: List[str] = field(default_factory=list)
    timeframe: str = "1-7 days"

    def to_dict(self) -> Dict[str, Any]:
        def _r(v: Optional[float]) -> Optional[float]:
            return round(v, 4) if v is not None else None

        return {
            "action": self.action.value,
            "confidence": round(self.confidence, 2),
            "current_price": _r(self.current_price),
            "target_price": _r(self.target_price),
            "stop_loss": _r(self.stop_loss),
            "risk_level": self.risk_level,
            "overall_score": round(self.overall_score, 2),
            "ml_score": round(self.ml_score, 2),
            "sentiment_score": round(self.sentiment_score, 2),
            "technical_score": round(self.technical_score, 2),
            "indicators": [i.to_dict() for i in self.indicators],
            "reasoning": list(self.reasoning),
            "timeframe": self.timeframe,
        }


# ─── Indicators ───────────────────────────────────────────────────


def rsi(prices: np.ndarray, period: int = RSI_PERIOD) -> float:
    """Relative Strength Index over the last ``period`` price changes.

    Uses simple averages of gains and losses.  Returns 50 when there are
    fewer than ``period + 1`` prices and 100 when there were no losses.
    """
    if len(prices) < period + 1:
        return 50.0
    changes = np.diff(prices[-(period + 1):])
    avg_gain = float(np.sum(changes[changes > 0])) / period
    avg_loss = float(-np.sum(changes[changes < 0])) / period
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def ema(prices: np.ndarray, period: int) -> float:
    """Exponential moving average seeded with the first price."""
    k = 2.0 / (period + 1)
    value = float(prices[0])
    for price in prices[1:]:
        value = float(price) * k + value * (1 - k)
    return value


def macd(prices: np.ndarray) -> float:
    """EMA(12) - EMA(26); 0 with fewer than 26 prices."""
    if len(prices) < MACD_SLOW:
        return 0.0
    return ema(prices, MACD_FAST) - ema(prices, MACD_SLOW)


def technical_indicators(series: PriceSeries) -> List[Indicator]:
    """RSI, MACD, SMA20/SMA50 crossover and volume surge readings.

    Returns:
        Four indicators, or an empty list with fewer than 20 prices.
    """
    prices = close_prices(series)
    if len(prices) < MIN_TECHNICAL_POINTS:
        return []

    rsi_value = rsi(prices)
    rsi_bias = Bias.BEARISH if rsi_value > 70 else Bias.BULLISH if rsi_value < 30 else Bias.NEUTRAL

    macd_value = macd(prices)
    macd_bias = Bias.BULLISH if macd_value > 0 else Bias.BEARISH if macd_value < 0 else Bias.NEUTRAL

    sma20 = float(np.mean(prices[-20:]))
    sma50 = float(np.mean(prices[-50:]))
    ma_gap = (sma20 / sma50 - 1) * 100 if sma50 != 0 else 0.0
    ma_bias = Bias.BULLISH if sma20 > sma50 else Bias.BEARISH if sma20 < sma50 else Bias.NEUTRAL

    vol = volumes(series)
    volume_gap = 0.0
    volume_bias = Bias.NEUTRAL
    if vol is not None:
        avg_volume = float(np.mean(vol[-20:]))
        if avg_volume > 0:
            volume_gap = (vol[-1] / avg_volume - 1) * 100
            if vol[-1] > avg_volume * VOLUME_SURGE:
                volume_bias = Bias.BULLISH

    return [
        Indicator("RSI", rsi_value, rsi_bias, INDICATOR_WEIGHTS["RSI"]),
        Indicator("MACD", macd_value, macd_bias, INDICATOR_WEIGHTS["MACD"]),
        Indicator("Moving Average", ma_gap, ma_bias, INDICATOR_WEIGHTS["Moving Average"]),
        Indicator("Volume", float(volume_gap), volume_bias, INDICATOR_WEIGHTS["Volume"]),
    ]


def technical_score(indicators: Sequence[Indicator]) -> float:
    """Weighted bullish (100) / neutral (50) / bearish (0) score."""
    if not indicators:
        return 50.0
    return sum(_BIAS_SCORE[i.bias] * i.weight for i in indicators)


def ml_score(
    forecasts: Mapping[Any, Sequence[Prediction]],
    current_price: float,
) -> float:
    """Score the mean terminal forecast against the current price.

    ``50 + percent_change * 10``, clipped to [0, 100].  Empty forecast
    lists are skipped; with none left, or a zero price, the score is 50.
    """
    finals = [preds[-1].predicted_price for preds in forecasts.values() if len(preds) > 0]
    if not finals or current_price == 0:
        return 50.0
    change_pct = (float(np.mean(finals)) - current_price) / current_price * 100
    return float(np.clip(50 + change_pct * 10, 0, 100))


# ─── Engine ───────────────────────────────────────────────────────


class SignalEngine:
    """Builds trading signals from price history and variant forecasts.

    Args:
        buy_threshold: Overall score at or above which the action is BUY.
        sell_threshold: Overall score at or below which the action is SELL.

    Raises:
        InvalidParameterError: If ``sell_threshold >= buy_threshold``.
    """

    def __init__(self, buy_threshold: float = 70.0, sell_threshold: float = 30.0) -> None:
        self.buy_threshold = require_finite("buy_threshold", buy_threshold)
        self.sell_threshold = require_finite("sell_threshold", sell_threshold)
        if self.sell_threshold >= self.buy_threshold:
            raise InvalidParameterError(
                "sell_threshold", sell_threshold, "must be below buy_threshold"
            )

    def generate(
        self,
        series: PriceSeries,
        forecasts: Mapping[Any, Sequence[Prediction]],
        sentiment: float = 0.5,
    ) -> TradingSignal:
        """Combine forecasts, sentiment and technicals into one signal.

        Args:
            series: Historical prices, oldest first; the last close is the
                reference price.
            forecasts: Forward forecasts keyed by variant.
            sentiment: Market sentiment in [0, 1]; 0.5 is neutral.

        Returns:
            TradingSignal.

        Raises:
            InvalidParameterError: For an empty series or sentiment outside [0, 1].
        """
        sentiment = require_finite("sentiment", sentiment)
        if not 0.0 <= sentiment <= 1.0:
            raise InvalidParameterError("sentiment", sentiment, "must lie in [0, 1]")
        prices = close_prices(series)
        if len(prices) == 0:
            raise InvalidParameterError("series", "[]", "cannot signal on an empty history")

        current = float(prices[-1])
        indicators = technical_indicators(series)
        ml = ml_score(forecasts, current)
        sent = sentiment * 100
        tech = technical_score(indicators)

        w_ml, w_sent, w_tech = SCORE_WEIGHTS
        overall = ml * w_ml + sent * w_sent + tech * w_tech

        if overall >= self.buy_threshold:
            action = SignalAction.BUY
        elif overall <= self.sell_threshold:
            action = SignalAction.SELL
        else:
            action = SignalAction.HOLD

        confidence = abs(overall - 50) * 2
        risk_level = "HIGH" if confidence < 40 else "MEDIUM" if confidence < 70 else "LOW"

        target = stop = None
        if action is SignalAction.BUY:
            target = current * (1 + confidence / 100 * 0.15)
            stop = current * 0.95
        elif action is SignalAction.SELL:
            target = current * (1 - confidence / 100 * 0.15)
            stop = current * 1.05

        signal = TradingSignal(
            action=action,
            confidence=confidence,
            current_price=current,
            target_price=target,
            stop_loss=stop,
            risk_level=risk_level,
            overall_score=overall,
            ml_score=ml,
            sentiment_score=sent,
            technical_score=tech,
            indicators=indicators,
            reasoning=_reasoning(ml, sent, tech),
        )
        logger.info(
            f"Signal {action.value}: overall={overall:.1f} ml={ml:.1f} "
            f"sentiment={sent:.1f} technical={tech:.1f} risk={risk_level}"
        )
        return signal


def _reasoning(ml: float, sentiment: float, technical: float) -> List[str]:
    reasons: List[str] = []
    if ml > 60:
        reasons.append(
            f"Forecasts predict {'strong' if ml > 70 else 'moderate'} upward movement"
        )
    elif ml < 40:
        reasons.append(
            f"Forecasts predict {'strong' if ml < 30 else 'moderate'} downward movement"
        )

    if sentiment > 60:
        reasons.append(f"Positive market sentiment ({sentiment:.0f}%)")
    elif sentiment < 40:
        reasons.append(f"Negative market sentiment ({sentiment:.0f}%)")

    if technical > 60:
        reasons.append("Technical indicators show bullish signals")
    elif technical < 40:
        reasons.append("Technical indicators show bearish signals")

    if not reasons:
        reasons.append("Mixed signals - recommend holding position")
    return reasons
