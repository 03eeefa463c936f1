"""
Pydantic request/response models for the StockScope API.

All schemas are JSON-serializable and mirror the TypeScript interfaces
used by the dashboard charts.  Historical bars always travel in the
request body; the API never fetches market data itself.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ─── Input Schemas ────────────────────────────────────────────────


class BarModel(BaseModel):
    """Single daily OHLCV bar supplied by the client."""

    date: date
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: float
    volume: float = 0.0


class SeriesRequest(BaseModel):
    """Base request carrying a bar history, oldest first."""

    bars: List[BarModel] = Field(..., description="Ascending, de-duplicated daily bars")
    seed: Optional[int] = Field(None, description="Seed for reproducible output")


class ForecastRequest(SeriesRequest):
    """Forward forecast request."""

    variant: str = Field("momentum", description="momentum | mean_reversion | blended")
    horizon_days: Optional[int] = None


class BacktestRequest(SeriesRequest):
    """Hold-out backtest request."""

    variant: str = "momentum"
    test_days: Optional[int] = Field(
        None, description="Withheld window, 1..len(bars)//3 (default min(30, len//3))"
    )


class CompareRequest(SeriesRequest):
    """All-variant comparison request."""

    horizon_days: Optional[int] = None
    test_days: Optional[int] = None
    variants: Optional[List[str]] = None


class SignalRequest(SeriesRequest):
    """Trading-signal request."""

    sentiment: Optional[float] = Field(
        None, ge=0, le=1, description="Market sentiment in [0, 1]; 0.5 is neutral"
    )
    horizon_days: Optional[int] = None


class SimulationRequest(BaseModel):
    """Monte Carlo request.

    Either ``bars`` (drift / volatility estimated from history) or the
    explicit ``current_price`` / ``daily_drift`` / ``daily_volatility``
    triple must be supplied.
    """

    bars: Optional[List[BarModel]] = None
    current_price: Optional[float] = None
    daily_drift: Optional[float] = None
    daily_volatility: Optional[float] = None
    simulation_days: Optional[int] = None
    num_simulations: Optional[int] = None
    seed: Optional[int] = None
    timeout_seconds: Optional[float] = None


class VarRequest(BaseModel):
    """VaR / CVaR request from bars or a raw return series."""

    bars: Optional[List[BarModel]] = None
    returns: Optional[List[float]] = None
    confidence_levels: Optional[List[float]] = None


class RiskProfileRequest(BaseModel):
    """Historical risk profile request."""

    bars: List[BarModel]
    risk_free_rate: Optional[float] = None


# ─── Forecast Schemas ─────────────────────────────────────────────


class PredictionResponse(BaseModel):
    """Single forecast day."""

    date: str
    predicted_price: float
    actual_price: Optional[float] = None
    confidence: float = Field(..., ge=0, le=1)


class ForecastResponse(BaseModel):
    """Forward forecast for one variant."""

    variant: str
    label: str
    horizon_days: int
    predictions: List[PredictionResponse]


class MetricsResponse(BaseModel):
    """Accuracy and risk metrics."""

    mae: float
    rmse: float
    mape: float
    r2: float
    sharpe_ratio: float
    volatility: float
    max_drawdown: float


class BacktestSummaryResponse(BaseModel):
    """Hit-rate digest of a backtest."""

    paired: int
    hit_rate: float
    avg_abs_pct_error: float
    tolerance: float


class BacktestResponse(BaseModel):
    """Hold-out backtest output."""

    variant: str
    label: str
    test_days: int
    train_size: int
    train_end: Optional[str] = None
    predictions: List[PredictionResponse]
    summary: BacktestSummaryResponse
    metrics: MetricsResponse


class VariantReportResponse(BaseModel):
    """Forecast, backtest and metrics for one variant."""

    variant: str
    label: str
    forecast: List[PredictionResponse]
    backtest: Optional[BacktestResponse] = None
    metrics: MetricsResponse


class CompareResponse(BaseModel):
    """All requested variants side by side."""

    reports: Dict[str, VariantReportResponse]
    best_by_r2: Optional[str] = None
    best_by_mae: Optional[str] = None
    best_by_sharpe: Optional[str] = None


class IndicatorResponse(BaseModel):
    """Technical indicator reading."""

    name: str
    value: float
    signal: str
    weight: float


class SignalResponse(BaseModel):
    """BUY / SELL / HOLD recommendation."""

    action: str
    confidence: float = Field(..., ge=0, le=100)
    current_price: float
    target_price: Optional[float] = None
    stop_loss: Optional[float] = None
    risk_level: str
    overall_score: float
    ml_score: float
    sentiment_score: float
    technical_score: float
    indicators: List[IndicatorResponse]
    reasoning: List[str]
    timeframe: str


# ─── Risk Schemas ─────────────────────────────────────────────────


class HistogramBinResponse(BaseModel):
    """Terminal-price histogram bucket."""

    lower: float
    upper: float
    midpoint: float
    count: int


class RiskStatisticsResponse(BaseModel):
    """Terminal-price distribution summary."""

    mean: float
    median: float
    p5: float
    p25: float
    p75: float
    p95: float
    histogram: List[HistogramBinResponse]


class SimulationResponse(BaseModel):
    """Monte Carlo output."""

    current_price: float
    simulation_days: int
    num_simulations: int
    visible_paths: int
    paths: List[List[float]]
    statistics: RiskStatisticsResponse


class VarResultResponse(BaseModel):
    """VaR / CVaR at a single confidence level."""

    confidence_level: float
    var: Optional[float] = None
    cvar: Optional[float] = None
    sufficient: bool
    sample_size: int
    tail_count: int
    parametric_var: Optional[float] = None


class VarResponse(BaseModel):
    """VaR / CVaR at every requested confidence level."""

    results: List[VarResultResponse]
    sample_size: int


class RiskProfileResponse(BaseModel):
    """Realised risk statistics of a history."""

    annualized_return: float
    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    var_95: Optional[float] = None
    var_99: Optional[float] = None
    cvar_95: Optional[float] = None
    cvar_99: Optional[float] = None
    observations: int
    drawdowns: List[float] = Field(default_factory=list)


# ─── System Schemas ───────────────────────────────────────────────


class HealthCheckResponse(BaseModel):
    """Simple health check."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime = Field(default_factory=datetime.now)


class ConfigResponse(BaseModel):
    """Effective engine defaults."""

    source: Optional[str] = None
    horizon_days: int
    default_variant: str
    max_test_days: int
    simulation_days: int
    num_simulations: int
    max_simulations: int
    visible_cap: int
    bins: int
    shock: str
    confidence_levels: List[float]
    risk_free_rate: float
