"""Historical bar model and conversions between bars, frames and arrays."""

from src.data_pipeline.bars import (
    HistoricalBar,
    bars_from_frame,
    bars_to_frame,
    close_prices,
)

__all__ = [
    "HistoricalBar",
    "bars_from_frame",
    "bars_to_frame",
    "close_prices",
]
