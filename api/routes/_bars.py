"""Conversion of request bar models into engine bars."""

from typing import List

from api.schemas import BarModel
from src.data_pipeline.bars import HistoricalBar


def to_bars(models: List[BarModel]) -> List[HistoricalBar]:
    """Build engine bars; missing open/high/low default to the close."""
    return [
        HistoricalBar(
            date=m.date,
            open=m.open if m.open is not None else m.close,
            high=m.high if m.high is not None else m.close,
            low=m.low if m.low is not None else m.close,
            close=m.close,
            volume=m.volume,
        )
        for m in models
    ]
