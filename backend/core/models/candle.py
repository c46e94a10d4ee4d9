"""Candle (OHLCV bar) data model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Candle(BaseModel):
    """Fixed-interval OHLCV bar. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def body_ratio(self) -> float:
        """Signed body size as a fraction of the open price."""
        if self.open == 0:
            return 0.0
        return (self.close - self.open) / self.open

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low
