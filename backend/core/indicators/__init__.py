"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    rsi,
    ema,
    ema_series,
    sma,
    macd,
    atr,
    true_range,
    MacdResult,
)

__all__ = [
    "rsi",
    "ema",
    "ema_series",
    "sma",
    "macd",
    "atr",
    "true_range",
    "MacdResult",
]
