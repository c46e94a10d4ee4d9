"""Technical indicators for signal classification.

All functions are pure and deterministic. Where there is not enough
history to compute a value they return a neutral sentinel instead of
raising:

- rsi: 50.0 (neutral)
- ema / sma / atr: 0.0
- macd: 0.0 for any undefined component
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from core.models.candle import Candle


@dataclass(frozen=True, slots=True)
class MacdResult:
    """Latest MACD values."""

    macd: float
    signal: float
    histogram: float


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """
    Calculate Wilder's smoothed RSI for the latest close.

    Args:
        closes: Close prices, oldest first
        period: RSI period

    Returns:
        RSI in [0, 100]; 50.0 when fewer than period + 1 closes
    """
    if len(closes) < period + 1:
        return 50.0

    deltas = np.diff(np.asarray(closes, dtype=np.float64))
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def ema_series(closes: Sequence[float], period: int) -> list[float]:
    """
    Calculate the full EMA series.

    The series is seeded with the first close, so it has one value
    per input value.

    Args:
        closes: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input)
    """
    if len(closes) == 0:
        return []

    arr = np.asarray(closes, dtype=np.float64)
    k = 2.0 / (period + 1)

    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = arr[i] * k + result[i - 1] * (1 - k)

    return result.tolist()


def ema(closes: Sequence[float], period: int) -> float:
    """Latest EMA value, 0.0 for an empty input."""
    series = ema_series(closes, period)
    return series[-1] if series else 0.0


def sma(closes: Sequence[float], period: int) -> float:
    """Mean of the last `period` closes, 0.0 if fewer are available."""
    if period <= 0 or len(closes) < period:
        return 0.0
    return float(np.mean(np.asarray(closes[-period:], dtype=np.float64)))


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MacdResult:
    """
    Calculate MACD for the latest close.

    MACD line = EMA(fast) - EMA(slow), signal line = EMA(signal_period)
    of the MACD line, histogram = MACD - signal.

    Args:
        closes: Close prices, oldest first
        fast: Fast EMA period
        slow: Slow EMA period
        signal_period: Signal line period

    Returns:
        MacdResult built from the latest value of each series
    """
    if len(closes) == 0:
        return MacdResult(macd=0.0, signal=0.0, histogram=0.0)

    fast_emas = np.asarray(ema_series(closes, fast))
    slow_emas = np.asarray(ema_series(closes, slow))
    macd_line = fast_emas - slow_emas
    signal_line = ema_series(macd_line, signal_period)

    current_macd = float(macd_line[-1])
    current_signal = float(signal_line[-1])
    return MacdResult(
        macd=current_macd,
        signal=current_signal,
        histogram=current_macd - current_signal,
    )


def true_range(candles: Sequence[Candle]) -> list[float]:
    """
    Calculate True Range per bar.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first bar has no previous close, so its TR is high - low.
    """
    if len(candles) == 0:
        return []

    result = [candles[0].high - candles[0].low]

    for i in range(1, len(candles)):
        high = candles[i].high
        low = candles[i].low
        prev_close = candles[i - 1].close
        result.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))

    return result


def atr(candles: Sequence[Candle], period: int = 14) -> float:
    """
    Calculate Average True Range (ATR) for the latest bar.

    Seeds with the simple mean of the first `period` true ranges,
    then applies Wilder's smoothing to the remaining bars.

    Args:
        candles: OHLCV bars, oldest first
        period: ATR period

    Returns:
        ATR value, 0.0 when fewer than period + 1 candles
    """
    if len(candles) < period + 1:
        return 0.0

    tr = np.asarray(true_range(candles), dtype=np.float64)
    value = float(np.mean(tr[:period]))

    for i in range(period, len(tr)):
        value = (value * (period - 1) + tr[i]) / period

    return float(value)
