"""Tests for technical indicators."""

import pytest
from datetime import datetime, timedelta, timezone

from core.indicators import (
    rsi,
    ema,
    ema_series,
    sma,
    macd,
    atr,
    true_range,
)
from core.models import Candle


def _make_candle(i: int, close: float, high: float, low: float, open_: float | None = None) -> Candle:
    return Candle(
        time=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=5 * i),
        open=close if open_ is None else open_,
        high=high,
        low=low,
        close=close,
        volume=1000.0,
    )


class TestRSI:
    """Tests for RSI calculation."""

    @pytest.mark.parametrize("n", [0, 1, 5, 14])
    def test_rsi_insufficient_data_is_neutral(self, n):
        """Fewer than period + 1 closes returns 50."""
        closes = [100.0 + i for i in range(n)]
        assert rsi(closes, 14) == 50.0

    def test_rsi_only_gains(self):
        """No losses observed returns 100."""
        closes = [100.0 + i for i in range(30)]
        assert rsi(closes, 14) == 100.0

    def test_rsi_only_losses(self):
        """No gains observed returns 0."""
        closes = [100.0 - i for i in range(30)]
        assert rsi(closes, 14) == pytest.approx(0.0)

    def test_rsi_balanced_moves(self):
        """Alternating equal moves sit near 50."""
        closes = [100.0 if i % 2 == 0 else 101.0 for i in range(41)]
        assert rsi(closes, 14) == pytest.approx(50.0, abs=5.0)

    def test_rsi_seed_only(self):
        """With exactly period + 1 closes the value comes from the seed averages."""
        # 14 deltas: 7 gains of 2, 7 losses of 1
        closes = [100.0]
        for i in range(14):
            closes.append(closes[-1] + (2.0 if i % 2 == 0 else -1.0))

        # avg_gain = 1.0, avg_loss = 0.5, rs = 2
        assert rsi(closes, 14) == pytest.approx(100 - 100 / 3)

    def test_rsi_wilder_smoothing(self):
        """Deltas after the seed are smoothed with (avg*(p-1)+v)/p."""
        closes = [10.0, 11.0, 10.0, 12.0]  # deltas +1, -1, +2
        # seed (period 2): gain 0.5, loss 0.5; next delta +2 -> gain 1.25, loss 0.25
        assert rsi(closes, 2) == pytest.approx(100 - 100 / (1 + 5))

    def test_rsi_bounded(self):
        """RSI stays within [0, 100] for arbitrary input."""
        closes = [100.0, 103.5, 99.2, 98.7, 105.1, 104.0, 90.3, 91.1, 95.0,
                  96.5, 92.2, 93.3, 99.9, 101.1, 97.7, 98.8, 102.2, 88.8]
        for end in range(15, len(closes) + 1):
            value = rsi(closes[:end], 14)
            assert 0.0 <= value <= 100.0


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_series_length_and_seed(self):
        """Series has one value per close and starts at the first close."""
        closes = [10.0, 11.0, 12.0, 13.0, 14.0]
        result = ema_series(closes, 3)

        assert len(result) == len(closes)
        assert result[0] == 10.0

    def test_ema_series_values(self):
        """k = 2 / (period + 1)."""
        result = ema_series([10.0, 20.0], 3)
        # k = 0.5: 20 * 0.5 + 10 * 0.5
        assert result[1] == pytest.approx(15.0)

    def test_ema_series_empty(self):
        assert ema_series([], 20) == []

    def test_ema_latest(self):
        closes = [1.0, 2.0, 3.0, 4.0]
        assert ema(closes, 3) == ema_series(closes, 3)[-1]

    def test_ema_empty_returns_zero(self):
        assert ema([], 20) == 0.0

    def test_ema_constant_series(self):
        assert ema([5.0] * 30, 10) == pytest.approx(5.0)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        """Mean of the last `period` closes."""
        closes = [float(i) for i in range(1, 11)]  # 1-10
        # (8+9+10)/3 = 9
        assert sma(closes, 3) == pytest.approx(9.0)

    def test_sma_insufficient_data(self):
        assert sma([1.0, 2.0], 3) == 0.0

    def test_sma_exact_length(self):
        assert sma([2.0, 4.0, 6.0], 3) == pytest.approx(4.0)


class TestMACD:
    """Tests for MACD calculation."""

    def test_macd_flat_series_is_zero(self):
        result = macd([100.0] * 60)
        assert result.macd == pytest.approx(0.0)
        assert result.signal == pytest.approx(0.0)
        assert result.histogram == pytest.approx(0.0)

    def test_macd_uptrend_is_positive(self):
        closes = [100.0 + i for i in range(60)]
        result = macd(closes)

        assert result.macd > 0
        assert result.histogram == pytest.approx(result.macd - result.signal)

    def test_macd_matches_ema_difference(self):
        closes = [100.0 + (i % 7) for i in range(40)]
        result = macd(closes, 12, 26, 9)
        expected = ema(closes, 12) - ema(closes, 26)
        assert result.macd == pytest.approx(expected)

    def test_macd_empty(self):
        result = macd([])
        assert (result.macd, result.signal, result.histogram) == (0.0, 0.0, 0.0)


class TestATR:
    """Tests for ATR calculation."""

    def test_true_range_first_bar(self):
        """First bar TR is high - low."""
        candles = [_make_candle(0, 101.0, 102.0, 99.0)]
        assert true_range(candles) == [3.0]

    def test_true_range_gap(self):
        """Gaps against the previous close widen the range."""
        candles = [
            _make_candle(0, 100.0, 101.0, 99.0),
            _make_candle(1, 106.0, 107.0, 105.0),  # gap up: high - prev_close = 7
        ]
        assert true_range(candles)[1] == pytest.approx(7.0)

    def test_atr_flat_prices_is_zero(self):
        """Constant high = low = close gives ATR 0."""
        candles = [_make_candle(i, 100.0, 100.0, 100.0) for i in range(30)]
        assert atr(candles, 14) == 0.0

    def test_atr_constant_range(self):
        """Constant range candles converge to that range."""
        candles = [_make_candle(i, 101.0, 102.0, 100.0) for i in range(30)]
        assert atr(candles, 14) == pytest.approx(2.0)

    def test_atr_insufficient_data(self):
        candles = [_make_candle(i, 101.0, 102.0, 100.0) for i in range(14)]
        assert atr(candles, 14) == 0.0

    def test_atr_wilder_smoothing(self):
        """Seed with the mean of the first TRs, then smooth the rest."""
        candles = [
            _make_candle(0, 10.0, 11.0, 9.0),    # TR 2
            _make_candle(1, 10.0, 11.0, 9.0),    # TR 2
            _make_candle(2, 10.0, 14.0, 10.0),   # TR 4
        ]
        # seed (2 + 2) / 2 = 2; then (2 * 1 + 4) / 2 = 3
        assert atr(candles, 2) == pytest.approx(3.0)
