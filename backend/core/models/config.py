"""Classifier and tracker configuration models."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel


class ClassifierConfig(BaseModel):
    """Indicator periods and rule thresholds for the signal classifier."""

    # Indicator periods
    rsi_period: int = 14
    ema_fast_period: int = 20
    ema_slow_period: int = 50
    sma_period: int = 50
    atr_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    volume_sma_period: int = 20

    # Primo (trend continuation)
    touch_tolerance: float = 0.001  # 0.1% above SMA counts as a touch
    touch_lookback: int = 3
    primo_min_body: float = 0.003
    primo_min_rsi: float = 50.0
    primo_sl_buffer: float = 0.998
    primo_tp_atr_mults: tuple[float, float, float] = (2.0, 4.0, 6.0)

    # Whale entry (volume shock)
    whale_volume_mult: float = 5.0
    whale_min_body: float = 0.005
    whale_tp_ratios: tuple[float, float, float] = (1.005, 1.01, 1.015)
    whale_sl_ratio: float = 0.992

    # Momentum breakout
    momentum_volume_mult: float = 2.0
    momentum_rsi_low: float = 50.0
    momentum_rsi_high: float = 70.0
    momentum_sl_atr_mult: float = 2.0
    momentum_min_stop_pct: float = 0.005
    momentum_max_stop_pct: float = 0.03
    momentum_tp_atr_mults: tuple[float, float, float] = (1.5, 3.0, 5.0)
    momentum_tp_min_pcts: tuple[float, float, float] = (0.01, 0.025, 0.04)

    # ATR fallback when ATR is 0 (insufficient history)
    atr_fallback_pct: float = 0.01


class TrackerConfig(BaseModel):
    """Retention windows for tracked signals."""

    active_ttl: timedelta = timedelta(hours=24)
    hit_retention: timedelta = timedelta(minutes=30)
