"""Rule-based signal classifier.

Classifies one symbol's recent candles into BUY or WAIT. Rules are held
in an ordered list and evaluated first-match-wins:

1. Primo: trend continuation off an SMA50 touch
2. Whale entry: volume shock on a strong green bar
3. Momentum breakout: trend UP, bullish MACD, RSI 50-70, volume spike

This module is pure business logic with no I/O dependencies.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from core.compliance import check_compliance
from core.indicators import MacdResult, atr, ema, macd, rsi, sma
from core.models import (
    Action,
    Candle,
    ClassifierConfig,
    Signal,
    SignalType,
    Trend,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MarketContext:
    """Indicator values derived once per classification."""

    price: float
    latest: Candle
    rsi: float
    ema_fast: float
    ema_slow: float
    sma: float
    atr: float
    macd: MacdResult
    avg_volume: float
    volume: float
    volume_sma: float
    recent_lows: tuple[float, ...]

    @property
    def is_green(self) -> bool:
        return self.latest.is_bullish

    @property
    def body_ratio(self) -> float:
        return self.latest.body_ratio

    @property
    def trend(self) -> Trend:
        if self.price > self.ema_fast and self.price > self.ema_slow:
            return Trend.UP
        if self.price < self.ema_fast and self.price < self.ema_slow:
            return Trend.DOWN
        return Trend.NEUTRAL


# levels(ctx) -> (tps, sl)
LevelsBuilder = Callable[[MarketContext], tuple[list[float], float]]


@dataclass(frozen=True, slots=True)
class Rule:
    """One classification rule: a predicate and a TP/SL builder."""

    signal_type: SignalType
    matches: Callable[[MarketContext], bool]
    levels: LevelsBuilder


@dataclass
class Classification:
    """Result of classifying a symbol."""

    action: Action
    trend: Trend = Trend.NEUTRAL
    rsi: float = 50.0
    signal_type: SignalType | None = None
    tps: list[float] = field(default_factory=list)
    sl: float = 0.0
    signal: Signal | None = None


class SignalClassifier:
    """
    Classify symbols into trade signals.

    Rule order is significant: only the first matching rule produces a
    signal for a given symbol and cycle. The `rules` list can be
    inspected or evaluated rule-by-rule.
    """

    def __init__(self, config: ClassifierConfig | None = None):
        self.config = config or ClassifierConfig()
        self.rules: list[Rule] = [
            Rule(SignalType.PRIMO, self._is_primo, self._primo_levels),
            Rule(SignalType.WHALE_ENTRY, self._is_whale_entry, self._whale_levels),
            Rule(
                SignalType.MOMENTUM_BREAKOUT,
                self._is_momentum_breakout,
                self._momentum_levels,
            ),
        ]

    def build_context(self, candles: Sequence[Candle], price: float) -> MarketContext:
        """Derive all indicator values the rules need.

        Args:
            candles: At least one candle, oldest first
            price: Current price
        """
        cfg = self.config
        closes = [c.close for c in candles]
        volumes = [c.volume for c in candles]

        prior_volumes = volumes[:-1]
        avg_volume = sum(prior_volumes) / len(prior_volumes) if prior_volumes else 0.0
        volume_window = prior_volumes[-cfg.volume_sma_period:]
        volume_sma = sum(volume_window) / cfg.volume_sma_period

        return MarketContext(
            price=price,
            latest=candles[-1],
            rsi=rsi(closes, cfg.rsi_period),
            ema_fast=ema(closes, cfg.ema_fast_period),
            ema_slow=ema(closes, cfg.ema_slow_period),
            sma=sma(closes, cfg.sma_period),
            atr=atr(candles, cfg.atr_period),
            macd=macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal),
            avg_volume=avg_volume,
            volume=volumes[-1],
            volume_sma=volume_sma,
            recent_lows=tuple(c.low for c in candles[-cfg.touch_lookback:]),
        )

    def classify(
        self,
        symbol: str,
        candles: Sequence[Candle],
        current_price: float,
        change_24h: float,
        now: datetime | None = None,
    ) -> Classification:
        """
        Classify a symbol.

        Args:
            symbol: Trading pair (e.g., "SOLUSDT")
            candles: Recent candles, oldest first (~60+ recommended)
            current_price: Latest price, used as entry
            change_24h: Percent change reported alongside the signal
            now: Creation timestamp for a new signal (defaults to UTC now)

        Returns:
            Classification; BUY results carry an ACTIVE Signal
        """
        if not candles or current_price <= 0:
            return Classification(action=Action.WAIT)

        ctx = self.build_context(candles, current_price)

        for rule in self.rules:
            if not rule.matches(ctx):
                continue

            tps, sl = rule.levels(ctx)
            compliance = check_compliance(symbol)
            signal = Signal(
                symbol=symbol,
                created_at=now or datetime.now(timezone.utc),
                signal_type=rule.signal_type,
                entry_price=current_price,
                tps=tps,
                sl=sl,
                rsi=ctx.rsi,
                change_24h=change_24h,
                ema20=ctx.ema_fast,
                trend=ctx.trend,
                volume=ctx.volume,
                is_halal=compliance.is_halal,
                compliance_note=compliance.note,
            )
            logger.debug(
                "%s matched %s: entry=%s tps=%s sl=%s",
                symbol, rule.signal_type.value, current_price, tps, sl,
            )
            return Classification(
                action=Action.BUY,
                trend=ctx.trend,
                rsi=ctx.rsi,
                signal_type=rule.signal_type,
                tps=tps,
                sl=sl,
                signal=signal,
            )

        return Classification(action=Action.WAIT, trend=ctx.trend, rsi=ctx.rsi)

    # ------------------------------------------------------------------
    # Rule predicates
    # ------------------------------------------------------------------

    def _is_primo(self, ctx: MarketContext) -> bool:
        cfg = self.config
        in_trend = ctx.price > ctx.sma
        touch_level = ctx.sma * (1 + cfg.touch_tolerance)
        touched = any(low <= touch_level for low in ctx.recent_lows)
        triggered = (
            ctx.is_green
            and ctx.latest.close > ctx.sma
            and ctx.body_ratio > cfg.primo_min_body
            and ctx.rsi > cfg.primo_min_rsi
        )
        return in_trend and touched and triggered

    def _is_whale_entry(self, ctx: MarketContext) -> bool:
        cfg = self.config
        return (
            ctx.volume > ctx.volume_sma * cfg.whale_volume_mult
            and ctx.is_green
            and ctx.body_ratio > cfg.whale_min_body
        )

    def _is_momentum_breakout(self, ctx: MarketContext) -> bool:
        cfg = self.config
        macd_bullish = ctx.macd.macd > ctx.macd.signal and ctx.macd.histogram > 0
        return (
            ctx.trend == Trend.UP
            and macd_bullish
            and cfg.momentum_rsi_low < ctx.rsi < cfg.momentum_rsi_high
            and ctx.volume > ctx.avg_volume * cfg.momentum_volume_mult
        )

    # ------------------------------------------------------------------
    # TP/SL builders
    # ------------------------------------------------------------------

    def _atr_or_fallback(self, ctx: MarketContext) -> float:
        return ctx.atr or ctx.price * self.config.atr_fallback_pct

    def _primo_levels(self, ctx: MarketContext) -> tuple[list[float], float]:
        cfg = self.config
        entry = ctx.price
        atr_value = self._atr_or_fallback(ctx)
        sl = min(ctx.latest.low, ctx.sma) * cfg.primo_sl_buffer
        tps = [entry + atr_value * mult for mult in cfg.primo_tp_atr_mults]
        return tps, sl

    def _whale_levels(self, ctx: MarketContext) -> tuple[list[float], float]:
        cfg = self.config
        entry = ctx.price
        tps = [entry * ratio for ratio in cfg.whale_tp_ratios]
        return tps, entry * cfg.whale_sl_ratio

    def _momentum_levels(self, ctx: MarketContext) -> tuple[list[float], float]:
        cfg = self.config
        entry = ctx.price
        atr_value = self._atr_or_fallback(ctx)

        sl = entry - atr_value * cfg.momentum_sl_atr_mult
        stop_pct = (entry - sl) / entry
        if stop_pct < cfg.momentum_min_stop_pct:
            sl = entry * (1 - cfg.momentum_min_stop_pct)
        elif stop_pct > cfg.momentum_max_stop_pct:
            sl = entry * (1 - cfg.momentum_max_stop_pct)

        tps = [
            entry + max(atr_value * mult, entry * pct)
            for mult, pct in zip(cfg.momentum_tp_atr_mults, cfg.momentum_tp_min_pcts)
        ]
        return tps, sl
