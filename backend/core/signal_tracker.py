"""Signal lifecycle tracker.

Owns the registry of tracked signals and the set of signals already
handed to the notification sink. Each polling cycle:

1. Re-prices tracked signals and advances their status
2. Evicts signals whose retention window has elapsed
3. Classifies untracked universe symbols and registers new BUY signals

Status advancement completes before new signals are emitted, so a symbol
cannot close out an old signal and open a duplicate in the same cycle.

This module is pure business logic: market data arrives as a
CycleSnapshot and notifications go through an injected SignalNotifier.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.classifier import SignalClassifier
from core.models import (
    Action,
    CycleSnapshot,
    Signal,
    SignalStatus,
    TrackerConfig,
)
from core.notification import SignalNotifier

logger = logging.getLogger(__name__)


@dataclass
class Transition:
    """A status change observed during a cycle."""

    previous: Signal
    updated: Signal
    hit_time: datetime

    @property
    def new_status(self) -> SignalStatus:
        return self.updated.status


@dataclass
class CycleResult:
    """Summary of one tracker cycle."""

    transitions: list[Transition] = field(default_factory=list)
    new_signals: list[Signal] = field(default_factory=list)
    evicted: list[Signal] = field(default_factory=list)


class SignalTracker:
    """
    Track emitted signals across polling cycles.

    The registry is an ordered list rather than a symbol-keyed map:
    a symbol has at most one ACTIVE signal, but its earlier hit signals
    stay listed until their retention window expires.

    Construct once per process and share with the polling driver.
    State starts empty and is not persisted.
    """

    def __init__(
        self,
        classifier: SignalClassifier | None = None,
        config: TrackerConfig | None = None,
    ):
        self.classifier = classifier or SignalClassifier()
        self.config = config or TrackerConfig()

        self._signals: list[Signal] = []
        self._sent: set[tuple[str, datetime]] = set()

        # One cycle at a time
        self._lock = asyncio.Lock()

    async def run_cycle(
        self,
        snapshot: CycleSnapshot,
        notifier: SignalNotifier | None = None,
        now: datetime | None = None,
    ) -> CycleResult:
        """
        Run one tracker cycle against a market snapshot.

        Args:
            snapshot: Universe and fresh market data for this cycle
            notifier: Sink for notifications, or None when disabled
            now: Cycle wall-clock time (defaults to UTC now)

        Returns:
            CycleResult with transitions, new signals and evictions
        """
        now = now or datetime.now(timezone.utc)
        result = CycleResult()

        async with self._lock:
            result.transitions = self._advance(snapshot, now)
            for transition in result.transitions:
                await self._notify_transition(notifier, transition)

            result.evicted = self._evict(now)

            for signal in self._classify_new(snapshot, now):
                self._register(signal)
                result.new_signals.append(signal)
                await self._notify_new_signal(notifier, signal)

        if result.transitions or result.new_signals or result.evicted:
            logger.info(
                "Cycle: %d transitions, %d new signals, %d evicted, %d tracked",
                len(result.transitions),
                len(result.new_signals),
                len(result.evicted),
                len(self._signals),
            )
        return result

    def _advance(self, snapshot: CycleSnapshot, now: datetime) -> list[Transition]:
        """Re-price tracked signals that have fresh data."""
        transitions = []

        for signal in self._signals:
            data = snapshot.market.get(signal.symbol)
            if data is None:
                continue

            previous = signal.model_copy(deep=True)
            if signal.update_price(data.price, now):
                logger.info(
                    f"Signal {signal.symbol} {previous.status.value} -> "
                    f"{signal.status.value} at {data.price}"
                )
                transitions.append(
                    Transition(previous=previous, updated=signal, hit_time=now)
                )

        return transitions

    def _evict(self, now: datetime) -> list[Signal]:
        """Drop signals whose retention window has elapsed."""
        kept, evicted = [], []
        for signal in self._signals:
            if signal.is_expired(now, self.config.active_ttl, self.config.hit_retention):
                evicted.append(signal)
            else:
                kept.append(signal)

        self._signals = kept

        # Forget dedup keys no tracked signal still carries
        live_keys = {s.dedup_key for s in kept}
        for signal in evicted:
            if signal.dedup_key not in live_keys:
                self._sent.discard(signal.dedup_key)
            logger.debug(f"Evicted {signal.symbol} ({signal.status.value})")
        return evicted

    def _classify_new(self, snapshot: CycleSnapshot, now: datetime) -> list[Signal]:
        """Classify universe symbols that have no ACTIVE signal."""
        active_symbols = {s.symbol for s in self._signals if s.is_active}
        new_signals = []

        for symbol in snapshot.universe:
            if symbol in active_symbols:
                continue

            data = snapshot.market.get(symbol)
            if data is None or not data.candles:
                continue

            classification = self.classifier.classify(
                symbol,
                data.candles,
                data.price,
                data.change_percent,
                now=now,
            )
            if classification.action != Action.BUY or classification.signal is None:
                continue

            active_symbols.add(symbol)
            new_signals.append(classification.signal)
            logger.info(
                f"New signal: {symbol} {classification.signal_type.value} "
                f"entry={data.price}"
            )

        return new_signals

    def _register(self, signal: Signal) -> None:
        """Append a new signal, keeping registry ids unique.

        A symbol re-signalled at the same created_at would otherwise share
        the id of its earlier signal.
        """
        ids = {s.id for s in self._signals}
        base_id, n = signal.id, 1
        while signal.id in ids:
            signal.id = f"{base_id}-{n}"
            n += 1
        self._signals.append(signal)

    async def _notify_transition(
        self,
        notifier: SignalNotifier | None,
        transition: Transition,
    ) -> None:
        if notifier is None:
            return
        try:
            await notifier.deliver_transition(
                transition.previous, transition.updated, transition.hit_time
            )
        except Exception as e:
            logger.error(f"Transition notification error for {transition.updated.symbol}: {e}")

    async def _notify_new_signal(
        self,
        notifier: SignalNotifier | None,
        signal: Signal,
    ) -> None:
        if notifier is None or signal.dedup_key in self._sent:
            return
        try:
            notification_id = await notifier.deliver_new_signal(signal)
            if notification_id is not None:
                signal.notification_id = notification_id
        except Exception as e:
            logger.error(f"New signal notification error for {signal.symbol}: {e}")
        finally:
            self._sent.add(signal.dedup_key)

    def get_signals(self, symbol: str | None = None) -> list[Signal]:
        """Get a snapshot of tracked signals, optionally filtered by symbol.

        Returns copies; mutating them does not affect the registry.
        """
        return [
            signal.model_copy(deep=True)
            for signal in self._signals
            if symbol is None or signal.symbol == symbol
        ]

    def has_been_sent(self, signal: Signal) -> bool:
        """Check whether a new-signal notification was already attempted."""
        return signal.dedup_key in self._sent

    @property
    def tracked_symbols(self) -> list[str]:
        """Symbols with at least one tracked signal, in registry order."""
        return list(dict.fromkeys(s.symbol for s in self._signals))

    @property
    def active_count(self) -> int:
        """Get number of ACTIVE signals."""
        return sum(1 for s in self._signals if s.is_active)

    def __len__(self) -> int:
        return len(self._signals)
