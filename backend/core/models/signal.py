"""Signal data models."""

import hashlib
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, model_validator


QUOTE_ASSET = "USDT"


class Action(str, Enum):
    """Classifier decision for a symbol."""

    BUY = "BUY"
    WAIT = "WAIT"


class Trend(str, Enum):
    """Price position relative to EMA20/EMA50."""

    UP = "UP"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"


class SignalType(str, Enum):
    """Rule that produced a signal."""

    PRIMO = "primo"
    WHALE_ENTRY = "whale_entry"
    MOMENTUM_BREAKOUT = "momentum_breakout"

    @property
    def label(self) -> str:
        return _SIGNAL_TYPE_LABELS[self]


_SIGNAL_TYPE_LABELS = {
    SignalType.PRIMO: "Primo Strategy 💎",
    SignalType.WHALE_ENTRY: "Whale Entry 🐋",
    SignalType.MOMENTUM_BREAKOUT: "Bullish Momentum 📈",
}


class SignalStatus(str, Enum):
    """Signal lifecycle status.

    Statuses are ranked; a signal only ever moves to a status with a
    higher rank, and never leaves a terminal status.
    """

    ACTIVE = "ACTIVE"
    TP1_HIT = "TP1_HIT"
    TP2_HIT = "TP2_HIT"
    TP3_HIT = "TP3_HIT"
    SL_HIT = "SL_HIT"
    CLOSED = "CLOSED"

    @property
    def rank(self) -> int:
        return _STATUS_RANKS[self]

    @property
    def tp_level(self) -> int | None:
        """0 for ACTIVE, n for TPn_HIT, None for SL_HIT/CLOSED."""
        return _TP_LEVELS.get(self)

    @property
    def is_terminal(self) -> bool:
        return self in (SignalStatus.SL_HIT, SignalStatus.CLOSED)

    @classmethod
    def for_target(cls, level: int) -> "SignalStatus":
        """Status for a take-profit level (1-3)."""
        if not 1 <= level <= 3:
            raise ValueError(f"Take-profit level must be 1-3, got {level}")
        return (cls.TP1_HIT, cls.TP2_HIT, cls.TP3_HIT)[level - 1]


_STATUS_RANKS = {status: rank for rank, status in enumerate(SignalStatus)}

_TP_LEVELS = {
    SignalStatus.ACTIVE: 0,
    SignalStatus.TP1_HIT: 1,
    SignalStatus.TP2_HIT: 2,
    SignalStatus.TP3_HIT: 3,
}


def _generate_signal_id(symbol: str, created_at: datetime) -> str:
    """Generate deterministic signal ID from symbol and creation time."""
    ts_str = created_at.strftime("%Y%m%d%H%M%S%f")
    key = f"{symbol}:{ts_str}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class Signal(BaseModel):
    """Long-only trade signal tracked across polling cycles."""

    id: str = ""  # Will be set in model_post_init
    symbol: str
    created_at: datetime
    signal_type: SignalType
    entry_price: float
    tps: list[float]
    sl: float
    rsi: float
    change_24h: float
    ema20: float = 0.0
    trend: Trend = Trend.NEUTRAL
    volume: float = 0.0
    is_halal: bool = False
    compliance_note: str = ""

    current_price: float = 0.0
    status: SignalStatus = SignalStatus.ACTIVE
    hit_time: datetime | None = None
    notification_id: int | None = None

    @model_validator(mode="after")
    def _validate_levels(self):
        if len(self.tps) != 3:
            raise ValueError(f"expected 3 targets, got {len(self.tps)}")
        if not self.tps[0] < self.tps[1] < self.tps[2]:
            raise ValueError(f"targets must be strictly ascending: {self.tps}")
        if not self.sl < self.entry_price:
            raise ValueError(
                f"stop {self.sl} must be below entry {self.entry_price}"
            )
        return self

    def model_post_init(self, __context) -> None:
        """Generate deterministic ID and seed current price."""
        if not self.id:
            object.__setattr__(
                self, "id", _generate_signal_id(self.symbol, self.created_at)
            )
        if not self.current_price:
            object.__setattr__(self, "current_price", self.entry_price)

    @property
    def dedup_key(self) -> tuple[str, datetime]:
        return (self.symbol, self.created_at)

    @property
    def base_asset(self) -> str:
        return self.symbol.removesuffix(QUOTE_ASSET)

    @property
    def is_active(self) -> bool:
        return self.status == SignalStatus.ACTIVE

    @property
    def profit_percent(self) -> float:
        """Percent move from entry to the level the current status denotes.

        For ACTIVE signals this is the unrealised move to the current price.
        """
        if self.status == SignalStatus.SL_HIT:
            level_price = self.sl
        elif self.status.tp_level:
            level_price = self.tps[self.status.tp_level - 1]
        else:
            level_price = self.current_price
        return (level_price - self.entry_price) / self.entry_price * 100

    def evaluate_status(self, price: float) -> SignalStatus:
        """Return the status this signal should hold at `price`.

        Targets are checked from the highest down and take priority over
        the stop. The stop is only considered while the signal is ACTIVE.
        """
        if self.status.is_terminal:
            return self.status

        candidate = self.status
        for level in (3, 2, 1):
            if price >= self.tps[level - 1]:
                candidate = SignalStatus.for_target(level)
                break
        else:
            if self.status == SignalStatus.ACTIVE and price <= self.sl:
                candidate = SignalStatus.SL_HIT

        if candidate.rank > self.status.rank:
            return candidate
        return self.status

    def update_price(self, price: float, timestamp: datetime) -> bool:
        """
        Refresh the current price and advance status.
        Returns True if status changed.
        """
        self.current_price = price

        new_status = self.evaluate_status(price)
        if new_status == self.status:
            return False

        self.status = new_status
        self.hit_time = timestamp
        return True

    def is_expired(
        self,
        now: datetime,
        active_ttl: timedelta,
        hit_retention: timedelta,
    ) -> bool:
        """Check whether the retention window for this signal has elapsed."""
        if self.status == SignalStatus.ACTIVE:
            return now - self.created_at >= active_ttl
        if self.hit_time is None:
            return True
        return now - self.hit_time >= hit_retention
