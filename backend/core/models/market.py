"""Per-cycle market snapshot consumed by the signal tracker."""

from dataclasses import dataclass, field
from typing import Mapping

from core.models.candle import Candle


@dataclass(frozen=True, slots=True)
class MarketData:
    """Fresh price and candle history for one symbol."""

    price: float
    candles: tuple[Candle, ...]

    @property
    def change_percent(self) -> float:
        """Percent change from the first candle's open to the current price."""
        if not self.candles or self.candles[0].open == 0:
            return 0.0
        first_open = self.candles[0].open
        return (self.price - first_open) / first_open * 100

    @classmethod
    def from_candles(cls, candles: list[Candle]) -> "MarketData":
        """Build from a non-empty candle list, pricing at the latest close."""
        return cls(price=candles[-1].close, candles=tuple(candles))


@dataclass(frozen=True, slots=True)
class CycleSnapshot:
    """Immutable input to one tracker cycle.

    Attributes:
        universe: Symbols eligible for new signals this cycle.
        market: Fresh data for symbols in the universe or already tracked.
            Symbols whose fetch failed are absent.
    """

    universe: tuple[str, ...]
    market: Mapping[str, MarketData] = field(default_factory=dict)
