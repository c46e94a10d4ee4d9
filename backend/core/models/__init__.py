"""Data models."""

from core.models.candle import Candle
from core.models.signal import (
    Action,
    Signal,
    SignalStatus,
    SignalType,
    Trend,
)
from core.models.market import CycleSnapshot, MarketData
from core.models.config import ClassifierConfig, TrackerConfig

__all__ = [
    "Candle",
    "Action",
    "Signal",
    "SignalStatus",
    "SignalType",
    "Trend",
    "CycleSnapshot",
    "MarketData",
    "ClassifierConfig",
    "TrackerConfig",
]
