"""Business services."""

from app.services.signal_poller import SignalPoller
from app.services.telegram_notifier import (
    TelegramNotifier,
    format_new_signal,
    format_transition,
)

__all__ = [
    "SignalPoller",
    "TelegramNotifier",
    "format_new_signal",
    "format_transition",
]
