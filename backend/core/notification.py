"""Notification sink protocol used by the signal tracker.

Implementations are best-effort: they log their own delivery failures
and should not raise. The tracker still guards every call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from core.models.signal import Signal


@runtime_checkable
class SignalNotifier(Protocol):
    """Outbound channel for new signals and status transitions."""

    async def deliver_new_signal(self, signal: Signal) -> int | None:
        """Deliver a new signal.

        Returns:
            Correlation id of the delivered message (used to thread
            follow-up transitions), or None if delivery failed.
        """
        ...

    async def deliver_transition(
        self,
        previous: Signal,
        updated: Signal,
        hit_time: datetime,
    ) -> None:
        """Deliver a status transition.

        Args:
            previous: Signal as it was before this cycle's update.
            updated: Signal after the update (carries the new status).
            hit_time: Time the new status was reached.
        """
        ...
