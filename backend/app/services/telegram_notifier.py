"""Telegram notification sink.

Delivers new-signal and status-transition messages through the Bot API
sendMessage endpoint. Transition messages are threaded as replies to the
original signal message when its message id is known.

Delivery is best-effort: HTTP and API errors are logged, never raised.
"""

import logging
from datetime import datetime

import httpx

from core.models import Signal, SignalStatus

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


def _fmt_price(value: float) -> str:
    return f"{value:.4f}"


def format_new_signal(signal: Signal) -> str:
    """Build the HTML message for a new BUY signal."""
    halal_badge = "✅ Halal (permissible)" if signal.is_halal else "⚠️ Unconfirmed/mixed"
    tp1, tp2, tp3 = signal.tps

    return (
        f"🟢 <b>New BUY signal: {signal.base_asset}</b>\n"
        f"<b>Type:</b> {signal.signal_type.label}\n"
        f"\n"
        f"<b>Price:</b> {signal.entry_price}\n"
        f"<b>Compliance:</b> {halal_badge}\n"
        f"<b>Note:</b> {signal.compliance_note}\n"
        f"\n"
        f"<b>RSI:</b> {signal.rsi:.1f}\n"
        f"<b>Change:</b> {signal.change_24h:.2f}%\n"
        f"\n"
        f"🎯 <b>Targets:</b>\n"
        f"1️⃣ {_fmt_price(tp1)}\n"
        f"2️⃣ {_fmt_price(tp2)}\n"
        f"3️⃣ {_fmt_price(tp3)}\n"
        f"\n"
        f"🛡 <b>Stop loss:</b> {_fmt_price(signal.sl)}\n"
        f"\n"
        f"⏱ {signal.created_at:%H:%M:%S} UTC"
    )


def format_transition(signal: Signal, hit_time: datetime) -> str:
    """Build the HTML message for a status change.

    Args:
        signal: Signal carrying the new status and current price
        hit_time: Time the new status was reached
    """
    duration = int((hit_time - signal.created_at).total_seconds() // 60)

    if signal.status == SignalStatus.SL_HIT:
        emoji = "❌"
        status_text = "🛑 Stop loss hit"
    else:
        emoji = "💰"
        status_text = f"✅ Target {signal.status.tp_level} hit"

    return (
        f"{emoji} <b>Signal update: {signal.base_asset}</b>\n"
        f"\n"
        f"<b>Status:</b> {status_text}\n"
        f"<b>Entry price:</b> {signal.entry_price}\n"
        f"<b>Current price:</b> {signal.current_price}\n"
        f"<b>Profit/loss:</b> {signal.profit_percent:.2f}%\n"
        f"<b>Duration:</b> {duration} min\n"
        f"\n"
        f"⏱ {hit_time:%H:%M:%S} UTC"
    )


class TelegramNotifier:
    """Send signal notifications to a Telegram chat."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=TELEGRAM_API_URL,
                timeout=self.timeout,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send_message(
        self,
        text: str,
        reply_to: int | None = None,
    ) -> int | None:
        """Send an HTML message and return its message id."""
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        if reply_to is not None:
            payload["reply_to_message_id"] = reply_to

        client = await self._get_client()
        response = await client.post(f"/bot{self.bot_token}/sendMessage", json=payload)
        response.raise_for_status()
        return response.json()["result"]["message_id"]

    async def deliver_new_signal(self, signal: Signal) -> int | None:
        """Send a new signal message. Returns the Telegram message id."""
        try:
            message_id = await self._send_message(format_new_signal(signal))
            logger.info(f"Telegram sent for {signal.symbol}")
            return message_id
        except Exception as e:
            logger.error(f"Failed to send Telegram signal for {signal.symbol}: {e}")
            return None

    async def deliver_transition(
        self,
        previous: Signal,
        updated: Signal,
        hit_time: datetime,
    ) -> None:
        """Send a status update as a reply to the original signal message."""
        try:
            await self._send_message(
                format_transition(updated, hit_time),
                reply_to=updated.notification_id,
            )
            logger.info(
                f"Telegram update for {updated.symbol}: "
                f"{previous.status.value} -> {updated.status.value}"
            )
        except Exception as e:
            logger.error(f"Failed to send Telegram update for {updated.symbol}: {e}")
