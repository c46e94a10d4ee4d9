"""Polling driver: fetch market data and run one tracker cycle per period.

Each cycle:
1. Read notification config
2. Fetch the symbol universe
3. Fetch candles for universe + tracked symbols in bounded batches
4. Hand an immutable snapshot to the SignalTracker

The loop is self-paced: after each cycle it sleeps
max(min_cycle_delay, cycle_period - duration). A failing cycle is logged
and skipped; it never stops the loop.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable

from app.clients import BinanceRestClient
from app.config import Settings, get_settings
from app.notification_config import NotificationConfig, load_notification_config
from app.services.telegram_notifier import TelegramNotifier
from core.models import CycleSnapshot, MarketData
from core.signal_tracker import CycleResult, SignalTracker

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[], NotificationConfig]


class SignalPoller:
    """
    Drive the signal tracker from live market data.

    Owns no signal state; the tracker is passed in so the API layer
    can read the same registry.
    """

    def __init__(
        self,
        client: BinanceRestClient,
        tracker: SignalTracker,
        settings: Settings | None = None,
        load_config: ConfigLoader | None = None,
    ):
        self.client = client
        self.tracker = tracker
        self.settings = settings or get_settings()
        self._load_config = load_config or (
            lambda: load_notification_config(
                Path(self.settings.notification_config_path), self.settings
            )
        )

        self._notifier: TelegramNotifier | None = None
        self._task: asyncio.Task | None = None
        self._running = False
        self.cycles_run = 0
        self.last_universe: list[str] = []

    async def fetch_market_data(self, symbols: list[str]) -> dict[str, MarketData]:
        """
        Fetch candles for symbols in batches of settings.fetch_batch_size.

        Symbols whose fetch fails or returns no candles are left out.
        """
        market: dict[str, MarketData] = {}
        batch_size = max(1, self.settings.fetch_batch_size)

        for start in range(0, len(symbols), batch_size):
            batch = symbols[start : start + batch_size]
            results = await asyncio.gather(
                *[
                    self.client.get_candles(
                        symbol, self.settings.interval, self.settings.candle_limit
                    )
                    for symbol in batch
                ],
                return_exceptions=True,
            )

            for symbol, candles in zip(batch, results):
                if isinstance(candles, Exception):
                    logger.debug(f"Fetch failed for {symbol}: {candles}")
                    continue
                if candles:
                    market[symbol] = MarketData.from_candles(candles)

            if start + batch_size < len(symbols) and self.settings.batch_delay > 0:
                await asyncio.sleep(self.settings.batch_delay)

        return market

    async def _resolve_notifier(
        self, config: NotificationConfig
    ) -> TelegramNotifier | None:
        """Reuse the notifier while the destination is unchanged."""
        if not config.is_deliverable:
            return None

        notifier = self._notifier
        if (
            notifier is None
            or notifier.bot_token != config.token
            or notifier.chat_id != config.chat_id
        ):
            if notifier is not None:
                await notifier.close()
            notifier = TelegramNotifier(config.token, config.chat_id)
            self._notifier = notifier
        return notifier

    async def run_cycle(self) -> CycleResult:
        """Run one fetch-and-track cycle."""
        notifier = await self._resolve_notifier(self._load_config())

        universe = await self.client.get_top_symbols(self.settings.universe_size)
        self.last_universe = universe

        # Tracked symbols need fresh prices even if they dropped out of the universe
        symbols = list(dict.fromkeys([*universe, *self.tracker.tracked_symbols]))
        market = await self.fetch_market_data(symbols)

        snapshot = CycleSnapshot(universe=tuple(universe), market=market)
        result = await self.tracker.run_cycle(snapshot, notifier=notifier)

        self.cycles_run += 1
        logger.debug(
            f"Fetched {len(market)}/{len(symbols)} symbols, "
            f"{self.tracker.active_count} active signals"
        )
        return result

    def next_delay(self, duration: float) -> float:
        """Delay before the next cycle given this cycle's duration."""
        return max(self.settings.min_cycle_delay, self.settings.cycle_period - duration)

    async def run_forever(self) -> None:
        """Run cycles until stopped."""
        logger.info("Starting analysis loop...")
        self._running = True

        while self._running:
            start = time.monotonic()
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Critical error in analysis loop")

            duration = time.monotonic() - start
            delay = self.next_delay(duration)
            logger.info(f"Analysis cycle took {duration:.1f}s. Waiting {delay:.1f}s...")
            await asyncio.sleep(delay)

    def start(self) -> asyncio.Task:
        """Start the polling loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        """Stop the polling loop and close the notifier client."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._notifier:
            await self._notifier.close()
            self._notifier = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
