"""Binance spot REST API client for universe and candle data.

Both public methods are failure-tolerant: they log and return a fallback
instead of raising, so one bad request never aborts a polling cycle.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from core.models import Candle

logger = logging.getLogger(__name__)

# Leveraged token markers
LEVERAGED_MARKERS = ("UP", "DOWN", "BULL", "BEAR")

# Stablecoins, fiat pairs and the two majors are left out of the universe
EXCLUDED_SYMBOLS = frozenset({
    "BTCUSDT", "ETHUSDT", "USDCUSDT", "FDUSDUSDT", "TUSDUSDT",
    "BUSDUSDT", "DAIUSDT", "USDPUSDT", "EURUSDT", "GBPUSDT",
})

FALLBACK_SYMBOLS = [
    "SOLUSDT", "BNBUSDT", "XRPUSDT", "ADAUSDT", "DOGEUSDT",
    "AVAXUSDT", "TRXUSDT", "DOTUSDT", "LINKUSDT", "MATICUSDT",
]


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            now = asyncio.get_running_loop().time()
            wait_time = self.last_call + self.interval - now
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = asyncio.get_running_loop().time()


def is_tradeable_symbol(symbol: str) -> bool:
    """Check if a symbol belongs in the universe (USDT quote, not leveraged/stable)."""
    if not symbol.endswith("USDT"):
        return False
    if any(marker in symbol for marker in LEVERAGED_MARKERS):
        return False
    return symbol not in EXCLUDED_SYMBOLS


class BinanceRestClient:
    """Binance spot REST API client."""

    BASE_URL = "https://api.binance.com"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.rate_limiter = RateLimiter()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.request(method, endpoint, params=params)
        response.raise_for_status()
        return response.json()

    async def get_top_symbols(self, limit: int = 50) -> list[str]:
        """
        Fetch the most liquid USDT pairs by 24h quote volume.

        Args:
            limit: Maximum number of symbols

        Returns:
            Symbols ordered most-liquid first, or the fallback list on failure
        """
        try:
            data = await self._request("GET", "/api/v3/ticker/24hr")
            tickers = [t for t in data if is_tradeable_symbol(t["symbol"])]
            tickers.sort(key=lambda t: float(t["quoteVolume"]), reverse=True)
            return [t["symbol"] for t in tickers[:limit]]
        except Exception as e:
            logger.error(f"Error fetching top symbols, using fallback list: {e}")
            return list(FALLBACK_SYMBOLS[:limit])

    async def get_candles(
        self,
        symbol: str,
        interval: str = "5m",
        limit: int = 100,
    ) -> list[Candle]:
        """
        Fetch recent candles from Binance.

        Args:
            symbol: Trading pair (e.g., "SOLUSDT")
            interval: Candle interval (e.g., "5m", "1h")
            limit: Number of candles (max 1000)

        Returns:
            Candles oldest first, or an empty list on failure
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, 1000),
        }

        try:
            data = await self._request("GET", "/api/v3/klines", params)
            return [
                Candle(
                    time=datetime.fromtimestamp(item[0] / 1000, tz=timezone.utc),
                    open=float(item[1]),
                    high=float(item[2]),
                    low=float(item[3]),
                    close=float(item[4]),
                    volume=float(item[5]),
                )
                for item in data
            ]
        except Exception as e:
            logger.debug(f"Error fetching candles for {symbol}: {e}")
            return []
