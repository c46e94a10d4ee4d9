"""Exchange clients."""

from app.clients.binance_rest import BinanceRestClient, RateLimiter, is_tradeable_symbol

__all__ = [
    "BinanceRestClient",
    "RateLimiter",
    "is_tradeable_symbol",
]
