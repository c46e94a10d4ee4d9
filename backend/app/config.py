"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Binance API (spot market data, public endpoints)
    binance_base_url: str = "https://api.binance.com"
    binance_timeout: float = 5.0

    # Universe and market data
    universe_size: int = 50
    interval: str = "5m"
    candle_limit: int = 100
    fetch_batch_size: int = 10
    batch_delay: float = 0.2  # seconds between fetch batches

    # Polling cadence
    cycle_period: float = 60.0
    min_cycle_delay: float = 10.0

    # Signal retention
    active_ttl_hours: float = 24.0
    hit_retention_minutes: float = 30.0

    # Telegram notifications (notifications.yaml overrides these)
    notification_config_path: str = "notifications.yaml"
    telegram_enabled: bool = False
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
