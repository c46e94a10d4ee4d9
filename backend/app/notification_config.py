"""Notification configuration loaded from notifications.yaml.

The file is read once per polling cycle so edits take effect without a
restart. Without a file, the Telegram settings from the environment
(.env) are used.

Example notifications.yaml:

    enabled: true
    bot_token_env: TELEGRAM_BOT_TOKEN   # or bot_token: "123456:ABC..."
    chat_id: "-1001234567890"
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationConfig(BaseModel):
    """Destination and on/off switch for outbound notifications."""

    enabled: bool = False
    bot_token: str = ""
    bot_token_env: str = ""
    chat_id: str = ""

    @field_validator("chat_id", mode="before")
    @classmethod
    def _coerce_chat_id(cls, value):
        # YAML parses numeric chat ids as int
        return "" if value is None else str(value)

    @property
    def token(self) -> str:
        """Bot token, resolved from bot_token_env when set."""
        if self.bot_token_env:
            return os.environ.get(self.bot_token_env, "")
        return self.bot_token

    @property
    def is_deliverable(self) -> bool:
        """Enabled and both credentials present."""
        return self.enabled and bool(self.token) and bool(self.chat_id)


def load_notification_config(
    path: Path | None = None,
    settings: Settings | None = None,
) -> NotificationConfig:
    """Load notification config from YAML file.

    Falls back to environment settings if the file doesn't exist. A file
    that fails to parse or validate disables notifications for the cycle
    so tracking carries on.
    """
    settings = settings or get_settings()
    config_path = path or Path(settings.notification_config_path)

    # Load .env into os.environ so bot_token_env can be resolved
    load_dotenv(config_path.parent / ".env", override=False)

    if not config_path.exists():
        logger.debug("No %s found, using environment settings", config_path)
        return NotificationConfig(
            enabled=settings.telegram_enabled,
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"expected a mapping, got {type(raw).__name__}")
        return NotificationConfig(**raw)
    except (yaml.YAMLError, ValidationError, ValueError) as e:
        logger.error("Invalid %s, notifications disabled: %s", config_path, e)
        return NotificationConfig()
