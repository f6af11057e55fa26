"""Environment-driven settings and logging setup."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from roleplay_ai.types import DEFAULT_BASE_URL, ProviderConfig, ProviderType

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class RoleplaySettings(BaseSettings):
    """Default credentials and transport options loaded from ``ROLEPLAY_AI_*`` variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ROLEPLAY_AI_", extra="ignore")

    api_key: str = Field(default="", description="API key sent to the provider.")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Provider base URL.")
    provider_type: ProviderType = Field(default="openai", description="Provider request format.")
    timeout_s: float | None = Field(
        default=None,
        description="HTTP timeout in seconds; unset leaves cancellation to the host.",
    )
    log_level: str = Field(default="WARNING", description="Level for the roleplay_ai logger.")

    def credentials(self) -> ProviderConfig:
        """Return the configured credentials as a ``ProviderConfig``."""
        return ProviderConfig(
            api_key=self.api_key,
            base_url=self.base_url,
            provider_type=self.provider_type,
        )


@lru_cache
def get_settings() -> RoleplaySettings:
    """Return cached settings."""

    return RoleplaySettings()


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger."""
    logger = logging.getLogger("roleplay_ai")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level if level is not None else get_settings().log_level.upper())
    return logger
