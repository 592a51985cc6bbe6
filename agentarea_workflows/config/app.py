"""Application and logging settings."""

from functools import lru_cache

from pydantic import Field

from .base import BaseAppSettings


class AppSettings(BaseAppSettings):
    """General application configuration."""

    APP_NAME: str = "AgentArea Workflows"
    DEBUG: bool = False

    LOG_LEVEL: str = Field(default="INFO", description="Root logging level")
    STRUCTURED_LOGGING: bool = Field(
        default=False, description="Emit JSON log lines instead of plain text"
    )


@lru_cache
def get_app_settings() -> AppSettings:
    """Get application settings."""
    return AppSettings()
