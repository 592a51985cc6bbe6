"""Main application settings container."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from .app import AppSettings
from .llm import LLMSettings
from .resources import ResourceSettings
from .workflow import RunnerSettings, ToolLoopSettings


class Settings(BaseSettings):
    """Main application settings container."""

    app: AppSettings = Field(default_factory=AppSettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    tool_loop: ToolLoopSettings = Field(default_factory=ToolLoopSettings)
    resources: ResourceSettings = Field(default_factory=ResourceSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get the main application settings."""
    return Settings(
        app=AppSettings(),
        runner=RunnerSettings(),
        tool_loop=ToolLoopSettings(),
        resources=ResourceSettings(),
        llm=LLMSettings(),
    )
