"""Configuration for the workflow engine."""

from .app import AppSettings, get_app_settings
from .base import BaseAppSettings
from .llm import LLMSettings
from .resources import ResourceSettings
from .settings import Settings, get_settings
from .workflow import RunnerSettings, ToolLoopSettings

__all__ = [
    "AppSettings",
    "BaseAppSettings",
    "LLMSettings",
    "ResourceSettings",
    "RunnerSettings",
    "Settings",
    "ToolLoopSettings",
    "get_app_settings",
    "get_settings",
]
