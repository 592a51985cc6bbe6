"""Workflow runner and tool loop settings."""

from pydantic import Field

from .base import BaseAppSettings


class RunnerSettings(BaseAppSettings):
    """Bounds applied to a single workflow run."""

    MAX_STEPS: int = Field(
        default=50, ge=1, description="Maximum node transitions before a run is aborted"
    )

    model_config = {"env_prefix": "WORKFLOW__", "env_file": ".env", "extra": "ignore"}


class ToolLoopSettings(BaseAppSettings):
    """Bounds and retry policy of the tool invocation loop."""

    MAX_TURNS: int = Field(
        default=25, ge=1, description="Maximum backend turns per agent node"
    )
    TOOL_TIMEOUT_SECONDS: float = Field(
        default=180.0, gt=0, description="Timeout for a single tool execution"
    )
    BACKEND_TIMEOUT_SECONDS: float = Field(
        default=120.0, gt=0, description="Timeout for a single backend response"
    )

    # Retry settings
    BACKEND_RETRY_ATTEMPTS: int = Field(
        default=3, ge=1, description="Maximum backend attempts per turn, including the first"
    )
    BACKEND_RETRY_INITIAL_INTERVAL_SECONDS: float = Field(
        default=1.0, ge=0, description="Delay before the first backend retry"
    )
    BACKEND_RETRY_BACKOFF_COEFFICIENT: float = Field(
        default=2.0, ge=1.0, description="Multiplier applied to the delay after each retry"
    )
    BACKEND_RETRY_MAX_INTERVAL_SECONDS: float = Field(
        default=30.0, ge=0, description="Upper bound for the delay between retries"
    )

    model_config = {"env_prefix": "TOOL_LOOP__", "env_file": ".env", "extra": "ignore"}
