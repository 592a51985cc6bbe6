"""Resource binder settings."""

from pydantic import Field

from .base import BaseAppSettings


class ResourceSettings(BaseAppSettings):
    """Create-and-poll bounds for external resources."""

    POLL_INTERVAL_SECONDS: float = Field(
        default=1.0, ge=0, description="Delay between two readiness polls"
    )
    MAX_WAIT_SECONDS: float = Field(
        default=300.0, gt=0, description="Maximum time to wait for a resource to become ready"
    )
    CREATE_RETRY_ATTEMPTS: int = Field(
        default=3, ge=1, description="Maximum creation attempts on transient provider errors"
    )
    CREATE_RETRY_INITIAL_INTERVAL_SECONDS: float = Field(
        default=0.5, ge=0, description="Delay before the first creation retry"
    )

    model_config = {"env_prefix": "RESOURCES__", "env_file": ".env", "extra": "ignore"}
