"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the Redis Cluster nodes, loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_CLUSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")

    # Cluster client transport
    connect_timeout_s: float = Field(
        default=10,
        description="Socket connect timeout for cluster nodes in seconds",
    )
    socket_timeout_s: float = Field(
        default=30,
        description="Socket read/write timeout for cluster nodes in seconds",
    )

    # Subscription sessions
    pubsub_poll_interval_s: float = Field(
        default=0.1,
        description="How long the pub/sub worker blocks per poll; bounds teardown latency",
    )
    manual_trigger_timeout_s: float | None = Field(
        default=None,
        description="How long a manual trigger waits for the first message (None waits forever)",
    )

    @field_validator(
        "connect_timeout_s",
        "socket_timeout_s",
        "pubsub_poll_interval_s",
        "manual_trigger_timeout_s",
    )
    @classmethod
    def validate_positive(cls, v: float | None) -> float | None:
        """Validate that timeouts are positive."""
        if v is not None and v <= 0:
            raise ValueError("timeouts must be positive")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
