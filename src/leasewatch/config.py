"""LeaseWatch configuration management."""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """LeaseWatch configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LEASEWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # General
    env: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    debug: bool = False

    # Event stream (read-only; no reconnection is attempted here)
    stream_enabled: bool = Field(default=True, description="Consume the event stream on startup")
    stream_url: Optional[str] = Field(
        default="http://localhost:5877/stream",
        description="text/event-stream endpoint publishing policies and leases",
    )
    stream_connect_timeout_seconds: float = Field(
        default=10.0, description="Connect timeout for the event stream"
    )

    # Clock ticker
    tick_interval_seconds: float = Field(
        default=1.0, description="Label refresh and expiry sweep cadence"
    )
    tick_shutdown_timeout_seconds: float = Field(
        default=5.0, description="Grace period for the ticker to stop before it is cancelled"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Validators
    @field_validator("stream_url")
    @classmethod
    def validate_stream_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate the stream URL is HTTP(S)."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError(f"stream_url must start with http:// or https://, got {v}")
        return v

    @field_validator("tick_interval_seconds", "tick_shutdown_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got {v}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v


settings = Settings()
