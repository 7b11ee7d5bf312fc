"""Configuration management for the alias runtime."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALIASES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Shutdown
    grace_period_seconds: float = Field(
        5.0,
        description="Seconds between SIGTERM and SIGKILL during shutdown",
    )

    # Observability
    log_level: str = Field("INFO", description="Log level")
    log_format: str = Field("console", description="Log renderer: console or json")

    @field_validator("grace_period_seconds")
    @classmethod
    def validate_grace_period(cls, v: float) -> float:
        """Reject negative grace periods."""
        if v < 0:
            raise ValueError(f"grace period must not be negative, got: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and console renderers are supported."""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError(f"log format must be 'json' or 'console', got: {v}")
        return v
