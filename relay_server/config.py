"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay settings, overridable through RELAY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=8080, description="Port to listen on")
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Total deadline for one outbound call in seconds, unset for none",
    )
    registry_capacity: int | None = Field(
        default=None,
        ge=1,
        description="Maximum stored response bodies, unset for unbounded",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    access_log: bool = Field(default=True, description="Log one line per served request")


@lru_cache
def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
