"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    rotation_size: int = 10
    rotation_weekday: int = 0
    rotation_hour: int = 0
    rotation_timezone: str = "UTC"
    scheduler_enabled: bool = True
    scheduler_max_workers: int = 8
    scheduler_user_timeout_seconds: float = 30.0
    scheduler_retry_attempts: int = 2
    scheduler_retry_delay_seconds: float = 0.5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
