"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    foods_table: str = "foods"
    import_batch_size: int = 100
    max_upload_bytes: int = 10 * 1024 * 1024
    fetch_timeout_seconds: float = 30.0
    job_ttl_seconds: int = 86400
    default_brand: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
