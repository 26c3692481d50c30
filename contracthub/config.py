from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "ContractHub"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://contracthub:contracthub@db:5432/contracthub"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    log_level: str = "INFO"

    # Shared secret for external schedulers hitting POST /contracts/cron.
    cron_secret_token: str | None = None

    auth_cookie_name: str = "auth-token"
    auth_token_ttl_hours: int = 24 * 7

    reconcile_interval_seconds: int = 86400
    reconcile_batch_size: int = 500


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
