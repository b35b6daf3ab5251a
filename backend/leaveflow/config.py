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

    app_name: str = "Leaveflow"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leaveflow:leaveflow@db:5432/leaveflow"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    # ISO weekdays (Monday=1 .. Sunday=7) that never count as working days.
    weekend_days: list[int] = [6, 7]
    enforce_notice_period: bool = True
    default_country: str = "US"

    # Upper bound on waiting for another request's per-user row lock (PostgreSQL only).
    db_lock_timeout_ms: int = 5000
    db_pool_size: int = 10


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Override the cached settings (for testing). ``None`` resets the cache."""
    global _settings
    _settings = settings
