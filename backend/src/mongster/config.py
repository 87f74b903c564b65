"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for local development. The SMTP
    endpoint binds to a non-privileged port by default so the server can run
    without root.

    Environment Variables:
        DATABASE_URL: SQLAlchemy connection string for the mail store
        SMTP_HOST: SMTP bind address
        SMTP_PORT: SMTP listen port
        SMTP_HOSTNAME: Hostname announced in the SMTP greeting
        SMTP_MAX_SIZE: Maximum accepted message size in bytes
        HTTP_HOST: Dashboard bind address
        HTTP_PORT: Dashboard listen port
        POLL_INTERVAL_SECONDS: Dashboard refresh interval
        ACCEPTOR_BUFFER_SIZE: Recently accepted messages kept in memory (0 disables)
        DEBUG: Enable SQL echo (default False)
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
    """

    # Mail store
    DATABASE_URL: str = "sqlite:///./mongster.db"

    # SMTP acceptor
    SMTP_HOST: str = "127.0.0.1"
    SMTP_PORT: int = 2525
    SMTP_HOSTNAME: str = "mongster.local"
    SMTP_MAX_SIZE: int = 26_214_400  # 25 MB
    ACCEPTOR_BUFFER_SIZE: int = 0

    # Dashboard
    HTTP_HOST: str = "127.0.0.1"
    HTTP_PORT: int = 3000
    POLL_INTERVAL_SECONDS: float = 30.0

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
