"""Shared configuration definitions for all microservices."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore[import-not-found]


class SharedSettings(BaseSettings):
    """Global defaults and environment-driven overrides for all services."""

    # Environment
    APP_ENV: str = "development"

    # Upload relay service defaults
    UPLOAD_RELAY_SERVICE_NAME: str = "DocumentAI Upload Relay Agent"
    UPLOAD_RELAY_SERVICE_VERSION: str = "1.0.0"
    UPLOAD_RELAY_SERVICE_HOST: str = "0.0.0.0"
    UPLOAD_RELAY_SERVICE_PORT: int = 3002
    UPLOAD_RELAY_DEBUG: bool = False
    UPLOAD_RELAY_STAGING_DIR: str = "tempUploads"
    UPLOAD_RELAY_MAX_FILE_SIZE_MB: int = 10
    UPLOAD_RELAY_LOG_DIR: str = "logs"

    # Outbound object-storage defaults (seconds)
    RELAY_CONNECT_TIMEOUT: float = 10.0
    RELAY_READ_TIMEOUT: float = 120.0

    # CORS defaults (comma separated allow-list, empty allows no browser origin)
    UPLOAD_RELAY_CORS_ORIGINS: str = ""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )


shared_settings = SharedSettings()
