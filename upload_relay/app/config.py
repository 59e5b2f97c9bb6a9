from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.shared_settings import shared_settings

SERVICE_DIR = Path(__file__).resolve().parents[1]


def resolve_service_path(path: Path) -> Path:
    path = Path(path)
    if path.is_absolute():
        return path
    return (SERVICE_DIR / path).resolve()


class Settings(BaseSettings):
    """Configuration for the upload relay service."""

    # Service metadata
    SERVICE_NAME: str = shared_settings.UPLOAD_RELAY_SERVICE_NAME
    SERVICE_VERSION: str = shared_settings.UPLOAD_RELAY_SERVICE_VERSION
    APP_HOST: str = Field(
        default=shared_settings.UPLOAD_RELAY_SERVICE_HOST,
        validation_alias=AliasChoices("HOST", "APP_HOST"),
    )
    APP_PORT: int = Field(
        default=shared_settings.UPLOAD_RELAY_SERVICE_PORT,
        validation_alias=AliasChoices("PORT", "APP_PORT"),
    )
    APP_ENV: str = shared_settings.APP_ENV
    DEBUG: bool = Field(
        default=shared_settings.UPLOAD_RELAY_DEBUG,
        validation_alias=AliasChoices("DEBUG", "APP_DEBUG"),
    )

    # Staging
    STAGING_DIR: Path = Field(
        default=Path(shared_settings.UPLOAD_RELAY_STAGING_DIR),
        validation_alias=AliasChoices("STAGING_DIR", "UPLOAD_TEMP_DIR"),
    )
    MAX_FILE_SIZE_MB: int = Field(
        default=shared_settings.UPLOAD_RELAY_MAX_FILE_SIZE_MB,
        validation_alias="MAX_FILE_SIZE_MB",
    )

    # Outbound PUT to object storage
    RELAY_CONNECT_TIMEOUT: float = shared_settings.RELAY_CONNECT_TIMEOUT
    RELAY_READ_TIMEOUT: float = shared_settings.RELAY_READ_TIMEOUT

    # Logging
    LOG_DIR: Path = Path(shared_settings.UPLOAD_RELAY_LOG_DIR)

    # CORS / security headers
    CORS_ORIGINS: str = shared_settings.UPLOAD_RELAY_CORS_ORIGINS
    CORS_ALLOW_CREDENTIALS: bool = False
    SECURITY_HEADERS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    @property
    def staging_dir_path(self) -> Path:
        return resolve_service_path(self.STAGING_DIR)

    @property
    def log_dir_path(self) -> Path:
        return resolve_service_path(self.LOG_DIR)


settings = Settings()
