"""Configuration settings for the POS reconciliation job."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Optomate (POS)
    optomate_api_base: str = Field(..., validation_alias="OPTOMATE_API_BASE")
    optomate_username: str = Field(..., validation_alias="OPTOMATE_USERNAME")
    optomate_password: SecretStr = Field(..., validation_alias="OPTOMATE_PASSWORD")

    # Xero (ledger)
    # Only required when posting, not for dry runs
    xero_client_id: str | None = Field(default=None, validation_alias="XERO_CLIENT_ID")
    xero_client_secret: SecretStr | None = Field(
        default=None, validation_alias="XERO_CLIENT_SECRET"
    )
    xero_tenant_id: str | None = Field(default=None, validation_alias="XERO_TENANT_ID")
    xero_refresh_token: SecretStr | None = Field(
        default=None, validation_alias="XERO_REFRESH_TOKEN"
    )
    xero_api_url: str = Field(
        default="https://api.xero.com/api.xro/2.0", validation_alias="XERO_API_URL"
    )
    xero_token_url: str = Field(
        default="https://identity.xero.com/connect/token",
        validation_alias="XERO_TOKEN_URL",
    )

    # HTTP
    http_timeout: float = Field(default=30.0, validation_alias="HTTP_TIMEOUT")
    fetch_concurrency: int = Field(default=2, ge=1, validation_alias="FETCH_CONCURRENCY")

    # Trading day and reference data
    trading_timezone: str = Field(
        default="Australia/Sydney", validation_alias="TRADING_TIMEZONE"
    )
    reference_tables_path: str | None = Field(
        default=None, validation_alias="REFERENCE_TABLES_PATH"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
