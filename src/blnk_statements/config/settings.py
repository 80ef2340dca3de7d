"""Configuration settings for Blnk statements."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Blnk API
    blnk_base_url: str = Field(
        default="http://localhost:5001", validation_alias="BLNK_BASE_URL"
    )
    blnk_api_key: SecretStr | None = Field(default=None, validation_alias="BLNK_API_KEY")
    blnk_timeout: float = Field(default=30.0, validation_alias="BLNK_TIMEOUT")
    # Connection-level retries handled by the httpx transport, not by us
    blnk_transport_retries: int = Field(default=0, validation_alias="BLNK_TRANSPORT_RETRIES")

    # Transaction store (Blnk's Postgres)
    blnk_db_url: SecretStr | None = Field(default=None, validation_alias="BLNK_DB_URL")
    db_pool_min: int = Field(default=0, validation_alias="DB_POOL_MIN")
    db_pool_max: int = Field(default=5, validation_alias="DB_POOL_MAX")

    # Statement request defaults
    statement_balance_id: str | None = Field(
        default=None, validation_alias="STATEMENT_BALANCE_ID"
    )
    statement_currency: str = Field(default="USD", validation_alias="STATEMENT_CURRENCY")
    statement_period_start: str | None = Field(
        default=None, validation_alias="STATEMENT_PERIOD_START"
    )
    statement_period_end: str | None = Field(
        default=None, validation_alias="STATEMENT_PERIOD_END"
    )
    statement_output_dir: str = Field(default="output", validation_alias="STATEMENT_OUTPUT_DIR")

    # Reconciliation
    name_resolution_concurrency: int = Field(
        default=8, ge=1, validation_alias="NAME_RESOLUTION_CONCURRENCY"
    )
    world_label_pattern: str = Field(default="world", validation_alias="WORLD_LABEL_PATTERN")

    # Webhooks
    blnk_webhook_secret: SecretStr | None = Field(
        default=None, validation_alias="BLNK_WEBHOOK_SECRET"
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
