"""Application configuration using Pydantic Settings.

Environment Variable Strategy:
- Every field has a development default for local/CI convenience
- Engine defaults (date tolerance, similarity threshold) can be overridden per run
"""

from functools import cached_property

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_comma_list(value: str | list[str] | None, default: list[str]) -> list[str]:
    """Parse comma-separated string into list."""
    if value is None:
        return default
    if isinstance(value, list):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database holding the manual override map
    database_url: str = "sqlite+aiosqlite:///./ledger_recon.db"

    # App settings
    environment: str = Field(
        default="development", validation_alias=AliasChoices("ENVIRONMENT", "ENV")
    )
    debug: bool = False

    # CORS origins - stored as string, parsed via property
    # Env format: CORS_ORIGINS="http://localhost:3000,http://localhost:3001"
    cors_origins_str: str | None = Field(default=None, validation_alias="CORS_ORIGINS")

    # Reconciliation engine defaults
    date_tolerance_days: int = Field(
        default=3,
        ge=0,
        le=10,
        validation_alias=AliasChoices("RECONCILIATION_DATE_TOLERANCE_DAYS", "DATE_TOLERANCE_DAYS"),
    )
    min_similarity_score: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("RECONCILIATION_MIN_SIMILARITY_SCORE", "MIN_SIMILARITY_SCORE"),
    )
    reconciliation_config_path: str | None = Field(
        default=None,
        validation_alias="RECONCILIATION_CONFIG_PATH",
    )

    # Manual override batch writes
    override_lock_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="OVERRIDE_LOCK_TIMEOUT_SECONDS",
    )

    @cached_property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from env string or use defaults."""
        return parse_comma_list(
            self.cors_origins_str,
            [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ],
        )


settings = Settings()
