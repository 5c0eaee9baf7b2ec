"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load `backend/.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"

    # Store connection. DATABASE_URL wins; otherwise it is assembled from the
    # discrete DB_* variables used by the container setup.
    database_url: str = ""
    db_user: str = "postgres"
    db_password: str = "admin123"
    db_host: str = "postgres"
    db_port: int = 5432
    db_name: str = "bonus_proposals"

    # Database lifecycle
    db_init_max_attempts: int = Field(default=5, ge=1)
    db_init_retry_delay_seconds: float = Field(default=5.0, ge=0)
    db_reset_on_startup: bool = False
    db_seed_sample_data: bool = False

    cors_origins: str = "*"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3642

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        if not self.database_url.strip():
            self.database_url = (
                f"postgresql+psycopg://{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )
        # In dev, seed the sample proposals into an empty table unless told otherwise.
        if "db_seed_sample_data" not in self.model_fields_set and self.environment == "dev":
            self.db_seed_sample_data = True
        return self


settings = Settings()
