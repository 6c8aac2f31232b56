"""Runtime settings for fieldwork-billing.

Every field can be set through an ``FWB_``-prefixed environment variable or a
``.env`` file in the working directory, e.g.::

    FWB_SQLITE_PATH=/var/lib/fieldwork/documents.db
    FWB_ESTIMATE_VALIDITY_DAYS=45
    FWB_ALLOW_RECONVERSION=false
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Storage, logging, HTTP and document lifecycle settings."""

    model_config = SettingsConfigDict(
        env_prefix="FWB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Fieldwork Billing"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    sqlite_path: Path = Field(
        default=Path("fieldwork_billing.db"),
        description="SQLite file holding the persisted document snapshot",
    )
    autosave: bool = Field(
        default=True,
        description="Flush the document snapshot to storage after every mutation",
    )

    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = "console"
    log_file: Path | None = None

    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_reload: bool = False

    estimate_validity_days: int = Field(
        default=30, ge=0, description="Days an estimate stays valid after creation"
    )
    default_payment_terms_days: int = Field(
        default=30, ge=0, description="Invoice due date offset when no terms are given"
    )
    number_padding: int = Field(
        default=4, ge=1, le=12, description="Zero padding of document numbers"
    )
    allow_reconversion: bool = Field(
        default=True,
        description="Allow converting a document that already has a conversion target",
    )
    reject_negative_amounts: bool = Field(
        default=False,
        description="Reject negative quantities, rates and non-positive payments",
    )

    @model_validator(mode="after")
    def apply_environment_defaults(self) -> "Settings":
        # Development always runs with debug on; production logs JSON unless
        # a format was chosen explicitly.
        if self.environment == Environment.DEVELOPMENT:
            self.debug = True
        if (
            self.environment == Environment.PRODUCTION
            and "log_format" not in self.model_fields_set
        ):
            self.log_format = "json"
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """Load settings once; ``get_settings.cache_clear()`` forces a reload."""
    return Settings()
