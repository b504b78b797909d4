"""Global configuration management using pydantic-settings.

This module loads the target endpoint, credential, client and logging
settings from environment variables (or a local .env file) with strict
type validation. The Singleton accessor keeps one configuration instance
for the lifetime of a test run.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SuiteName = Literal["currency_exchange_rate", "time_series_daily"]


class GlobalConfig(BaseSettings):
    """Centralized configuration with environment variable binding.

    Attributes:
        app_name: Application identifier for logging.
        environment: Deployment environment the suite runs from.
        debug: Enable verbose tracebacks in log output.
        log_level: Minimum log level for output filtering.
        log_dir: Directory path for structured JSON log files.
        log_rotation: Log file rotation interval.
        log_retention: Log file retention period.
        base_url: Query endpoint of the financial-data API.
        api_key: API credential sent as the ``apikey`` query parameter.
        request_timeout_ms: Request timeout in milliseconds.
        user_agent: User-Agent header sent with every request.
        suites: Names of the suites the runner executes, in order.
        generate_reports: Emit Excel and HTML reports after a run.
        output_dir: Directory for generated reports.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application Metadata
    app_name: str = Field(default="VantageCheck", description="Application identifier")
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_dir: Path = Field(default=Path("logs"), description="Log output directory")
    log_rotation: str = Field(default="1 week", description="Log rotation interval")
    log_retention: str = Field(default="1 month", description="Log retention period")

    # Target Configuration
    base_url: str = Field(
        default="https://www.alphavantage.co/query",
        description="API query endpoint",
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("api_key", "alphavantage_api_key"),
        description="API credential",
    )

    # Client Parameters
    request_timeout_ms: int = Field(
        default=30000, ge=1000, le=120000, description="Request timeout in milliseconds"
    )
    user_agent: str = Field(default="VantageCheck/1.0", description="User-Agent header")

    # Run Configuration
    suites: list[SuiteName] = Field(
        default=["currency_exchange_rate", "time_series_daily"],
        min_length=1,
        description="Suites executed by the runner",
    )
    generate_reports: bool = Field(default=True, description="Emit reports after a run")
    output_dir: Path = Field(default=Path("output"), description="Report output directory")

    @field_validator("log_dir", "output_dir", mode="before")
    @classmethod
    def ensure_path(cls, value: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(value) if isinstance(value, str) else value

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Reject endpoints that are not plain http(s) URLs."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{value}'")
        return value

    @field_validator("api_key", mode="before")
    @classmethod
    def strip_api_key(cls, value: str | SecretStr) -> str:
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        return value.strip()

    @property
    def has_api_key(self) -> bool:
        """True when a non-empty credential is configured."""
        return bool(self.api_key.get_secret_value())


@lru_cache(maxsize=1)
def get_config() -> GlobalConfig:
    """Retrieve the singleton GlobalConfig instance.

    Returns:
        GlobalConfig: The validated configuration instance.
    """
    return GlobalConfig()
