"""Configuration models for the window synchronization engine."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncConfig(BaseModel):
    """Configuration for a synchronization engine."""

    key_field: str = Field(
        default="key",
        min_length=1,
        description="Reserved representation field holding the row key",
    )
    max_range_length: int | None = Field(
        default=1000,
        ge=1,
        description="Largest window a client may request; longer requests are clamped",
    )
    clear_evicted_rows: bool = Field(
        default=True,
        description="Emit clear operations for rows that leave the window",
    )
    provider_max_retries: int = Field(
        default=0, ge=0, le=10, description="Retries for failing provider calls"
    )
    provider_retry_base_delay: float = Field(
        default=0.1, ge=0.0, le=10.0, description="Initial provider retry delay in seconds"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the WINDOWSYNC_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="WINDOWSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
