"""Pydantic configuration models for application settings."""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, validator


class DatabaseSettings(BaseModel):
    """Configuration for the export store."""

    url: str = Field(default="sqlite:///data/exporter.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Log every SQL statement")

    @validator("url")
    def validate_url(cls, v: str) -> str:
        """Validate database URL."""
        if "://" not in v:
            raise ValueError(f"Invalid database URL: {v}")
        return v

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class QuotaSettings(BaseModel):
    """Configuration for daily quota accounting."""

    daily_limit: int = Field(default=10000, ge=1, description="Remote API units available per day")
    ceiling_percent: int = Field(default=70, ge=1, le=100, description="Share of the daily limit exports may use")
    page_cost: int = Field(default=2, ge=1, description="Units charged per fetched page")
    reset_timezone: str = Field(default="America/Los_Angeles", description="Timezone whose midnight resets quota")

    @validator("reset_timezone")
    def validate_reset_timezone(cls, v: str) -> str:
        """Validate the reset timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def ceiling(self) -> int:
        """Ceiling in quota units."""
        return self.daily_limit * self.ceiling_percent // 100

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class ExportSettings(BaseModel):
    """Configuration for export batch behavior."""

    page_size: int = Field(default=50, ge=1, le=50, description="Items requested per page")
    missing_source_policy: str = Field(default="skip", description="What to do with sources that vanished")
    english_language_prefix: str = Field(default="en", min_length=1, description="Language prefix counted as English")

    @validator("missing_source_policy")
    def validate_missing_source_policy(cls, v: str) -> str:
        """Validate missing source policy."""
        valid_policies = {"skip", "fail"}
        if v.lower() not in valid_policies:
            raise ValueError(f"Invalid missing source policy: {v}. Must be one of {valid_policies}")
        return v.lower()

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class RetrySettings(BaseModel):
    """Configuration for auto-resume backoff after transient failures."""

    initial_delay_seconds: int = Field(default=300, ge=1, description="Delay after the first failure")
    backoff_factor: float = Field(default=2.0, ge=1.0, le=10.0, description="Exponential backoff factor")
    max_delay_seconds: int = Field(default=21600, ge=1, description="Maximum delay between retries in seconds")

    @validator("max_delay_seconds")
    def validate_max_delay(cls, v: int, values: dict[str, Any]) -> int:
        """Validate that the cap is not below the first delay."""
        initial = values.get("initial_delay_seconds")
        if initial is not None and v < initial:
            raise ValueError("max_delay_seconds cannot be lower than initial_delay_seconds")
        return v

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class AutoResumeSettings(BaseModel):
    """Configuration for autonomous export continuation."""

    retry_settings: RetrySettings = Field(default_factory=RetrySettings)
    lease_ttl_seconds: int = Field(default=300, ge=10, description="Lifetime of a per-user lease")
    sweep_interval_minutes: int = Field(default=30, ge=1, le=1440, description="Minutes between scheduler sweeps")
    max_batches_per_sweep: int = Field(default=15, ge=1, le=1000, description="Batch budget of one sweep")

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class LoggingConfig(BaseModel):
    """Configuration for application logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )
    file_path: str | None = Field(default=None, description="Log file path (None for console only)")
    max_file_size: int = Field(default=10485760, ge=1024, description="Max log file size in bytes (10MB)")
    backup_count: int = Field(default=5, ge=1, description="Number of backup log files to keep")

    @validator("level")
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class YouTubeAPIConfig(BaseModel):
    """Configuration for YouTube API access."""

    credentials_file: str | None = Field(default=None, description="Path to OAuth2 credentials file")
    token_dir: str = Field(default="data/tokens", description="Directory holding one token file per user")
    scopes: list[str] = Field(
        default=["https://www.googleapis.com/auth/youtube.readonly"],
        description="OAuth2 scopes required"
    )

    @validator("scopes")
    def validate_scopes(cls, v: list[str]) -> list[str]:
        """Validate YouTube API scopes."""
        accepted = {
            "https://www.googleapis.com/auth/youtube",
            "https://www.googleapis.com/auth/youtube.readonly",
        }
        if not accepted.intersection(v):
            raise ValueError(f"One of {sorted(accepted)} must be included")
        return v

    class Config:
        """Pydantic configuration."""
        extra = "forbid"


class AppConfig(BaseModel):
    """
    Main application configuration model.

    This is the root configuration object that contains all application settings,
    validated using Pydantic for type safety and runtime validation. Every
    section has defaults, so an empty mapping is a valid configuration.
    """

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    auto_resume: AutoResumeSettings = Field(default_factory=AutoResumeSettings)

    # API configuration
    youtube_api: YouTubeAPIConfig = Field(default_factory=YouTubeAPIConfig)

    # Infrastructure settings
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @validator("quota")
    def validate_quota(cls, v: QuotaSettings) -> QuotaSettings:
        """Validate that at least one page fits under the ceiling."""
        if v.ceiling < v.page_cost:
            raise ValueError(
                f"Quota ceiling {v.ceiling} is lower than the page cost {v.page_cost}"
            )
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.dict()

    class Config:
        """Pydantic configuration."""
        extra = "forbid"
        validate_assignment = True
