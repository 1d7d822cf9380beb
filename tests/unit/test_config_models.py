"""Tests for configuration models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from youtube_exporter.infrastructure.config.models import (
    AppConfig,
    AutoResumeSettings,
    DatabaseSettings,
    ExportSettings,
    LoggingConfig,
    QuotaSettings,
    RetrySettings,
    YouTubeAPIConfig,
)


class TestQuotaSettings:
    """Tests for QuotaSettings model."""

    def test_quota_settings_defaults(self) -> None:
        """Test quota settings with default values."""
        settings = QuotaSettings()
        assert settings.daily_limit == 10000
        assert settings.ceiling_percent == 70
        assert settings.page_cost == 2
        assert settings.reset_timezone == "America/Los_Angeles"
        assert settings.ceiling == 7000

    def test_ceiling_rounds_down(self) -> None:
        """Test that the ceiling never exceeds the configured share."""
        assert QuotaSettings(daily_limit=999, ceiling_percent=70).ceiling == 699

    def test_quota_settings_invalid_timezone(self) -> None:
        """Test quota settings with an unknown timezone."""
        with pytest.raises(ValidationError, match="Unknown timezone"):
            QuotaSettings(reset_timezone="Mars/Olympus_Mons")

    def test_quota_settings_percent_bounds(self) -> None:
        """Test ceiling percentage bounds."""
        with pytest.raises(ValidationError):
            QuotaSettings(ceiling_percent=0)
        with pytest.raises(ValidationError):
            QuotaSettings(ceiling_percent=101)


class TestExportSettings:
    """Tests for ExportSettings model."""

    def test_export_settings_defaults(self) -> None:
        """Test export settings with default values."""
        settings = ExportSettings()
        assert settings.page_size == 50
        assert settings.missing_source_policy == "skip"
        assert settings.english_language_prefix == "en"

    def test_missing_source_policy_normalized(self) -> None:
        """Test that the policy is case-insensitive."""
        assert ExportSettings(missing_source_policy="FAIL").missing_source_policy == "fail"

    def test_invalid_missing_source_policy(self) -> None:
        """Test export settings with an unknown policy."""
        with pytest.raises(ValidationError, match="Invalid missing source policy"):
            ExportSettings(missing_source_policy="ignore")

    def test_page_size_bounds(self) -> None:
        """Test that pages are limited to what the API returns."""
        with pytest.raises(ValidationError):
            ExportSettings(page_size=51)


class TestRetrySettings:
    """Tests for RetrySettings model."""

    def test_retry_settings_defaults(self) -> None:
        """Test retry settings with default values."""
        settings = RetrySettings()
        assert settings.initial_delay_seconds == 300
        assert settings.backoff_factor == 2.0
        assert settings.max_delay_seconds == 21600

    def test_max_delay_below_initial(self) -> None:
        """Test retry settings with a cap below the first delay."""
        with pytest.raises(ValidationError, match="max_delay_seconds"):
            RetrySettings(initial_delay_seconds=600, max_delay_seconds=300)


class TestAutoResumeSettings:
    """Tests for AutoResumeSettings model."""

    def test_auto_resume_defaults(self) -> None:
        """Test auto-resume settings with default values."""
        settings = AutoResumeSettings()
        assert settings.lease_ttl_seconds == 300
        assert settings.sweep_interval_minutes == 30
        assert settings.max_batches_per_sweep == 15
        assert settings.retry_settings == RetrySettings()

    def test_lease_ttl_lower_bound(self) -> None:
        """Test that leases cannot be uselessly short."""
        with pytest.raises(ValidationError):
            AutoResumeSettings(lease_ttl_seconds=5)


class TestDatabaseSettings:
    """Tests for DatabaseSettings model."""

    def test_database_defaults(self) -> None:
        """Test database settings with default values."""
        settings = DatabaseSettings()
        assert settings.url.startswith("sqlite:///")
        assert settings.echo is False

    def test_invalid_url(self) -> None:
        """Test database settings with a malformed URL."""
        with pytest.raises(ValidationError, match="Invalid database URL"):
            DatabaseSettings(url="exporter.db")


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_logging_config_defaults(self) -> None:
        """Test logging config with default values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file_path is None
        assert config.max_file_size == 10485760
        assert config.backup_count == 5

    def test_logging_config_level_normalized(self) -> None:
        """Test that the log level is upper-cased."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_logging_config_invalid_level(self) -> None:
        """Test logging config with an invalid level."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            LoggingConfig(level="LOUD")


class TestYouTubeAPIConfig:
    """Tests for YouTubeAPIConfig model."""

    def test_youtube_api_defaults(self) -> None:
        """Test YouTube API config with default values."""
        config = YouTubeAPIConfig()
        assert config.credentials_file is None
        assert config.token_dir == "data/tokens"
        assert config.scopes == ["https://www.googleapis.com/auth/youtube.readonly"]

    def test_full_scope_accepted(self) -> None:
        """Test that the read-write scope also grants read access."""
        config = YouTubeAPIConfig(scopes=["https://www.googleapis.com/auth/youtube"])
        assert len(config.scopes) == 1

    def test_missing_youtube_scope(self) -> None:
        """Test YouTube API config without a YouTube scope."""
        with pytest.raises(ValidationError):
            YouTubeAPIConfig(scopes=["https://www.googleapis.com/auth/drive"])


class TestAppConfig:
    """Tests for AppConfig model."""

    def test_app_config_creation(self, sample_config_data: dict[str, Any]) -> None:
        """Test app config creation with valid data."""
        config = AppConfig(**sample_config_data)
        assert config.quota.ceiling == 7000
        assert config.export.missing_source_policy == "skip"
        assert config.auto_resume.retry_settings.backoff_factor == 2.0
        assert config.database.url.startswith("sqlite:///")

    def test_app_config_empty_mapping(self) -> None:
        """Test that every section has usable defaults."""
        config = AppConfig()
        assert config.quota.ceiling == 7000
        assert config.logging.level == "INFO"

    def test_app_config_ceiling_below_page_cost(self) -> None:
        """Test that a ceiling too small for a single page is rejected."""
        with pytest.raises(ValidationError, match="lower than the page cost"):
            AppConfig(quota={"daily_limit": 10, "ceiling_percent": 10, "page_cost": 2})

    def test_app_config_rejects_unknown_sections(self) -> None:
        """Test that unknown keys are reported."""
        with pytest.raises(ValidationError):
            AppConfig(channels=[])

    def test_to_dict(self, app_config: AppConfig) -> None:
        """Test conversion to dictionary."""
        data = app_config.to_dict()
        assert data["quota"]["daily_limit"] == 10000
        assert data["youtube_api"]["scopes"] == ["https://www.googleapis.com/auth/youtube.readonly"]
