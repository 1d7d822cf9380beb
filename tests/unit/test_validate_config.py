"""Tests for the configuration validation use case."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
import yaml

from youtube_exporter.application.use_cases.validate_config import ValidateConfigUseCase
from youtube_exporter.domain.models.auto_resume import BackoffPolicy
from youtube_exporter.domain.models.quota import QuotaWindow
from youtube_exporter.infrastructure.config.models import LoggingConfig
from youtube_exporter.infrastructure.config.yaml_provider import YamlConfigurationProvider


@pytest.fixture
def mock_provider() -> Mock:
    """Configuration provider mock returning a valid configuration."""
    provider = Mock()
    provider.get_daily_limit.return_value = 10000
    provider.get_quota_ceiling.return_value = 7000
    provider.get_page_cost.return_value = 2
    provider.get_quota_window.return_value = QuotaWindow("America/Los_Angeles")
    provider.get_page_size.return_value = 50
    provider.get_missing_source_policy.return_value = "skip"
    provider.get_backoff_policy.return_value = BackoffPolicy()
    provider.get_sweep_settings.return_value = {"interval_minutes": 30, "max_batches": 15}
    provider.get_lease_ttl_seconds.return_value = 300
    provider.get_logging_config.return_value = LoggingConfig()
    provider.get_database_url.return_value = "sqlite:///data/exporter.db"
    return provider


class TestValidateConfigUseCase:
    """Tests for ValidateConfigUseCase."""

    def test_valid_config_file(self, temp_config_file: Path) -> None:
        """Test that the sample configuration passes."""
        use_case = ValidateConfigUseCase(YamlConfigurationProvider(temp_config_file))
        assert use_case.execute() == []

    def test_lease_outlives_sweep_interval(
        self, tmp_path: Path, sample_config_data: dict[str, Any]
    ) -> None:
        """Test that a lease TTL as long as the sweep interval is flagged."""
        sample_config_data["auto_resume"]["lease_ttl_seconds"] = 1800
        config_file = tmp_path / "lease.yml"
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.dump(sample_config_data, f)

        errors = ValidateConfigUseCase(YamlConfigurationProvider(config_file)).execute()

        assert len(errors) == 1
        assert "Lease TTL 1800s" in errors[0]

    def test_ceiling_cannot_pay_for_a_page(self, mock_provider: Mock) -> None:
        """Test that a ceiling below one page's cost is flagged."""
        mock_provider.get_quota_ceiling.return_value = 1

        errors = ValidateConfigUseCase(mock_provider).execute()

        assert errors == ["Quota ceiling 1 cannot pay for a single page (2 units)"]

    def test_several_problems_reported_together(self, mock_provider: Mock) -> None:
        """Test that every problem is reported, not only the first."""
        mock_provider.get_quota_ceiling.return_value = 20000
        mock_provider.get_missing_source_policy.return_value = "ignore"
        mock_provider.get_database_url.return_value = ""

        errors = ValidateConfigUseCase(mock_provider).execute()

        assert len(errors) == 3
        assert any("exceeds the daily limit" in error for error in errors)
        assert any("missing source policy" in error for error in errors)
        assert any("No database URL" in error for error in errors)

    def test_unknown_timezone(self, mock_provider: Mock) -> None:
        """Test that an unknown reset timezone is flagged."""
        window = Mock()
        window.timezone_name = "Mars/Olympus_Mons"
        mock_provider.get_quota_window.return_value = window

        errors = ValidateConfigUseCase(mock_provider).execute()

        assert errors == ["Unknown quota reset timezone: Mars/Olympus_Mons"]

    def test_provider_failure(self, mock_provider: Mock) -> None:
        """Test that a failing provider becomes a validation error."""
        mock_provider.get_daily_limit.side_effect = RuntimeError("boom")

        errors = ValidateConfigUseCase(mock_provider).execute()

        assert errors == ["Configuration validation failed: boom"]

    def test_credentials_file(self, tmp_path: Path, mock_provider: Mock) -> None:
        """Test the OAuth2 client credentials file check."""
        use_case = ValidateConfigUseCase(mock_provider)
        credentials = tmp_path / "credentials.json"

        assert "No OAuth2 credentials file configured" in use_case.validate_credentials_file(None)
        assert "not found" in use_case.validate_credentials_file(str(credentials))

        credentials.write_text("{}")
        assert use_case.validate_credentials_file(str(credentials)) is None
