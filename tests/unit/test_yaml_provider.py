"""Tests for YAML configuration provider."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from youtube_exporter.domain.exceptions import ConfigurationError
from youtube_exporter.domain.models.auto_resume import BackoffPolicy
from youtube_exporter.infrastructure.config.yaml_provider import YamlConfigurationProvider


class TestYamlConfigurationProvider:
    """Tests for YamlConfigurationProvider."""

    def test_yaml_provider_creation(self, temp_config_file: Path) -> None:
        """Test YAML provider creation with valid config file."""
        provider = YamlConfigurationProvider(temp_config_file)
        assert provider.config_path == temp_config_file
        assert provider.config is not None

    def test_yaml_provider_nonexistent_file(self) -> None:
        """Test YAML provider with nonexistent config file."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            YamlConfigurationProvider("nonexistent.yml")

    def test_yaml_provider_invalid_yaml(self, tmp_path: Path) -> None:
        """Test YAML provider with invalid YAML file."""
        config_file = tmp_path / "broken.yml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigurationError, match="Invalid YAML syntax"):
            YamlConfigurationProvider(config_file)

    def test_yaml_provider_empty_file(self, tmp_path: Path) -> None:
        """Test YAML provider with empty config file."""
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError, match="Configuration file is empty"):
            YamlConfigurationProvider(config_file)

    def test_yaml_provider_non_mapping_root(self, tmp_path: Path) -> None:
        """Test YAML provider with a list at the top level."""
        config_file = tmp_path / "list.yml"
        config_file.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            YamlConfigurationProvider(config_file)

    def test_yaml_provider_invalid_config_structure(self, tmp_path: Path) -> None:
        """Test YAML provider with invalid config values."""
        config_file = tmp_path / "invalid.yml"
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.dump({"quota": {"ceiling_percent": 150}, "export": {"page_size": 0}}, f)

        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            YamlConfigurationProvider(config_file)

    def test_quota_getters(self, temp_config_file: Path) -> None:
        """Test quota settings accessors."""
        provider = YamlConfigurationProvider(temp_config_file)
        assert provider.get_daily_limit() == 10000
        assert provider.get_quota_ceiling() == 7000
        assert provider.get_page_cost() == 2
        assert provider.get_quota_window().timezone_name == "America/Los_Angeles"

    def test_export_getters(self, temp_config_file: Path) -> None:
        """Test export settings accessors."""
        provider = YamlConfigurationProvider(temp_config_file)
        assert provider.get_page_size() == 50
        assert provider.get_missing_source_policy() == "skip"
        assert provider.get_english_language_prefix() == "en"

    def test_auto_resume_getters(self, temp_config_file: Path) -> None:
        """Test auto-resume settings accessors."""
        provider = YamlConfigurationProvider(temp_config_file)
        assert provider.get_backoff_policy() == BackoffPolicy(300, 2.0, 21600)
        assert provider.get_lease_ttl_seconds() == 300
        assert provider.get_sweep_settings() == {"interval_minutes": 30, "max_batches": 15}

    def test_youtube_getters(self, temp_config_file: Path, tmp_path: Path) -> None:
        """Test YouTube API settings accessors."""
        provider = YamlConfigurationProvider(temp_config_file)
        assert provider.get_credentials_file() == str(tmp_path / "credentials.json")
        assert provider.get_token_dir() == str(tmp_path / "tokens")
        assert provider.get_oauth_scopes() == ["https://www.googleapis.com/auth/youtube.readonly"]
        assert provider.get_youtube_api_config()["token_dir"] == str(tmp_path / "tokens")

    def test_get_logging_config(self, temp_config_file: Path) -> None:
        """Test getting logging configuration."""
        provider = YamlConfigurationProvider(temp_config_file)
        logging_config = provider.get_logging_config()
        assert logging_config.level == "INFO"
        assert logging_config.file_path is None

    def test_env_var_substitution(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test environment variable substitution in config."""
        monkeypatch.setenv("TEST_EXPORTER_DB", f"sqlite:///{tmp_path / 'env.db'}")
        monkeypatch.delenv("TEST_EXPORTER_TZ", raising=False)
        config_file = tmp_path / "env.yml"
        config_file.write_text(
            "database:\n"
            "  url: ${TEST_EXPORTER_DB}\n"
            "quota:\n"
            "  reset_timezone: ${TEST_EXPORTER_TZ:UTC}\n"
        )

        provider = YamlConfigurationProvider(config_file)
        assert provider.get_database_url() == f"sqlite:///{tmp_path / 'env.db'}"
        assert provider.get_quota_window().timezone_name == "UTC"

    def test_reload(self, temp_config_file: Path, sample_config_data: dict[str, Any]) -> None:
        """Test reloading picks up file changes."""
        provider = YamlConfigurationProvider(temp_config_file)
        sample_config_data["quota"]["ceiling_percent"] = 50
        with open(temp_config_file, "w", encoding="utf-8") as f:
            yaml.dump(sample_config_data, f)

        provider.reload()
        assert provider.get_quota_ceiling() == 5000
