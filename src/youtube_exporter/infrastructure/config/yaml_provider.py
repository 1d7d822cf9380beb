"""YAML-based configuration provider implementation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from youtube_exporter.domain.exceptions import ConfigurationError
from youtube_exporter.domain.models.auto_resume import BackoffPolicy
from youtube_exporter.domain.models.quota import QuotaWindow
from youtube_exporter.domain.services.configuration_provider import ConfigurationProvider
from youtube_exporter.infrastructure.config.models import AppConfig, LoggingConfig

# ${VAR_NAME} or ${VAR_NAME:default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class YamlConfigurationProvider(ConfigurationProvider):
    """
    Configuration provider that loads settings from YAML files.

    This implementation supports loading configuration from YAML files
    with environment variable substitution and validation using Pydantic models.
    """

    def __init__(self, config_path: str | Path) -> None:
        """
        Initialize the YAML configuration provider.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            ConfigurationError: If the configuration file cannot be loaded or is invalid
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None
        self._load_config()

    def _load_config(self) -> None:
        """Load and validate configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in configuration file: {e}", e) from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}", e) from e

        if raw_config is None:
            raise ConfigurationError("Configuration file is empty")
        if not isinstance(raw_config, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        raw_config = self._substitute_env_vars(raw_config)

        try:
            self._config = AppConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}", e) from e

    def _substitute_env_vars(self, obj: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.
        """
        if isinstance(obj, dict):
            return {key: self._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            return self._substitute_string_env_vars(obj)
        else:
            return obj

    def _substitute_string_env_vars(self, value: str) -> str:
        """Substitute environment variables in a string value."""

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.getenv(var_name, default_value)

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    @property
    def config(self) -> AppConfig:
        """Get the loaded configuration."""
        if self._config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._config

    def get_database_url(self) -> str:
        """Get the SQLAlchemy URL of the export store."""
        return self.config.database.url

    def get_database_echo(self) -> bool:
        """Get whether SQL statements are logged."""
        return self.config.database.echo

    def get_daily_limit(self) -> int:
        """Get the remote API's daily quota in units."""
        return self.config.quota.daily_limit

    def get_quota_ceiling(self) -> int:
        """Get the share of the daily limit exports are allowed to spend."""
        return self.config.quota.ceiling

    def get_page_cost(self) -> int:
        """Get the quota units charged for fetching one page of a source."""
        return self.config.quota.page_cost

    def get_quota_window(self) -> QuotaWindow:
        """Get the schedule on which quota consumption resets."""
        return QuotaWindow(timezone_name=self.config.quota.reset_timezone)

    def get_page_size(self) -> int:
        """Get the number of items requested per page."""
        return self.config.export.page_size

    def get_missing_source_policy(self) -> str:
        """Get how to treat sources that vanished remotely."""
        return self.config.export.missing_source_policy

    def get_english_language_prefix(self) -> str:
        """Get the language tag prefix counted as English."""
        return self.config.export.english_language_prefix

    def get_backoff_policy(self) -> BackoffPolicy:
        """Get the retry curve applied after transient batch failures."""
        retry = self.config.auto_resume.retry_settings
        return BackoffPolicy(
            initial_delay_seconds=retry.initial_delay_seconds,
            backoff_factor=retry.backoff_factor,
            max_delay_seconds=retry.max_delay_seconds,
        )

    def get_lease_ttl_seconds(self) -> int:
        """Get how long a per-user lease stays valid."""
        return self.config.auto_resume.lease_ttl_seconds

    def get_sweep_settings(self) -> dict[str, Any]:
        """Get scheduler sweep configuration."""
        return {
            "interval_minutes": self.config.auto_resume.sweep_interval_minutes,
            "max_batches": self.config.auto_resume.max_batches_per_sweep,
        }

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return self.config.logging

    def reload(self) -> None:
        """Reload configuration from source."""
        self._config = None
        self._load_config()

    def get_youtube_api_config(self) -> dict[str, Any]:
        """Get YouTube API configuration."""
        return self.config.youtube_api.dict()

    def get_credentials_file(self) -> str | None:
        """Get the path to the OAuth2 credentials file."""
        return self.config.youtube_api.credentials_file

    def get_token_dir(self) -> str:
        """Get the directory holding per-user access tokens."""
        return self.config.youtube_api.token_dir

    def get_oauth_scopes(self) -> list[str]:
        """Get the required OAuth2 scopes."""
        return self.config.youtube_api.scopes
