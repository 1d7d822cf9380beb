"""Use case for validating application configuration."""

from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from youtube_exporter.domain.services.configuration_provider import ConfigurationProvider

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ValidateConfigUseCase:
    """
    Use case for validating the application configuration.

    Pydantic already enforces types and ranges when the file is loaded; this
    use case checks the settings against each other and against the
    environment (files on disk, timezone database).
    """

    def __init__(self, config_provider: ConfigurationProvider) -> None:
        """
        Initialize the validation use case.

        Args:
            config_provider: Configuration provider to validate
        """
        self.config_provider = config_provider

    def execute(self) -> list[str]:
        """
        Execute configuration validation.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors: list[str] = []

        try:
            # Quota settings
            daily_limit = self.config_provider.get_daily_limit()
            ceiling = self.config_provider.get_quota_ceiling()
            page_cost = self.config_provider.get_page_cost()
            if ceiling > daily_limit:
                errors.append(f"Quota ceiling {ceiling} exceeds the daily limit {daily_limit}")
            if ceiling < page_cost:
                errors.append(f"Quota ceiling {ceiling} cannot pay for a single page ({page_cost} units)")

            timezone_name = self.config_provider.get_quota_window().timezone_name
            try:
                ZoneInfo(timezone_name)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"Unknown quota reset timezone: {timezone_name}")

            # Export settings
            page_size = self.config_provider.get_page_size()
            if page_size < 1 or page_size > 50:
                errors.append(f"Invalid page size: {page_size} (must be 1-50)")

            policy = self.config_provider.get_missing_source_policy()
            if policy not in ("skip", "fail"):
                errors.append(f"Invalid missing source policy: {policy}")

            # Auto-resume settings
            backoff = self.config_provider.get_backoff_policy()
            if backoff.max_delay_seconds < backoff.initial_delay_seconds:
                errors.append("Backoff max delay is shorter than the initial delay")

            sweep = self.config_provider.get_sweep_settings()
            lease_ttl = self.config_provider.get_lease_ttl_seconds()
            if lease_ttl >= sweep["interval_minutes"] * 60:
                errors.append(
                    f"Lease TTL {lease_ttl}s is not shorter than the sweep interval "
                    f"({sweep['interval_minutes']} minutes)"
                )

            # Logging configuration
            logging_config = self.config_provider.get_logging_config()
            log_level = str(getattr(logging_config, "level", "")).upper()
            if log_level not in VALID_LOG_LEVELS:
                errors.append(f"Invalid log level: {log_level} (must be one of {VALID_LOG_LEVELS})")

            # Database
            if not self.config_provider.get_database_url():
                errors.append("No database URL configured")

        except Exception as e:
            errors.append(f"Configuration validation failed: {e}")

        return errors

    def validate_credentials_file(self, credentials_file: str | None) -> str | None:
        """
        Validate that the OAuth2 client credentials file is present.

        Returns:
            Error message if validation fails, None if successful
        """
        if not credentials_file:
            return "No OAuth2 credentials file configured (youtube_api.credentials_file)"
        if not Path(credentials_file).is_file():
            return f"OAuth2 credentials file not found: {credentials_file}"
        return None
