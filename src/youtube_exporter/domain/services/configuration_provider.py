"""Abstract base class for configuration management."""

from abc import ABC, abstractmethod
from typing import Any

from youtube_exporter.domain.models.auto_resume import BackoffPolicy
from youtube_exporter.domain.models.quota import QuotaWindow


class ConfigurationProvider(ABC):
    """
    Abstract service for providing application configuration.

    This interface defines the contract for loading and validating
    configuration data from various sources (files, environment variables,
    remote configuration services, etc.).
    """

    @abstractmethod
    def get_database_url(self) -> str:
        """
        Get the SQLAlchemy URL of the export store.

        Raises:
            ConfigurationError: If configuration is invalid or cannot be loaded
        """
        pass

    @abstractmethod
    def get_daily_limit(self) -> int:
        """
        Get the remote API's daily quota in units.

        Returns:
            Units the remote project may spend per day (10000 for YouTube)
        """
        pass

    @abstractmethod
    def get_quota_ceiling(self) -> int:
        """
        Get the share of the daily limit exports are allowed to spend.

        Keeping the ceiling below the limit leaves room for interactive use
        of the same API project.

        Returns:
            Ceiling in quota units
        """
        pass

    @abstractmethod
    def get_page_cost(self) -> int:
        """Get the quota units charged for fetching one page of a source."""
        pass

    @abstractmethod
    def get_quota_window(self) -> QuotaWindow:
        """Get the schedule on which quota consumption resets."""
        pass

    @abstractmethod
    def get_page_size(self) -> int:
        """Get the number of items requested per page."""
        pass

    @abstractmethod
    def get_missing_source_policy(self) -> str:
        """
        Get how to treat sources that vanished remotely.

        Returns:
            "skip" to mark them completed, "fail" to stop auto-resume
        """
        pass

    @abstractmethod
    def get_english_language_prefix(self) -> str:
        """Get the language tag prefix counted as English in status reports."""
        pass

    @abstractmethod
    def get_backoff_policy(self) -> BackoffPolicy:
        """Get the retry curve applied after transient batch failures."""
        pass

    @abstractmethod
    def get_lease_ttl_seconds(self) -> int:
        """Get how long a per-user lease stays valid without being released."""
        pass

    @abstractmethod
    def get_sweep_settings(self) -> dict[str, Any]:
        """
        Get scheduler sweep configuration.

        Returns:
            Dictionary with interval_minutes and max_batches
        """
        pass

    @abstractmethod
    def get_logging_config(self) -> Any:
        """
        Get logging configuration.

        Returns:
            Logging settings (level, format, file handler options)
        """
        pass

    @abstractmethod
    def reload(self) -> None:
        """
        Reload configuration from source.

        This allows updating configuration without restarting the application.

        Raises:
            ConfigurationError: If configuration cannot be reloaded or is invalid
        """
        pass
