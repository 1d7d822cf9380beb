"""Dependency injection container configuration."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from dependency_injector import containers, providers

from youtube_exporter.application.services.auto_resume_controller import AutoResumeController
from youtube_exporter.application.services.batch_executor import BatchExecutor
from youtube_exporter.application.services.export_orchestrator import ExportOrchestrator
from youtube_exporter.application.services.export_service import DefaultExportService
from youtube_exporter.application.services.status_reporter import StatusReporter
from youtube_exporter.domain.services.configuration_provider import ConfigurationProvider
from youtube_exporter.domain.services.export_service import ExportService
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.infrastructure.config.yaml_provider import YamlConfigurationProvider
from youtube_exporter.infrastructure.persistence.auto_resume_store import SqlAutoResumeStore
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.lease_manager import SqlLeaseManager
from youtube_exporter.infrastructure.persistence.quota_tracker import SqlQuotaTracker
from youtube_exporter.infrastructure.persistence.source_registry import SqlSourceRegistry
from youtube_exporter.infrastructure.persistence.video_store import SqlVideoStore
from youtube_exporter.infrastructure.scheduler import SchedulerManager
from youtube_exporter.infrastructure.youtube.auth_manager import YouTubeAuthManager
from youtube_exporter.infrastructure.youtube.source_client import YouTubeSourceClient


def _create_database(configuration_provider: YamlConfigurationProvider) -> Database:
    database = Database(
        configuration_provider.get_database_url(),
        echo=configuration_provider.get_database_echo(),
    )
    database.create_schema()
    return database


def _create_auth_manager(configuration_provider: YamlConfigurationProvider) -> YouTubeAuthManager:
    return YouTubeAuthManager(
        credentials_file=configuration_provider.get_credentials_file(),
        token_dir=configuration_provider.get_token_dir(),
        scopes=configuration_provider.get_oauth_scopes(),
    )


class Container(containers.DeclarativeContainer):
    """
    Dependency injection container for the YouTube Exporter application.

    This container manages all application dependencies and their lifecycles,
    providing a clean separation between interface definitions and concrete
    implementations.
    """

    # Configuration
    config_file_path = providers.Configuration()

    # Configuration Provider
    configuration_provider = providers.Singleton(
        YamlConfigurationProvider,
        config_path=config_file_path,
    )

    # Shared infrastructure
    database = providers.Singleton(_create_database, configuration_provider)
    auth_manager = providers.Singleton(_create_auth_manager, configuration_provider)

    # Note: Services are created lazily in the getter functions
    # to avoid dependency injection complexity with method calls


def create_container(config_path: str | Path) -> Container:
    """
    Create and configure the dependency injection container.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configured container instance
    """
    container = Container()
    container.config_file_path.override(str(config_path))
    return container


def get_configuration_provider(container: Container) -> ConfigurationProvider:
    """
    Get the configuration provider from the container.

    Args:
        container: The dependency injection container

    Returns:
        Configuration provider instance
    """
    return container.configuration_provider()


def get_database(container: Container) -> Database:
    """Get the export store database."""
    return container.database()


def get_youtube_auth_manager(container: Container) -> YouTubeAuthManager:
    """Get the YouTube authentication manager."""
    return container.auth_manager()


def get_source_client_factory(container: Container) -> Callable[[str], SourceClient]:
    """Get a factory building the YouTube client acting for a user."""
    config_provider = get_configuration_provider(container)
    auth_manager = get_youtube_auth_manager(container)

    def create_client(user_id: str) -> SourceClient:
        return YouTubeSourceClient(
            auth_manager,
            user_id,
            page_size=config_provider.get_page_size(),
            page_cost=config_provider.get_page_cost(),
        )

    return create_client


def get_quota_tracker(container: Container) -> SqlQuotaTracker:
    """Get the quota tracker."""
    config_provider = get_configuration_provider(container)
    return SqlQuotaTracker(
        get_database(container),
        daily_limit=config_provider.get_daily_limit(),
        ceiling=config_provider.get_quota_ceiling(),
        window=config_provider.get_quota_window(),
    )


def get_export_service(
    container: Container,
    client_factory: Callable[[str], SourceClient] | None = None,
) -> ExportService:
    """
    Get the main export service.

    Args:
        container: The dependency injection container
        client_factory: Overrides the YouTube client factory

    Returns:
        Fully wired export service
    """
    config_provider = get_configuration_provider(container)
    database = get_database(container)
    client_factory = client_factory or get_source_client_factory(container)

    registry = SqlSourceRegistry(database)
    video_store = SqlVideoStore(database)
    quota_tracker = get_quota_tracker(container)
    lease_manager = SqlLeaseManager(database)
    lease_ttl_seconds = config_provider.get_lease_ttl_seconds()

    orchestrator = ExportOrchestrator(
        registry=registry,
        quota_tracker=quota_tracker,
        executor=BatchExecutor(client_factory, registry, video_store),
        page_cost=config_provider.get_page_cost(),
        missing_source_policy=config_provider.get_missing_source_policy(),
    )
    controller = AutoResumeController(
        store=SqlAutoResumeStore(database),
        orchestrator=orchestrator,
        lease_manager=lease_manager,
        quota_window=config_provider.get_quota_window(),
        backoff=config_provider.get_backoff_policy(),
        lease_ttl_seconds=lease_ttl_seconds,
    )
    status_reporter = StatusReporter(
        registry=registry,
        video_store=video_store,
        quota_tracker=quota_tracker,
        english_language_prefix=config_provider.get_english_language_prefix(),
    )

    return DefaultExportService(
        registry=registry,
        video_store=video_store,
        quota_tracker=quota_tracker,
        orchestrator=orchestrator,
        controller=controller,
        status_reporter=status_reporter,
        lease_manager=lease_manager,
        client_factory=client_factory,
        lease_ttl_seconds=lease_ttl_seconds,
        max_batches_per_sweep=config_provider.get_sweep_settings()["max_batches"],
    )


def get_scheduler_manager(container: Container) -> SchedulerManager:
    """Get the scheduler running periodic auto-resume sweeps."""
    sweep = get_configuration_provider(container).get_sweep_settings()
    return SchedulerManager(
        get_export_service(container),
        interval_minutes=sweep["interval_minutes"],
        max_batches=sweep["max_batches"],
    )
