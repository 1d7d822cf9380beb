"""Integration tests for dependency injection container."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from conftest import FakeSourceClient
from youtube_exporter.application.services.export_service import DefaultExportService
from youtube_exporter.domain.exceptions import ConfigurationError
from youtube_exporter.infrastructure.container import (
    Container,
    create_container,
    get_configuration_provider,
    get_database,
    get_export_service,
    get_quota_tracker,
    get_scheduler_manager,
    get_source_client_factory,
    get_youtube_auth_manager,
)
from youtube_exporter.infrastructure.youtube.source_client import YouTubeSourceClient

pytestmark = pytest.mark.integration


class TestContainerIntegration:
    """Integration tests for the dependency injection container."""

    def test_create_container_success(self, temp_config_file: Path) -> None:
        """Test successful container creation."""
        container = create_container(temp_config_file)
        assert isinstance(container, Container)

    def test_invalid_config_fails_on_first_use(self) -> None:
        """Test that a missing config file surfaces when the provider is built."""
        container = create_container("nonexistent.yml")
        with pytest.raises(ConfigurationError):
            get_configuration_provider(container)

    def test_get_configuration_provider(self, temp_config_file: Path) -> None:
        """Test getting configuration provider from container."""
        config_provider = get_configuration_provider(create_container(temp_config_file))

        assert config_provider.get_quota_ceiling() == 7000
        assert config_provider.get_missing_source_policy() == "skip"

    def test_get_database_creates_schema(self, temp_config_file: Path, tmp_path: Path) -> None:
        """Test that the export store is ready to use."""
        database = get_database(create_container(temp_config_file))

        assert database.dialect_name == "sqlite"
        assert database.check_connection() is True
        assert (tmp_path / "exporter.db").exists()

    def test_get_youtube_auth_manager(self, temp_config_file: Path, tmp_path: Path) -> None:
        """Test that the auth manager uses the configured paths."""
        auth_manager = get_youtube_auth_manager(create_container(temp_config_file))

        assert auth_manager.credentials_file == tmp_path / "credentials.json"
        assert auth_manager.token_dir == tmp_path / "tokens"
        assert auth_manager.scopes == ["https://www.googleapis.com/auth/youtube.readonly"]

    def test_source_client_factory(self, temp_config_file: Path) -> None:
        """Test that each user gets a client with the configured paging."""
        create_client = get_source_client_factory(create_container(temp_config_file))

        client = create_client("user-1")

        assert isinstance(client, YouTubeSourceClient)
        assert client.user_id == "user-1"
        assert client.page_size == 50
        assert client.page_cost == 2

    def test_get_quota_tracker(self, temp_config_file: Path) -> None:
        """Test the quota tracker settings."""
        tracker = get_quota_tracker(create_container(temp_config_file))

        assert tracker.daily_limit == 10000
        assert tracker.ceiling == 7000
        assert tracker.window.timezone_name == "America/Los_Angeles"

    def test_get_export_service(self, temp_config_file: Path) -> None:
        """Test that the export service is fully wired."""
        client = FakeSourceClient()
        service = get_export_service(create_container(temp_config_file), client_factory=lambda user_id: client)

        assert isinstance(service, DefaultExportService)
        assert service.client_factory("user-1") is client
        assert service.lease_ttl_seconds == 300
        assert service.max_batches_per_sweep == 15
        assert service.controller.orchestrator is service.orchestrator

    def test_get_scheduler_manager(self, temp_config_file: Path) -> None:
        """Test the scheduler settings."""
        manager = get_scheduler_manager(create_container(temp_config_file))

        assert manager.interval_minutes == 30
        assert manager.max_batches == 15

    def test_service_singleton_behavior(self, temp_config_file: Path) -> None:
        """Test that shared infrastructure is built once per container."""
        container = create_container(temp_config_file)

        assert get_configuration_provider(container) is get_configuration_provider(container)
        assert get_database(container) is get_database(container)
        assert get_youtube_auth_manager(container) is get_youtube_auth_manager(container)

    def test_multiple_containers_independence(self, temp_config_file: Path) -> None:
        """Test that multiple containers are independent."""
        container1 = create_container(temp_config_file)
        container2 = create_container(temp_config_file)

        assert get_configuration_provider(container1) is not get_configuration_provider(container2)

    def test_container_with_different_configs(
        self,
        tmp_path: Path,
        temp_config_file: Path,
        sample_config_data: dict[str, Any],
    ) -> None:
        """Test containers with different configuration files."""
        sample_config_data["quota"]["ceiling_percent"] = 50
        sample_config_data["database"]["url"] = f"sqlite:///{tmp_path / 'other.db'}"
        other_config = tmp_path / "other.yml"
        with open(other_config, "w", encoding="utf-8") as f:
            yaml.dump(sample_config_data, f)

        first = get_quota_tracker(create_container(temp_config_file))
        second = get_quota_tracker(create_container(other_config))

        assert first.ceiling == 7000
        assert second.ceiling == 5000
