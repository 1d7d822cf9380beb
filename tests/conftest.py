"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest
import yaml

from youtube_exporter.domain.models.quota import QuotaWindow
from youtube_exporter.domain.models.source import RemoteSource, SourceKind
from youtube_exporter.domain.models.video import Page, PageItem
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.infrastructure.config.models import AppConfig
from youtube_exporter.infrastructure.persistence.auto_resume_store import SqlAutoResumeStore
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.lease_manager import SqlLeaseManager
from youtube_exporter.infrastructure.persistence.quota_tracker import SqlQuotaTracker
from youtube_exporter.infrastructure.persistence.source_registry import SqlSourceRegistry
from youtube_exporter.infrastructure.persistence.video_store import SqlVideoStore

USER_ID = "user-1"


def make_items(prefix: str, count: int, language: Optional[str] = "en") -> list[PageItem]:
    """Build ``count`` page items with IDs ``{prefix}0``, ``{prefix}1``, ..."""
    return [
        PageItem(
            video_id=f"{prefix}{index}",
            title=f"Video {prefix}{index}",
            channel_id="UCowner",
            channel_title="Owner",
            language=language,
            published_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=index),
        )
        for index in range(count)
    ]


class FixedClock:
    """Settable clock passed wherever a service takes ``clock``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


PageResponse = Union[Page, Exception]


class FakeSourceClient(SourceClient):
    """
    In-memory source client.

    ``pages`` maps (external ID, cursor) to the page returned, or to an
    exception raised, for that request. ``gate`` makes every fetch wait until
    the event is set.
    """

    def __init__(
        self,
        pages: Optional[dict[tuple[str, Optional[str]], PageResponse]] = None,
        playlists: Optional[list[RemoteSource]] = None,
        channels: Optional[list[RemoteSource]] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.pages = pages or {}
        self.playlists = playlists or []
        self.channels = channels or []
        self.gate = gate
        self.calls: list[tuple[SourceKind, str, Optional[str]]] = []

    @property
    def page_cost(self) -> int:
        return 2

    @property
    def listing_cost(self) -> int:
        return 1

    async def fetch_page(
        self, kind: SourceKind, external_source_id: str, cursor: Optional[str]
    ) -> Page:
        self.calls.append((kind, external_source_id, cursor))
        if self.gate is not None:
            await self.gate.wait()
        response = self.pages.get((external_source_id, cursor), Page())
        if isinstance(response, Exception):
            raise response
        return response

    async def list_playlists(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        if reserve is not None:
            reserve(self.listing_cost)
        return list(self.playlists)

    async def list_subscribed_channels(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        if reserve is not None:
            reserve(self.listing_cost)
        return list(self.channels)


@pytest.fixture
def sample_config_data(tmp_path: Path) -> dict[str, Any]:
    """Sample configuration data for testing."""
    return {
        "database": {
            "url": f"sqlite:///{tmp_path / 'exporter.db'}",
            "echo": False,
        },
        "quota": {
            "daily_limit": 10000,
            "ceiling_percent": 70,
            "page_cost": 2,
            "reset_timezone": "America/Los_Angeles",
        },
        "export": {
            "page_size": 50,
            "missing_source_policy": "skip",
            "english_language_prefix": "en",
        },
        "auto_resume": {
            "lease_ttl_seconds": 300,
            "sweep_interval_minutes": 30,
            "max_batches_per_sweep": 15,
            "retry_settings": {
                "initial_delay_seconds": 300,
                "backoff_factor": 2.0,
                "max_delay_seconds": 21600,
            },
        },
        "youtube_api": {
            "credentials_file": str(tmp_path / "credentials.json"),
            "token_dir": str(tmp_path / "tokens"),
            "scopes": ["https://www.googleapis.com/auth/youtube.readonly"],
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file_path": None,
            "max_file_size": 10485760,
            "backup_count": 5,
        },
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, sample_config_data: dict[str, Any]) -> Path:
    """Create a temporary configuration file for testing."""
    config_file = tmp_path / "config.yml"
    with open(config_file, "w", encoding="utf-8") as f:
        yaml.dump(sample_config_data, f)
    return config_file


@pytest.fixture
def app_config(sample_config_data: dict[str, Any]) -> AppConfig:
    """Create an AppConfig instance for testing."""
    return AppConfig(**sample_config_data)


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    """File-backed SQLite export store with the schema created."""
    db = Database(f"sqlite:///{tmp_path / 'store.db'}")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def registry(database: Database) -> SqlSourceRegistry:
    return SqlSourceRegistry(database)


@pytest.fixture
def video_store(database: Database) -> SqlVideoStore:
    return SqlVideoStore(database)


@pytest.fixture
def quota_window() -> QuotaWindow:
    return QuotaWindow("America/Los_Angeles")


@pytest.fixture
def quota_tracker(database: Database, quota_window: QuotaWindow) -> SqlQuotaTracker:
    """Tracker with the default 10000 unit limit and a 70% ceiling."""
    return SqlQuotaTracker(database, daily_limit=10000, ceiling=7000, window=quota_window)


@pytest.fixture
def lease_manager(database: Database) -> SqlLeaseManager:
    return SqlLeaseManager(database)


@pytest.fixture
def auto_resume_store(database: Database) -> SqlAutoResumeStore:
    return SqlAutoResumeStore(database)


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at noon UTC (early morning Pacific time)."""
    return FixedClock(datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def fake_client() -> FakeSourceClient:
    return FakeSourceClient()
