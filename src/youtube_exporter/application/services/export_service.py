"""Default implementation of the export service."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Optional

from youtube_exporter.application.services.auto_resume_controller import AutoResumeController
from youtube_exporter.application.services.export_orchestrator import ExportOrchestrator
from youtube_exporter.application.services.status_reporter import StatusReporter
from youtube_exporter.domain.exceptions import ExportInProgressError
from youtube_exporter.domain.models.auto_resume import AttemptOutcome, AutoResumeRecord
from youtube_exporter.domain.models.export import (
    ExportBatchResult,
    ExportedVideosPage,
    ExportInitResult,
    ExportStatusResult,
    SweepResult,
)
from youtube_exporter.domain.models.quota import QuotaState
from youtube_exporter.domain.models.source import RemoteSource
from youtube_exporter.domain.services.export_service import ExportService
from youtube_exporter.domain.services.lease_manager import LeaseManager
from youtube_exporter.domain.services.quota_tracker import QuotaTracker
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.domain.services.source_registry import SourceRegistry
from youtube_exporter.domain.services.video_store import VideoStore

logger = logging.getLogger(__name__)


class DefaultExportService(ExportService):
    """
    Default implementation of the export service.

    This service wires the registry, orchestrator, auto-resume controller and
    status reporter behind one facade used by the CLI and the scheduler.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        video_store: VideoStore,
        quota_tracker: QuotaTracker,
        orchestrator: ExportOrchestrator,
        controller: AutoResumeController,
        status_reporter: StatusReporter,
        lease_manager: LeaseManager,
        client_factory: Callable[[str], SourceClient],
        lease_ttl_seconds: int = 300,
        max_batches_per_sweep: int = 15,
    ) -> None:
        """
        Initialize the export service.

        Args:
            registry: Registry of export sources
            video_store: Store of exported videos
            quota_tracker: Tracker of daily quota usage
            orchestrator: Runs one batch for a user
            controller: Auto-resume state machine
            status_reporter: Aggregates progress snapshots
            lease_manager: Serializes batches per user
            client_factory: Builds the remote client acting for a user
            lease_ttl_seconds: Lifetime of the lease taken by a manual batch
            max_batches_per_sweep: Default batch budget of a sweep
        """
        self.registry = registry
        self.video_store = video_store
        self.quota_tracker = quota_tracker
        self.orchestrator = orchestrator
        self.controller = controller
        self.status_reporter = status_reporter
        self.lease_manager = lease_manager
        self.client_factory = client_factory
        self.lease_ttl_seconds = lease_ttl_seconds
        self.max_batches_per_sweep = max_batches_per_sweep

    def _today(self) -> date:
        return self.quota_tracker.window.day_of(datetime.now(timezone.utc))

    async def discover_sources(
        self, user_id: str
    ) -> tuple[list[RemoteSource], list[RemoteSource]]:
        client = self.client_factory(user_id)
        day = self._today()

        def reserve(cost: int) -> bool:
            return self.quota_tracker.try_consume(user_id, day, cost).accepted

        playlists = await client.list_playlists(reserve)
        channels = await client.list_subscribed_channels(reserve)
        logger.info(
            f"Discovered {len(playlists)} playlists and {len(channels)} channels for {user_id}"
        )
        return playlists, channels

    async def init_export(
        self,
        user_id: str,
        playlists: Optional[list[RemoteSource]] = None,
        channels: Optional[list[RemoteSource]] = None,
    ) -> ExportInitResult:
        if playlists is None and channels is None:
            playlists, channels = await self.discover_sources(user_id)
        return self.registry.initialize(user_id, playlists or [], channels or [])

    async def run_export_batch(self, user_id: str) -> ExportBatchResult:
        with self.lease_manager.hold(user_id, self.lease_ttl_seconds) as lease:
            if lease is None:
                raise ExportInProgressError(user_id)
            return await self.orchestrator.run_one_batch(user_id)

    async def get_export_status(self, user_id: str) -> ExportStatusResult:
        return self.status_reporter.get_status(user_id)

    async def enable_auto_resume(self, user_id: str) -> AutoResumeRecord:
        return self.controller.enable(user_id)

    async def disable_auto_resume(self, user_id: str) -> None:
        self.controller.disable(user_id)

    async def get_auto_resume_status(self, user_id: str) -> Optional[AutoResumeRecord]:
        return self.controller.status(user_id)

    async def attempt_auto_resume(self, user_id: str) -> AttemptOutcome:
        return await self.controller.attempt(user_id)

    async def list_exported_videos(
        self,
        user_id: str,
        language: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> ExportedVideosPage:
        return self.video_store.list_videos(user_id, language, page, limit)

    async def get_quota_status(self, user_id: str) -> QuotaState:
        return self.quota_tracker.status(user_id, self._today())

    async def get_quota_history(self, user_id: str, days: int = 7) -> list[QuotaState]:
        return self.quota_tracker.history(user_id, days)

    async def run_auto_resume_sweep(self, max_batches: Optional[int] = None) -> SweepResult:
        return await self.controller.sweep(max_batches or self.max_batches_per_sweep)
