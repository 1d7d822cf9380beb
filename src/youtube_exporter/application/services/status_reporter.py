"""Read-only aggregation of a user's export progress."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from youtube_exporter.domain.models.export import ExportStatusResult
from youtube_exporter.domain.models.source import SourceStatus
from youtube_exporter.domain.services.quota_tracker import QuotaTracker
from youtube_exporter.domain.services.source_registry import SourceRegistry
from youtube_exporter.domain.services.video_store import VideoStore


class StatusReporter:
    """Combines source counts, video counts and quota usage into one snapshot."""

    def __init__(
        self,
        registry: SourceRegistry,
        video_store: VideoStore,
        quota_tracker: QuotaTracker,
        english_language_prefix: str = "en",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.registry = registry
        self.video_store = video_store
        self.quota_tracker = quota_tracker
        self.english_language_prefix = english_language_prefix
        self.clock = clock

    def get_status(self, user_id: str) -> ExportStatusResult:
        counts = self.registry.counts(user_id)
        day = self.quota_tracker.window.day_of(self.clock())
        in_progress = counts[SourceStatus.IN_PROGRESS]
        pending = counts[SourceStatus.PENDING]

        return ExportStatusResult(
            total_sources=sum(counts.values()),
            completed_sources=counts[SourceStatus.COMPLETED],
            in_progress_sources=in_progress,
            pending_sources=pending,
            total_videos_imported=self.video_store.count(user_id),
            english_videos_count=self.video_store.count(user_id, self.english_language_prefix),
            quota_used_today=self.quota_tracker.status(user_id, day).consumed,
            quota_ceiling=self.quota_tracker.ceiling,
            last_imported_at=self.registry.last_imported_at(user_id),
            has_incomplete_work=(in_progress + pending) > 0,
        )
