"""Result models returned by export operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from youtube_exporter.domain.models.video import ExportedVideo


@dataclass(frozen=True)
class ExportInitResult:
    """
    Outcome of registering a user's playlists and channels for export.

    ``playlist_sources`` and ``channel_sources`` count rows created by this
    call; ``total_sources`` counts every source registered for the user.
    """

    playlist_sources: int
    channel_sources: int
    total_sources: int
    already_completed: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchOutcome:
    """What the batch executor did for one page of one source."""

    records_imported: int
    has_more: bool
    cost_consumed: int
    items_seen: int = 0


@dataclass(frozen=True)
class ExportBatchResult:
    """
    Snapshot returned after one bounded unit of export work.

    ``should_stop`` tells the caller not to request another batch right now,
    either because quota is exhausted or because nothing is left to do.
    """

    source_id: str = ""
    source_title: str | None = None
    source_type: str = ""
    videos_imported: int = 0
    has_more: bool = False
    quota_used_today: int = 0
    quota_ceiling: int = 0
    should_stop: bool = False
    export_complete: bool = False
    skipped: bool = False

    @property
    def quota_exhausted(self) -> bool:
        """Whether the batch stopped for lack of quota rather than lack of work."""
        return self.should_stop and not self.export_complete

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.export_complete and not self.source_id:
            return "ExportBatchResult(export complete)"
        return (
            f"ExportBatchResult(source={self.source_title or self.source_id}, "
            f"imported={self.videos_imported}, has_more={self.has_more}, "
            f"quota={self.quota_used_today}/{self.quota_ceiling}, "
            f"should_stop={self.should_stop})"
        )


@dataclass(frozen=True)
class ExportStatusResult:
    """Read-only aggregate of a user's export progress."""

    total_sources: int
    completed_sources: int
    in_progress_sources: int
    pending_sources: int
    total_videos_imported: int
    english_videos_count: int
    quota_used_today: int
    quota_ceiling: int
    last_imported_at: datetime | None
    has_incomplete_work: bool

    @property
    def completion_rate(self) -> float:
        """Share of completed sources as a percentage."""
        if self.total_sources == 0:
            return 0.0
        return (self.completed_sources / self.total_sources) * 100

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_imported_at"] = (
            self.last_imported_at.isoformat() if self.last_imported_at else None
        )
        return data


@dataclass(frozen=True)
class ExportedVideosPage:
    """One page of a user's exported videos."""

    videos: list[ExportedVideo]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


@dataclass
class SweepResult:
    """
    Result of one scheduler sweep over auto-resume records.

    Counts are per attempt, so a user that got several batches in one sweep
    is counted once per batch.
    """

    processed: int = 0
    paused: int = 0
    completed: int = 0
    disabled: int = 0
    skipped: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def batches(self) -> int:
        """Number of attempts that actually ran a batch."""
        return self.processed + self.paused + self.completed + self.disabled

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add_error(self, user_id: str, error: Exception | str) -> None:
        self.errors.append({"user_id": user_id, "error": str(error)})

    def complete(self) -> None:
        """Mark the sweep as completed."""
        self.completed_at = datetime.now(timezone.utc)

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"SweepResult(processed={self.processed}, paused={self.paused}, "
            f"completed={self.completed}, disabled={self.disabled}, "
            f"skipped={self.skipped}, errors={len(self.errors)})"
        )
