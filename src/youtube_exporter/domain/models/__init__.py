"""Domain models for the YouTube Exporter application."""

from youtube_exporter.domain.models.auto_resume import (
    AttemptOutcome,
    AutoResumeRecord,
    AutoResumeStatus,
    BackoffPolicy,
    PauseReason,
)
from youtube_exporter.domain.models.export import (
    BatchOutcome,
    ExportBatchResult,
    ExportedVideosPage,
    ExportInitResult,
    ExportStatusResult,
    SweepResult,
)
from youtube_exporter.domain.models.quota import QuotaReservation, QuotaState, QuotaWindow
from youtube_exporter.domain.models.source import RemoteSource, Source, SourceKind, SourceStatus
from youtube_exporter.domain.models.video import ExportedVideo, Page, PageItem

__all__ = [
    "AttemptOutcome",
    "AutoResumeRecord",
    "AutoResumeStatus",
    "BackoffPolicy",
    "PauseReason",
    "BatchOutcome",
    "ExportBatchResult",
    "ExportedVideosPage",
    "ExportInitResult",
    "ExportStatusResult",
    "SweepResult",
    "QuotaReservation",
    "QuotaState",
    "QuotaWindow",
    "RemoteSource",
    "Source",
    "SourceKind",
    "SourceStatus",
    "ExportedVideo",
    "Page",
    "PageItem",
]
