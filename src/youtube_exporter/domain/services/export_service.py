"""Abstract base class for the export service facade."""

from abc import ABC, abstractmethod
from typing import Optional

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


class ExportService(ABC):
    """
    Abstract service exposing the export workflow to callers.

    This is the main business logic interface. It coordinates the source
    registry, the orchestrator, the auto-resume controller and the status
    reporter so that the CLI and the scheduler see a single entry point.
    """

    @abstractmethod
    async def discover_sources(
        self, user_id: str
    ) -> tuple[list[RemoteSource], list[RemoteSource]]:
        """
        List the user's playlists and subscribed channels from the remote API.

        Each listing page is charged against the user's daily quota.

        Returns:
            Tuple of (playlists, channels)

        Raises:
            AuthenticationError: If the user's credential is invalid
            APIError: If the remote listing fails or no quota is left
        """
        pass

    @abstractmethod
    async def init_export(
        self,
        user_id: str,
        playlists: Optional[list[RemoteSource]] = None,
        channels: Optional[list[RemoteSource]] = None,
    ) -> ExportInitResult:
        """
        Register sources for export.

        When both lists are omitted the sources are discovered remotely.
        Re-running with the same selection creates nothing new.

        Returns:
            ExportInitResult with created and existing source counts
        """
        pass

    @abstractmethod
    async def run_export_batch(self, user_id: str) -> ExportBatchResult:
        """
        Run one bounded batch of export work for a user.

        Returns:
            Snapshot of what the batch did and whether to keep going

        Raises:
            ExportInProgressError: If another worker holds the user's lease
            APIError: For transient remote failures
            AuthenticationError: If the user's credential was revoked
        """
        pass

    @abstractmethod
    async def get_export_status(self, user_id: str) -> ExportStatusResult:
        """Get the user's aggregated export progress."""
        pass

    @abstractmethod
    async def enable_auto_resume(self, user_id: str) -> AutoResumeRecord:
        """Let the scheduler continue the user's export without intervention."""
        pass

    @abstractmethod
    async def disable_auto_resume(self, user_id: str) -> None:
        """Stop autonomous batches for the user. An in-flight batch still finishes."""
        pass

    @abstractmethod
    async def get_auto_resume_status(self, user_id: str) -> Optional[AutoResumeRecord]:
        """Get the user's auto-resume record, None if never enabled."""
        pass

    @abstractmethod
    async def attempt_auto_resume(self, user_id: str) -> AttemptOutcome:
        """
        Run one auto-resume attempt for the user right now.

        Does nothing unless the record is eligible and the user's lease is free.
        """
        pass

    @abstractmethod
    async def list_exported_videos(
        self,
        user_id: str,
        language: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> ExportedVideosPage:
        """List exported videos, optionally filtered by language prefix."""
        pass

    @abstractmethod
    async def get_quota_status(self, user_id: str) -> QuotaState:
        """Get today's quota consumption for the user."""
        pass

    @abstractmethod
    async def get_quota_history(self, user_id: str, days: int = 7) -> list[QuotaState]:
        """Get recent daily quota consumption, newest first."""
        pass

    @abstractmethod
    async def run_auto_resume_sweep(self, max_batches: Optional[int] = None) -> SweepResult:
        """
        Run due auto-resume attempts for every user.

        Never raises for per-user failures; they are collected in the result.
        """
        pass
