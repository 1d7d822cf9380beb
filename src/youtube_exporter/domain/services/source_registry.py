"""Abstract base class for the registry of export sources."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from youtube_exporter.domain.models.export import ExportInitResult
from youtube_exporter.domain.models.source import RemoteSource, Source, SourceStatus


class SourceRegistry(ABC):
    """
    Abstract registry of the playlists and channels a user exports.

    Sources are never deleted. Each one carries the continuation cursor of
    the next page to import and a completion flag.
    """

    @abstractmethod
    def initialize(
        self,
        user_id: str,
        playlists: list[RemoteSource],
        channels: list[RemoteSource],
    ) -> ExportInitResult:
        """
        Register sources for a user, skipping any already registered.

        Calling this again with the same selection creates no rows.

        Returns:
            Counts of created rows plus the user's total and completed sources
        """
        pass

    @abstractmethod
    def list_incomplete(self, user_id: str) -> list[Source]:
        """
        List sources that still have pages to import.

        Returns:
            Incomplete sources, playlists first, each kind in creation order
        """
        pass

    @abstractmethod
    def get(self, source_id: int) -> Optional[Source]:
        """Get a source by its registry ID."""
        pass

    @abstractmethod
    def mark_in_progress(self, source_id: int) -> None:
        """Flag a pending source as started."""
        pass

    @abstractmethod
    def advance(
        self,
        source_id: int,
        new_cursor: Optional[str],
        imported_count: int,
        total_items: Optional[int] = None,
    ) -> Source:
        """
        Record that one more page of a source was imported.

        Sets the cursor, adds ``imported_count`` to the running total and marks
        the source completed exactly when ``new_cursor`` is None.

        Returns:
            The updated source
        """
        pass

    @abstractmethod
    def mark_skipped(self, source_id: int) -> Source:
        """Mark a source that vanished remotely as completed so it is not retried."""
        pass

    @abstractmethod
    def counts(self, user_id: str) -> dict[SourceStatus, int]:
        """Count a user's sources per status."""
        pass

    @abstractmethod
    def last_imported_at(self, user_id: str) -> Optional[datetime]:
        """Get the time of the most recent page import across all sources."""
        pass
