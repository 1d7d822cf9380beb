"""Abstract base class for exported video storage."""

from abc import ABC, abstractmethod
from typing import Optional

from youtube_exporter.domain.models.export import ExportedVideosPage
from youtube_exporter.domain.models.source import Source
from youtube_exporter.domain.models.video import ExportedVideo, PageItem


class VideoStore(ABC):
    """
    Abstract store of videos imported for each user.

    A video is stored once per user whatever the number of sources it was
    seen through.
    """

    @abstractmethod
    def upsert_page(self, source: Source, items: list[PageItem]) -> int:
        """
        Idempotently store the items of one page fetched from ``source``.

        New videos are attributed to ``source``. Videos already stored get
        their metadata refreshed and ``source`` added to their known origins.

        Returns:
            Number of videos that were not stored before
        """
        pass

    @abstractmethod
    def get(self, user_id: str, video_id: str) -> Optional[ExportedVideo]:
        """Get one exported video by its remote ID."""
        pass

    @abstractmethod
    def origins(self, user_id: str, video_id: str) -> list[int]:
        """Get the registry IDs of every source a video was seen through."""
        pass

    @abstractmethod
    def count(self, user_id: str, language_prefix: Optional[str] = None) -> int:
        """Count a user's videos, optionally only those whose language starts with a prefix."""
        pass

    @abstractmethod
    def list_videos(
        self,
        user_id: str,
        language_prefix: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> ExportedVideosPage:
        """List a user's videos, newest first."""
        pass
