"""Exported video domain model and remote page items."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from youtube_exporter.domain.models.source import SourceKind


@dataclass(frozen=True)
class PageItem:
    """A single video as returned by one page of a remote source listing."""

    video_id: str
    title: str
    channel_id: str | None = None
    channel_title: str | None = None
    language: str | None = None
    published_at: datetime | None = None
    thumbnail_url: str | None = None

    def __post_init__(self) -> None:
        if not self.video_id:
            raise ValueError("Video ID cannot be empty")


@dataclass(frozen=True)
class Page:
    """
    One page of a remote source listing.

    ``next_cursor`` is None when the source has no further pages.
    """

    items: list[PageItem] = field(default_factory=list)
    next_cursor: str | None = None
    total_results: int = 0

    @property
    def has_more(self) -> bool:
        """Whether the remote source reported a continuation cursor."""
        return self.next_cursor is not None


@dataclass(frozen=True)
class ExportedVideo:
    """
    A video imported for a user.

    The source fields describe the first source that discovered the video.
    """

    video_id: str
    user_id: str
    title: str
    source_kind: SourceKind
    source_id: str
    source_title: str | None = None
    channel_id: str | None = None
    channel_title: str | None = None
    language: str | None = None
    published_at: datetime | None = None
    thumbnail_url: str | None = None
    created_at: datetime | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate video data after initialization."""
        if not self.video_id:
            raise ValueError("Video ID cannot be empty")
        if not self.user_id:
            raise ValueError("User ID cannot be empty")

    def has_language(self, prefix: str) -> bool:
        """Whether the video's audio language starts with the given tag prefix."""
        return bool(self.language) and self.language.lower().startswith(prefix.lower())

    @property
    def watch_url(self) -> str:
        """Generate YouTube watch URL."""
        return f"https://www.youtube.com/watch?v={self.video_id}"

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"ExportedVideo(id={self.video_id}, title='{self.title[:50]}')"
