"""Export source domain model and related enums."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class SourceKind(str, Enum):
    """Kind of remote collection a source points at."""

    PLAYLIST = "playlist"
    CHANNEL = "channel"


class SourceStatus(str, Enum):
    """Import progress of a single source."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def channel_uploads_playlist_id(channel_id: str) -> str:
    """Map a channel ID (UC...) to the ID of its uploads playlist (UU...)."""
    if channel_id.startswith("UC"):
        return "UU" + channel_id[2:]
    return channel_id


@dataclass(frozen=True)
class RemoteSource:
    """A playlist or channel as reported by the remote API, before registration."""

    id: str
    title: str | None = None
    item_count: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Source ID cannot be empty")


@dataclass(frozen=True)
class Source:
    """
    One playlist or channel registered for export.

    The cursor is the remote API's continuation token. It is stored and
    handed back verbatim, never parsed.
    """

    id: int
    user_id: str
    kind: SourceKind
    external_id: str
    title: str | None = None
    cursor: str | None = None
    status: SourceStatus = SourceStatus.PENDING
    imported_count: int = 0
    total_items: int = 0
    created_at: datetime | None = None
    last_imported_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate source data after initialization."""
        if not self.user_id:
            raise ValueError("User ID cannot be empty")
        if not self.external_id:
            raise ValueError("External source ID cannot be empty")

    @property
    def completed(self) -> bool:
        """Whether the last fetch for this source returned no continuation cursor."""
        return self.status == SourceStatus.COMPLETED

    def advanced(
        self,
        new_cursor: str | None,
        imported_count: int,
        total_items: int | None = None,
        at: datetime | None = None,
    ) -> Source:
        """Return the source as it looks after one more page was imported."""
        return replace(
            self,
            cursor=new_cursor,
            status=SourceStatus.IN_PROGRESS if new_cursor else SourceStatus.COMPLETED,
            imported_count=self.imported_count + imported_count,
            total_items=total_items if total_items else self.total_items,
            last_imported_at=at or self.last_imported_at,
        )

    def __str__(self) -> str:
        """Human-readable string representation."""
        label = self.title or self.external_id
        return f"Source({self.kind.value} '{label}', status={self.status.value})"
