"""SQLAlchemy ORM tables of the export store."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as naive UTC.

    SQLite drops offsets, so values are normalized on the way in and tagged
    as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all export store tables."""

    pass


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class ExportSourceRow(TimestampMixin, Base):
    """A playlist or channel registered for export."""

    __tablename__ = "export_sources"
    __table_args__ = (UniqueConstraint("user_id", "kind", "external_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text)
    cursor: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)
    imported_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_imported_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)


class ExportedVideoRow(TimestampMixin, Base):
    """A video imported for a user, attributed to the first source that found it."""

    __tablename__ = "exported_videos"
    __table_args__ = (UniqueConstraint("user_id", "video_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    video_id: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    channel_id: Mapped[Optional[str]] = mapped_column(String(64))
    channel_title: Mapped[Optional[str]] = mapped_column(Text)
    language: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text)
    source_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    source_external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_title: Mapped[Optional[str]] = mapped_column(Text)
    source_row_id: Mapped[int] = mapped_column(ForeignKey("export_sources.id"), nullable=False)


class ExportedVideoOriginRow(Base):
    """Every source an exported video was seen through."""

    __tablename__ = "exported_video_sources"

    video_row_id: Mapped[int] = mapped_column(
        ForeignKey("exported_videos.id", ondelete="CASCADE"), primary_key=True
    )
    source_row_id: Mapped[int] = mapped_column(ForeignKey("export_sources.id"), primary_key=True)
    seen_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)


class QuotaUsageRow(Base):
    """Quota units consumed by one user on one quota day."""

    __tablename__ = "quota_usage"
    __table_args__ = (UniqueConstraint("user_id", "day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    consumed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class AutoResumeRow(TimestampMixin, Base):
    """Auto-resume state of one user."""

    __tablename__ = "export_auto_resume"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="disabled", nullable=False)
    paused_reason: Mapped[str] = mapped_column(String(32), default="none", nullable=False)
    paused_until: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    last_attempt: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    next_attempt: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    consecutive_failures: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[Optional[str]] = mapped_column(Text)


class LeaseRow(Base):
    """Per-user lease held while an export batch is in flight."""

    __tablename__ = "export_leases"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
