"""Database-backed store of exported videos."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func, select

from youtube_exporter.domain.models.export import ExportedVideosPage
from youtube_exporter.domain.models.source import Source, SourceKind
from youtube_exporter.domain.models.video import ExportedVideo, PageItem
from youtube_exporter.domain.services.video_store import VideoStore
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.models import (
    ExportedVideoOriginRow,
    ExportedVideoRow,
)

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 100000


def _to_video(row: ExportedVideoRow) -> ExportedVideo:
    return ExportedVideo(
        id=row.id,
        video_id=row.video_id,
        user_id=row.user_id,
        title=row.title,
        source_kind=SourceKind(row.source_kind),
        source_id=row.source_external_id,
        source_title=row.source_title,
        channel_id=row.channel_id,
        channel_title=row.channel_title,
        language=row.language,
        published_at=row.published_at,
        thumbnail_url=row.thumbnail_url,
        created_at=row.created_at,
    )


def _metadata(item: PageItem) -> dict[str, Any]:
    return {
        "title": item.title,
        "channel_id": item.channel_id,
        "channel_title": item.channel_title,
        "language": item.language,
        "published_at": item.published_at,
        "thumbnail_url": item.thumbnail_url,
    }


class SqlVideoStore(VideoStore):
    """Video store with one row per (user, video ID) plus an origins table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def upsert_page(self, source: Source, items: list[PageItem]) -> int:
        unique_items: dict[str, PageItem] = {}
        for item in items:
            unique_items.setdefault(item.video_id, item)
        if not unique_items:
            return 0

        new_videos = 0
        with self._database.session("video upsert") as session:
            existing = {
                row.video_id: row
                for row in session.scalars(
                    select(ExportedVideoRow).where(
                        ExportedVideoRow.user_id == source.user_id,
                        ExportedVideoRow.video_id.in_(list(unique_items)),
                    )
                )
            }

            for video_id, item in unique_items.items():
                row = existing.get(video_id)
                if row is not None:
                    for field, value in _metadata(item).items():
                        if value is not None:
                            setattr(row, field, value)
                    continue

                inserted = session.execute(
                    self._database.insert_ignoring_conflicts(
                        ExportedVideoRow,
                        user_id=source.user_id,
                        video_id=video_id,
                        source_kind=source.kind.value,
                        source_external_id=source.external_id,
                        source_title=source.title,
                        source_row_id=source.id,
                        **_metadata(item),
                    )
                )
                new_videos += inserted.rowcount
            session.flush()

            row_ids = session.scalars(
                select(ExportedVideoRow.id).where(
                    ExportedVideoRow.user_id == source.user_id,
                    ExportedVideoRow.video_id.in_(list(unique_items)),
                )
            ).all()
            for row_id in row_ids:
                session.execute(
                    self._database.insert_ignoring_conflicts(
                        ExportedVideoOriginRow, video_row_id=row_id, source_row_id=source.id
                    )
                )

        logger.debug(
            f"Stored page of {len(unique_items)} videos from {source.external_id}: {new_videos} new"
        )
        return new_videos

    def get(self, user_id: str, video_id: str) -> Optional[ExportedVideo]:
        with self._database.session("video lookup") as session:
            row = session.scalar(
                select(ExportedVideoRow).where(
                    ExportedVideoRow.user_id == user_id, ExportedVideoRow.video_id == video_id
                )
            )
            return _to_video(row) if row else None

    def origins(self, user_id: str, video_id: str) -> list[int]:
        with self._database.session("video origin lookup") as session:
            return list(
                session.scalars(
                    select(ExportedVideoOriginRow.source_row_id)
                    .join(ExportedVideoRow, ExportedVideoRow.id == ExportedVideoOriginRow.video_row_id)
                    .where(ExportedVideoRow.user_id == user_id, ExportedVideoRow.video_id == video_id)
                    .order_by(ExportedVideoOriginRow.source_row_id)
                ).all()
            )

    @staticmethod
    def _filters(user_id: str, language_prefix: Optional[str]) -> list[Any]:
        filters: list[Any] = [ExportedVideoRow.user_id == user_id]
        if language_prefix:
            filters.append(func.lower(ExportedVideoRow.language).startswith(language_prefix.lower()))
        return filters

    def count(self, user_id: str, language_prefix: Optional[str] = None) -> int:
        with self._database.session("video count") as session:
            total = session.scalar(
                select(func.count(ExportedVideoRow.id)).where(*self._filters(user_id, language_prefix))
            )
        return total or 0

    def list_videos(
        self,
        user_id: str,
        language_prefix: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> ExportedVideosPage:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_LIMIT)
        filters = self._filters(user_id, language_prefix)

        with self._database.session("video listing") as session:
            total = session.scalar(select(func.count(ExportedVideoRow.id)).where(*filters)) or 0
            rows = session.scalars(
                select(ExportedVideoRow)
                .where(*filters)
                .order_by(ExportedVideoRow.created_at.desc(), ExportedVideoRow.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            videos = [_to_video(row) for row in rows]

        return ExportedVideosPage(videos=videos, total=total, page=page, limit=limit)
