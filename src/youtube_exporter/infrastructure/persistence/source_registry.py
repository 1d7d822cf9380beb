"""Database-backed source registry."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from youtube_exporter.domain.models.export import ExportInitResult
from youtube_exporter.domain.models.source import (
    RemoteSource,
    Source,
    SourceKind,
    SourceStatus,
)
from youtube_exporter.domain.services.source_registry import SourceRegistry
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.models import ExportSourceRow, utcnow

logger = logging.getLogger(__name__)


def _to_source(row: ExportSourceRow) -> Source:
    return Source(
        id=row.id,
        user_id=row.user_id,
        kind=SourceKind(row.kind),
        external_id=row.external_id,
        title=row.title,
        cursor=row.cursor,
        status=SourceStatus(row.status),
        imported_count=row.imported_count,
        total_items=row.total_items,
        created_at=row.created_at,
        last_imported_at=row.last_imported_at,
    )


class SqlSourceRegistry(SourceRegistry):
    """Source registry keeping one row per (user, kind, external ID)."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def initialize(
        self,
        user_id: str,
        playlists: list[RemoteSource],
        channels: list[RemoteSource],
    ) -> ExportInitResult:
        created = {SourceKind.PLAYLIST: 0, SourceKind.CHANNEL: 0}

        with self._database.session("source initialization") as session:
            for kind, remotes in ((SourceKind.PLAYLIST, playlists), (SourceKind.CHANNEL, channels)):
                for remote in remotes:
                    inserted = session.execute(
                        self._database.insert_ignoring_conflicts(
                            ExportSourceRow,
                            user_id=user_id,
                            kind=kind.value,
                            external_id=remote.id,
                            title=remote.title,
                            status=SourceStatus.PENDING.value,
                            imported_count=0,
                            total_items=remote.item_count,
                        )
                    )
                    created[kind] += inserted.rowcount

            total, completed = session.execute(
                select(
                    func.count(ExportSourceRow.id),
                    func.coalesce(
                        func.sum(case((ExportSourceRow.status == SourceStatus.COMPLETED.value, 1), else_=0)),
                        0,
                    ),
                ).where(ExportSourceRow.user_id == user_id)
            ).one()

        result = ExportInitResult(
            playlist_sources=created[SourceKind.PLAYLIST],
            channel_sources=created[SourceKind.CHANNEL],
            total_sources=total,
            already_completed=completed,
        )
        logger.info(f"Initialized export for {user_id}: {result}")
        return result

    def list_incomplete(self, user_id: str) -> list[Source]:
        kind_order = case((ExportSourceRow.kind == SourceKind.PLAYLIST.value, 0), else_=1)
        with self._database.session("incomplete source listing") as session:
            rows = session.scalars(
                select(ExportSourceRow)
                .where(
                    ExportSourceRow.user_id == user_id,
                    ExportSourceRow.status != SourceStatus.COMPLETED.value,
                )
                .order_by(kind_order, ExportSourceRow.created_at, ExportSourceRow.id)
            ).all()
            return [_to_source(row) for row in rows]

    def get(self, source_id: int) -> Optional[Source]:
        with self._database.session("source lookup") as session:
            row = session.get(ExportSourceRow, source_id)
            return _to_source(row) if row else None

    def _require(self, session: Session, source_id: int) -> ExportSourceRow:
        row = session.get(ExportSourceRow, source_id)
        if row is None:
            raise KeyError(f"Unknown export source: {source_id}")
        return row

    def mark_in_progress(self, source_id: int) -> None:
        with self._database.session("source start") as session:
            row = self._require(session, source_id)
            if row.status == SourceStatus.PENDING.value:
                row.status = SourceStatus.IN_PROGRESS.value

    def advance(
        self,
        source_id: int,
        new_cursor: Optional[str],
        imported_count: int,
        total_items: Optional[int] = None,
    ) -> Source:
        with self._database.session("cursor advance") as session:
            row = self._require(session, source_id)
            advanced = _to_source(row).advanced(
                new_cursor, imported_count, total_items, at=utcnow()
            )
            row.cursor = advanced.cursor
            row.status = advanced.status.value
            row.imported_count = advanced.imported_count
            row.total_items = advanced.total_items
            row.last_imported_at = advanced.last_imported_at
            return advanced

    def mark_skipped(self, source_id: int) -> Source:
        with self._database.session("source skip") as session:
            row = self._require(session, source_id)
            row.cursor = None
            row.status = SourceStatus.COMPLETED.value
            logger.warning(f"Skipping missing {row.kind} {row.external_id} for {row.user_id}")
            return _to_source(row)

    def counts(self, user_id: str) -> dict[SourceStatus, int]:
        counts = {status: 0 for status in SourceStatus}
        with self._database.session("source counts") as session:
            rows = session.execute(
                select(ExportSourceRow.status, func.count(ExportSourceRow.id))
                .where(ExportSourceRow.user_id == user_id)
                .group_by(ExportSourceRow.status)
            ).all()
        for status, count in rows:
            counts[SourceStatus(status)] = count
        return counts

    def last_imported_at(self, user_id: str) -> Optional[datetime]:
        with self._database.session("last import lookup") as session:
            latest = session.scalar(
                select(func.max(ExportSourceRow.last_imported_at)).where(
                    ExportSourceRow.user_id == user_id
                )
            )
        return latest
