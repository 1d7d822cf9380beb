"""Database-backed auto-resume record store."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select, update

from youtube_exporter.domain.models.auto_resume import (
    AutoResumeRecord,
    AutoResumeStatus,
    PauseReason,
)
from youtube_exporter.domain.services.auto_resume_store import AutoResumeStore
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.models import AutoResumeRow


def _to_record(row: AutoResumeRow) -> AutoResumeRecord:
    return AutoResumeRecord(
        id=row.id,
        user_id=row.user_id,
        status=AutoResumeStatus(row.status),
        paused_reason=PauseReason(row.paused_reason),
        paused_until=row.paused_until,
        last_attempt=row.last_attempt,
        next_attempt=row.next_attempt,
        consecutive_failures=row.consecutive_failures,
        last_error=row.last_error,
    )


class SqlAutoResumeStore(AutoResumeStore):
    """Auto-resume store with one row per user. Rows are never deleted."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def get(self, user_id: str) -> Optional[AutoResumeRecord]:
        with self._database.session("auto-resume lookup") as session:
            row = session.scalar(select(AutoResumeRow).where(AutoResumeRow.user_id == user_id))
            return _to_record(row) if row else None

    def save(self, record: AutoResumeRecord) -> AutoResumeRecord:
        with self._database.session("auto-resume save") as session:
            row = session.scalar(select(AutoResumeRow).where(AutoResumeRow.user_id == record.user_id))
            if row is None:
                row = AutoResumeRow(user_id=record.user_id)
                session.add(row)
            row.status = record.status.value
            row.paused_reason = record.paused_reason.value
            row.paused_until = record.paused_until
            row.last_attempt = record.last_attempt
            row.next_attempt = record.next_attempt
            row.consecutive_failures = record.consecutive_failures
            row.last_error = record.last_error
            session.flush()
            return _to_record(row)

    def save_unless_disabled(self, record: AutoResumeRecord) -> AutoResumeRecord:
        refused_when_disabled = (
            update(AutoResumeRow)
            .where(
                AutoResumeRow.user_id == record.user_id,
                AutoResumeRow.status != AutoResumeStatus.DISABLED.value,
            )
            .values(
                status=record.status.value,
                paused_reason=record.paused_reason.value,
                paused_until=record.paused_until,
                last_attempt=record.last_attempt,
                next_attempt=record.next_attempt,
                consecutive_failures=record.consecutive_failures,
                last_error=record.last_error,
            )
            .execution_options(synchronize_session=False)
        )
        with self._database.session("auto-resume conditional save") as session:
            session.execute(refused_when_disabled)
            row = session.scalar(select(AutoResumeRow).where(AutoResumeRow.user_id == record.user_id))
            if row is not None:
                return _to_record(row)
        return self.save(record)

    def list_due(self, now: datetime) -> list[str]:
        with self._database.session("due auto-resume listing") as session:
            return list(
                session.scalars(
                    select(AutoResumeRow.user_id)
                    .where(
                        or_(
                            AutoResumeRow.status == AutoResumeStatus.ACTIVE.value,
                            and_(
                                AutoResumeRow.status == AutoResumeStatus.PAUSED.value,
                                AutoResumeRow.paused_until <= now,
                            ),
                        )
                    )
                    .order_by(AutoResumeRow.next_attempt, AutoResumeRow.id)
                ).all()
            )
