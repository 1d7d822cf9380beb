"""Database-backed quota tracker."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select, update

from youtube_exporter.domain.models.quota import QuotaReservation, QuotaState, QuotaWindow
from youtube_exporter.domain.services.quota_tracker import QuotaTracker
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.models import QuotaUsageRow

logger = logging.getLogger(__name__)


class SqlQuotaTracker(QuotaTracker):
    """
    Quota tracker storing one usage row per user and quota day.

    Reservations are a single conditional UPDATE, so the ceiling holds across
    threads and processes sharing the database.
    """

    def __init__(
        self,
        database: Database,
        daily_limit: int,
        ceiling: int,
        window: QuotaWindow | None = None,
    ) -> None:
        if ceiling > daily_limit:
            raise ValueError("Quota ceiling cannot exceed the daily limit")
        self._database = database
        self._daily_limit = daily_limit
        self._ceiling = ceiling
        self._window = window or QuotaWindow()

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def window(self) -> QuotaWindow:
        return self._window

    def _consumed(self, user_id: str, day: date) -> int:
        with self._database.session("quota lookup") as session:
            consumed = session.scalar(
                select(QuotaUsageRow.consumed).where(
                    QuotaUsageRow.user_id == user_id, QuotaUsageRow.day == day
                )
            )
        return consumed or 0

    def remaining(self, user_id: str, day: date) -> int:
        return max(self._ceiling - self._consumed(user_id, day), 0)

    def try_consume(self, user_id: str, day: date, cost: int) -> QuotaReservation:
        if cost < 0:
            raise ValueError("Quota cost cannot be negative")

        conditional_increment = (
            update(QuotaUsageRow)
            .where(
                QuotaUsageRow.user_id == user_id,
                QuotaUsageRow.day == day,
                QuotaUsageRow.consumed + cost <= self._ceiling,
            )
            .values(consumed=QuotaUsageRow.consumed + cost)
            .execution_options(synchronize_session=False)
        )
        current = select(QuotaUsageRow.consumed).where(
            QuotaUsageRow.user_id == user_id, QuotaUsageRow.day == day
        )

        with self._database.session("quota reservation") as session:
            accepted = session.execute(conditional_increment).rowcount == 1
            if not accepted and cost <= self._ceiling and session.scalar(current) is None:
                # First reservation of the day
                session.execute(
                    self._database.insert_ignoring_conflicts(
                        QuotaUsageRow,
                        user_id=user_id,
                        day=day,
                        consumed=0,
                        daily_limit=self._daily_limit,
                    )
                )
                accepted = session.execute(conditional_increment).rowcount == 1
            consumed = session.scalar(current) or 0

        remaining_after = max(self._ceiling - consumed, 0)
        if accepted:
            logger.debug(f"Reserved {cost} quota units for {user_id} on {day}, {remaining_after} left")
        else:
            logger.info(
                f"Quota reservation of {cost} units rejected for {user_id} on {day} "
                f"({consumed}/{self._ceiling} used)"
            )
        return QuotaReservation(
            accepted=accepted, remaining_after=remaining_after, cost=cost if accepted else 0
        )

    def status(self, user_id: str, day: date) -> QuotaState:
        return QuotaState(
            day=day,
            consumed=self._consumed(user_id, day),
            daily_limit=self._daily_limit,
            ceiling=self._ceiling,
        )

    def history(self, user_id: str, days: int = 7) -> list[QuotaState]:
        today = self._window.day_of(datetime.now(timezone.utc))
        since = today - timedelta(days=max(days, 1) - 1)
        with self._database.session("quota history") as session:
            rows = session.execute(
                select(QuotaUsageRow.day, QuotaUsageRow.consumed, QuotaUsageRow.daily_limit)
                .where(QuotaUsageRow.user_id == user_id, QuotaUsageRow.day >= since)
                .order_by(QuotaUsageRow.day.desc())
            ).all()
        return [
            QuotaState(day=row.day, consumed=row.consumed, daily_limit=row.daily_limit, ceiling=self._ceiling)
            for row in rows
        ]
