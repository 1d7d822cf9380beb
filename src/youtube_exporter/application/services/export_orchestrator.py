"""Runs one export batch for a user end to end."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from youtube_exporter.application.services.batch_executor import BatchExecutor
from youtube_exporter.domain.exceptions import QuotaExceededError, SourceNotFoundError
from youtube_exporter.domain.models.export import ExportBatchResult
from youtube_exporter.domain.models.source import Source, SourceStatus
from youtube_exporter.domain.services.quota_tracker import QuotaTracker
from youtube_exporter.domain.services.source_registry import SourceRegistry

logger = logging.getLogger(__name__)

MISSING_SOURCE_POLICIES = ("skip", "fail")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExportOrchestrator:
    """
    Picks the next source, pays for one page and reports where the export stands.

    Quota is reserved before the remote call, so a batch that would cross the
    ceiling never reaches the remote API. Transient and fatal remote failures
    are raised to the caller, a remote quota rejection is reported through
    ``should_stop`` instead.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        quota_tracker: QuotaTracker,
        executor: BatchExecutor,
        page_cost: int,
        missing_source_policy: str = "skip",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            registry: Registry of the user's sources
            quota_tracker: Tracker holding the daily budget
            executor: Executor performing the page import
            page_cost: Quota units reserved per batch
            missing_source_policy: "skip" to complete vanished sources, "fail" to raise
            clock: Source of the current time
        """
        if missing_source_policy not in MISSING_SOURCE_POLICIES:
            raise ValueError(f"Invalid missing source policy: {missing_source_policy}")
        self.registry = registry
        self.quota_tracker = quota_tracker
        self.executor = executor
        self.page_cost = page_cost
        self.missing_source_policy = missing_source_policy
        self.clock = clock

    def _snapshot(
        self,
        user_id: str,
        source: Source | None = None,
        **fields: object,
    ) -> ExportBatchResult:
        day = self.quota_tracker.window.day_of(self.clock())
        used = self.quota_tracker.status(user_id, day).consumed
        if source is not None:
            fields.setdefault("source_id", source.external_id)
            fields.setdefault("source_title", source.title)
            fields.setdefault("source_type", source.kind.value)
        return ExportBatchResult(
            quota_used_today=used,
            quota_ceiling=self.quota_tracker.ceiling,
            **fields,  # type: ignore[arg-type]
        )

    async def run_one_batch(self, user_id: str) -> ExportBatchResult:
        """
        Run one batch of export work for a user.

        Returns:
            Snapshot with the imported count and the stop/complete flags

        Raises:
            SourceNotFoundError: If a source vanished and the policy is "fail"
            AuthenticationError: If the user's credential is unusable
            APIError: For transient remote failures
            PersistenceError: If the export store fails
        """
        day = self.quota_tracker.window.day_of(self.clock())

        if self.quota_tracker.remaining(user_id, day) < self.page_cost:
            logger.info(f"Quota ceiling reached for {user_id}, not starting a batch")
            return self._snapshot(user_id, should_stop=True)

        incomplete = self.registry.list_incomplete(user_id)
        if not incomplete:
            logger.info(f"Export complete for {user_id}")
            return self._snapshot(user_id, should_stop=True, export_complete=True)
        source = incomplete[0]

        reservation = self.quota_tracker.try_consume(user_id, day, self.page_cost)
        if not reservation.accepted:
            logger.info(f"Quota reservation rejected for {user_id}, stopping")
            return self._snapshot(user_id, should_stop=True)

        if source.status == SourceStatus.PENDING:
            self.registry.mark_in_progress(source.id)

        logger.info(f"Processing {source} for {user_id} at cursor {source.cursor or 'initial'}")
        skipped = False
        try:
            outcome = await self.executor.run_batch(source)
        except QuotaExceededError as e:
            logger.warning(f"YouTube reported quota exhausted for {user_id}: {e.message}")
            return self._snapshot(user_id, source, should_stop=True)
        except SourceNotFoundError as e:
            if self.missing_source_policy != "skip":
                raise
            logger.warning(f"Source {source.external_id} not found, skipping: {e.message}")
            self.registry.mark_skipped(source.id)
            skipped = True
            videos_imported, has_more = 0, False
        else:
            videos_imported, has_more = outcome.records_imported, outcome.has_more

        export_complete = not self.registry.list_incomplete(user_id)
        remaining = self.quota_tracker.remaining(user_id, day)
        result = self._snapshot(
            user_id,
            source,
            videos_imported=videos_imported,
            has_more=has_more,
            should_stop=remaining < self.page_cost or export_complete,
            export_complete=export_complete,
            skipped=skipped,
        )
        logger.info(f"Batch finished for {user_id}: {result}")
        return result
