"""Decides when exports continue on their own."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from youtube_exporter.application.services.export_orchestrator import ExportOrchestrator
from youtube_exporter.domain.exceptions import (
    PersistenceError,
    YouTubeExporterError,
    classify_failure,
)
from youtube_exporter.domain.models.auto_resume import (
    AttemptOutcome,
    AttemptStarted,
    AutoResumeRecord,
    AutoResumeStatus,
    BackoffPolicy,
    BatchFailed,
    BatchSucceeded,
    DisableRequested,
    EnableRequested,
    apply_event,
)
from youtube_exporter.domain.models.export import SweepResult
from youtube_exporter.domain.models.quota import QuotaWindow
from youtube_exporter.domain.services.auto_resume_store import AutoResumeStore
from youtube_exporter.domain.services.lease_manager import LeaseManager

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoResumeController:
    """
    Persistent per-user state machine around the export orchestrator.

    Every state change is computed by :func:`apply_event` and saved only once
    the outcome of the step is known. Attempts for the same user are
    serialized by a lease, so a manual trigger and the scheduler can never
    run two batches at once.
    """

    def __init__(
        self,
        store: AutoResumeStore,
        orchestrator: ExportOrchestrator,
        lease_manager: LeaseManager,
        quota_window: QuotaWindow,
        backoff: BackoffPolicy | None = None,
        lease_ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: Store of auto-resume records
            orchestrator: Runs the actual export batch
            lease_manager: Serializes attempts per user
            quota_window: Tells when a quota pause ends
            backoff: Retry curve for transient failures
            lease_ttl_seconds: Lifetime of the lease taken by an attempt
            clock: Source of the current time
        """
        self.store = store
        self.orchestrator = orchestrator
        self.lease_manager = lease_manager
        self.quota_window = quota_window
        self.backoff = backoff or BackoffPolicy()
        self.lease_ttl_seconds = lease_ttl_seconds
        self.clock = clock

    def enable(self, user_id: str) -> AutoResumeRecord:
        """Switch auto-resume on, creating the record on first use."""
        record = self.store.get(user_id) or AutoResumeRecord(user_id=user_id)
        saved = self.store.save(apply_event(record, EnableRequested(), self.clock()))
        logger.info(f"Auto-resume enabled for {user_id}")
        return saved

    def disable(self, user_id: str) -> None:
        """Switch auto-resume off. Does nothing for users that never enabled it."""
        record = self.store.get(user_id)
        if record is None:
            return
        self.store.save(apply_event(record, DisableRequested(), self.clock()))
        logger.info(f"Auto-resume disabled for {user_id}")

    def status(self, user_id: str) -> AutoResumeRecord | None:
        return self.store.get(user_id)

    async def attempt(self, user_id: str) -> AttemptOutcome:
        """
        Run one batch for the user if auto-resume allows it right now.

        A record that is not eligible, or a lease held by someone else, makes
        this a no-op that changes nothing.

        Raises:
            PersistenceError: If the store fails; the record keeps its prior state
        """
        record = self.store.get(user_id)
        if record is None or not record.is_eligible(self.clock()):
            return AttemptOutcome(user_id=user_id, ran=False, record=record)

        with self.lease_manager.hold(user_id, self.lease_ttl_seconds) as lease:
            if lease is None:
                logger.info(f"Skipping attempt for {user_id}: another worker holds the lease")
                return AttemptOutcome(user_id=user_id, ran=False, record=record)

            # Re-read under the lease, the previous holder may have changed it
            record = self.store.get(user_id)
            started_at = self.clock()
            if record is None or not record.is_eligible(started_at):
                return AttemptOutcome(user_id=user_id, ran=False, record=record)
            started = apply_event(record, AttemptStarted(), started_at)

            try:
                result = await self.orchestrator.run_one_batch(user_id)
            except PersistenceError:
                raise
            except Exception as e:
                kind = classify_failure(e)
                message = e.message if isinstance(e, YouTubeExporterError) else f"{type(e).__name__}: {e}"
                logger.warning(f"Auto-resume batch for {user_id} failed ({kind.value}): {message}")
                updated = apply_event(
                    started, BatchFailed(kind=kind, message=message, backoff=self.backoff), self.clock()
                )
                saved = self._save_unless_disabled(updated)
                return AttemptOutcome(user_id=user_id, ran=True, record=saved, error=message)

            finished_at = self.clock()
            updated = apply_event(
                started,
                BatchSucceeded(result=result, quota_resets_at=self.quota_window.next_reset(finished_at)),
                finished_at,
            )
            saved = self._save_unless_disabled(updated)
            logger.info(f"Auto-resume attempt for {user_id} done: {saved}")
            return AttemptOutcome(user_id=user_id, ran=True, record=saved, result=result)

    def _save_unless_disabled(self, updated: AutoResumeRecord) -> AutoResumeRecord:
        """Persist an outcome unless the user disabled auto-resume while the batch ran."""
        saved = self.store.save_unless_disabled(updated)
        if saved.status == AutoResumeStatus.DISABLED and updated.status != AutoResumeStatus.DISABLED:
            logger.info(f"Auto-resume for {updated.user_id} was disabled during the batch")
        return saved

    async def sweep(self, max_batches: int = 15) -> SweepResult:
        """
        Run due attempts for all users, round-robin, within a batch budget.

        Users whose batch left them active get another turn in the next round
        until they stop doing work or the budget is spent. Never raises for a
        single user's failure; it is logged and collected in the result.
        """
        result = SweepResult()
        spent = 0

        try:
            due = self.store.list_due(self.clock())
        except PersistenceError as e:
            logger.error(f"Auto-resume sweep could not list due users: {e}")
            result.add_error("*", e)
            result.complete()
            return result

        logger.info(f"Auto-resume sweep started with {len(due)} due users")

        while due and spent < max_batches:
            next_round: list[str] = []
            for user_id in due:
                if spent >= max_batches:
                    break
                try:
                    outcome = await self.attempt(user_id)
                except Exception as e:
                    logger.exception(f"Auto-resume attempt for {user_id} crashed: {e}")
                    result.add_error(user_id, e)
                    continue

                if not outcome.ran:
                    result.skipped += 1
                    continue
                spent += 1

                status = outcome.record.status if outcome.record else AutoResumeStatus.DISABLED
                if outcome.failed:
                    result.add_error(user_id, outcome.error or "")
                    if status == AutoResumeStatus.PAUSED:
                        result.paused += 1
                    else:
                        result.disabled += 1
                elif outcome.result is not None and outcome.result.export_complete:
                    result.completed += 1
                elif status == AutoResumeStatus.PAUSED:
                    result.paused += 1
                elif status == AutoResumeStatus.DISABLED:
                    result.disabled += 1
                else:
                    result.processed += 1
                    next_round.append(user_id)
            due = next_round

        result.complete()
        logger.info(f"Auto-resume sweep finished in {result.duration_seconds:.1f}s: {result}")
        return result
