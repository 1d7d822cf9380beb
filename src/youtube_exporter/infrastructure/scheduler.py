"""Periodic auto-resume sweeps driven by APScheduler."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import STATE_RUNNING
from apscheduler.triggers.interval import IntervalTrigger

from youtube_exporter.domain.models.export import SweepResult
from youtube_exporter.domain.services.export_service import ExportService

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "auto-resume-sweep"


@dataclass(frozen=True)
class SchedulerSnapshot:
    """Snapshot of job registrations and high-level runtime state."""

    total_jobs: int
    running: bool
    next_runs: dict[str, Optional[str]]


class SchedulerManager:
    """
    Wrap APScheduler to run the auto-resume sweep on an interval.

    Only one sweep runs at a time and missed runs are coalesced, so a sweep
    that overruns its interval is never stacked with another one.
    """

    def __init__(
        self,
        export_service: ExportService,
        interval_minutes: int = 30,
        max_batches: int = 15,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        self.export_service = export_service
        self.interval_minutes = interval_minutes
        self.max_batches = max_batches
        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 90,
            }
        )
        self.last_result: Optional[SweepResult] = None

    def run_sweep(self) -> Optional[SweepResult]:
        """Run one sweep synchronously. Failures are logged, never raised."""
        started_at = datetime.now(timezone.utc)
        try:
            logger.debug(f"Running job {SWEEP_JOB_ID}")
            result = asyncio.run(self.export_service.run_auto_resume_sweep(self.max_batches))
        except Exception:
            logger.exception(f"Job {SWEEP_JOB_ID} failed")
            return None

        duration_ms = (datetime.now(timezone.utc) - started_at).total_seconds() * 1000
        logger.info(f"Job {SWEEP_JOB_ID} completed in {duration_ms:.2f}ms: {result}")
        self.last_result = result
        return result

    def start(self, run_immediately: bool = True) -> None:
        # An explicit next_run_time of None would add the job paused
        extra = {"next_run_time": datetime.now(self.scheduler.timezone)} if run_immediately else {}
        self.scheduler.add_job(
            self.run_sweep,
            IntervalTrigger(minutes=self.interval_minutes),
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            **extra,
        )
        self.scheduler.start()
        logger.info(
            f"Scheduler started: sweep every {self.interval_minutes} minutes, "
            f"up to {self.max_batches} batches"
        )

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.state == STATE_RUNNING:
            self.scheduler.shutdown(wait=wait)
        logger.info("Scheduler shutdown complete.")

    def snapshot(self) -> SchedulerSnapshot:
        """Return a snapshot of scheduler state for status output."""
        jobs = self.scheduler.get_jobs()
        next_runs = {
            job.id: job.next_run_time.isoformat() if job.next_run_time else None for job in jobs
        }
        running = self.scheduler.state == STATE_RUNNING
        return SchedulerSnapshot(total_jobs=len(jobs), running=running, next_runs=next_runs)
