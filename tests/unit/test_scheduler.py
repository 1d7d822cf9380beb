"""Tests for the APScheduler-driven sweep runner."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest

from youtube_exporter.domain.models.export import SweepResult
from youtube_exporter.infrastructure.scheduler import SWEEP_JOB_ID, SchedulerManager


@pytest.fixture
def mock_export_service() -> Mock:
    service = Mock()
    service.run_auto_resume_sweep = AsyncMock(return_value=SweepResult(processed=2, completed=1))
    return service


class TestSchedulerManager:
    """Tests for SchedulerManager."""

    def test_run_sweep(self, mock_export_service: Mock) -> None:
        """Test one synchronous sweep."""
        manager = SchedulerManager(mock_export_service, interval_minutes=10, max_batches=7)

        result = manager.run_sweep()

        assert result.processed == 2
        assert manager.last_result is result
        mock_export_service.run_auto_resume_sweep.assert_awaited_once_with(7)

    def test_run_sweep_failure_is_logged(self, mock_export_service: Mock) -> None:
        """Test that a failing sweep does not kill the scheduler thread."""
        mock_export_service.run_auto_resume_sweep.side_effect = RuntimeError("database gone")
        manager = SchedulerManager(mock_export_service)

        assert manager.run_sweep() is None
        assert manager.last_result is None

    def test_start_registers_sweep_job(self, mock_export_service: Mock) -> None:
        """Test that starting registers a single interval job."""
        manager = SchedulerManager(mock_export_service, interval_minutes=15)
        try:
            manager.start(run_immediately=False)
            snapshot = manager.snapshot()

            assert snapshot.running is True
            assert snapshot.total_jobs == 1
            assert SWEEP_JOB_ID in snapshot.next_runs
            assert snapshot.next_runs[SWEEP_JOB_ID] is not None
        finally:
            manager.shutdown(wait=False)

        assert manager.snapshot().running is False

    def test_shutdown_before_start(self, mock_export_service: Mock) -> None:
        """Test that shutting down an idle scheduler is harmless."""
        manager = SchedulerManager(mock_export_service)
        manager.shutdown()
        assert manager.snapshot().total_jobs == 0
