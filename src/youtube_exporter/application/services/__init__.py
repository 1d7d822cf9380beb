"""Application services for business logic orchestration."""

from youtube_exporter.application.services.auto_resume_controller import AutoResumeController
from youtube_exporter.application.services.batch_executor import BatchExecutor
from youtube_exporter.application.services.export_orchestrator import ExportOrchestrator
from youtube_exporter.application.services.export_service import DefaultExportService
from youtube_exporter.application.services.status_reporter import StatusReporter

__all__ = [
    "AutoResumeController",
    "BatchExecutor",
    "DefaultExportService",
    "ExportOrchestrator",
    "StatusReporter",
]
