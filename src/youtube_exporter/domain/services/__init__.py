"""Abstract base classes for domain services."""

from youtube_exporter.domain.services.auto_resume_store import AutoResumeStore
from youtube_exporter.domain.services.configuration_provider import (
    ConfigurationProvider,
)
from youtube_exporter.domain.services.export_service import ExportService
from youtube_exporter.domain.services.lease_manager import Lease, LeaseManager
from youtube_exporter.domain.services.quota_tracker import QuotaTracker
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.domain.services.source_registry import SourceRegistry
from youtube_exporter.domain.services.video_store import VideoStore

__all__ = [
    "AutoResumeStore",
    "ConfigurationProvider",
    "ExportService",
    "Lease",
    "LeaseManager",
    "QuotaTracker",
    "SourceClient",
    "SourceRegistry",
    "VideoStore",
]
