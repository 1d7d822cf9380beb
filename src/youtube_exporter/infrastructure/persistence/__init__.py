"""SQLAlchemy implementations of the export store."""

from youtube_exporter.infrastructure.persistence.auto_resume_store import SqlAutoResumeStore
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.lease_manager import SqlLeaseManager
from youtube_exporter.infrastructure.persistence.quota_tracker import SqlQuotaTracker
from youtube_exporter.infrastructure.persistence.source_registry import SqlSourceRegistry
from youtube_exporter.infrastructure.persistence.video_store import SqlVideoStore

__all__ = [
    "Database",
    "SqlAutoResumeStore",
    "SqlLeaseManager",
    "SqlQuotaTracker",
    "SqlSourceRegistry",
    "SqlVideoStore",
]
