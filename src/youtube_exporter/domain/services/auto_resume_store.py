"""Abstract base class for auto-resume state persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from youtube_exporter.domain.models.auto_resume import AutoResumeRecord


class AutoResumeStore(ABC):
    """Abstract store of one auto-resume record per user."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[AutoResumeRecord]:
        """Get the user's record, None if auto-resume was never enabled."""
        pass

    @abstractmethod
    def save(self, record: AutoResumeRecord) -> AutoResumeRecord:
        """
        Insert or replace the user's record.

        Returns:
            The stored record, with its ID set
        """
        pass

    @abstractmethod
    def save_unless_disabled(self, record: AutoResumeRecord) -> AutoResumeRecord:
        """
        Replace the user's record unless it is disabled, as one atomic write.

        A disable committed by anyone before this call always wins.

        Returns:
            The stored record, unchanged if the write was refused
        """
        pass

    @abstractmethod
    def list_due(self, now: datetime) -> list[str]:
        """
        List users whose auto-resume may run at ``now``.

        Returns:
            IDs of users that are active, or paused with ``paused_until <= now``
        """
        pass
