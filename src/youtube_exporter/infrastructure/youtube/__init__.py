"""YouTube API integration implementations."""

from youtube_exporter.infrastructure.youtube.auth_manager import YouTubeAuthManager
from youtube_exporter.infrastructure.youtube.source_client import YouTubeSourceClient

__all__ = [
    "YouTubeAuthManager",
    "YouTubeSourceClient",
]
