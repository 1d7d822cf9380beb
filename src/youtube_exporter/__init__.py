"""YouTube Exporter - Quota-aware export of YouTube playlists and subscriptions."""

__version__ = "0.1.0"
__description__ = "Export the videos of a YouTube library page by page within a daily API quota ceiling"

from youtube_exporter.domain.models import ExportedVideo, Source, SourceKind, SourceStatus

__all__ = ["ExportedVideo", "Source", "SourceKind", "SourceStatus"]
