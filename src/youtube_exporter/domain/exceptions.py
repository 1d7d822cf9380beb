"""Domain-specific exceptions for the YouTube Exporter application."""

from enum import Enum
from typing import Optional


class YouTubeExporterError(Exception):
    """Base exception for all YouTube Exporter errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(YouTubeExporterError):
    """Raised when there are configuration-related errors."""

    pass


class AuthenticationError(YouTubeExporterError):
    """Raised when the user's YouTube credential is missing, revoked or expired."""

    pass


class APIError(YouTubeExporterError):
    """Raised when YouTube API calls fail for a reason worth retrying later."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code


class RateLimitError(APIError):
    """Raised when YouTube API rate limits are exceeded."""

    def __init__(
        self,
        message: str = "YouTube API rate limit exceeded",
        retry_after: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, 429, cause)
        self.retry_after = retry_after


class QuotaExceededError(APIError):
    """Raised when YouTube reports the project's daily quota as exhausted."""

    def __init__(
        self,
        message: str = "YouTube API quota exceeded",
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, 403, cause)


class SourceNotFoundError(YouTubeExporterError):
    """Raised when a playlist or channel cannot be found or accessed."""

    def __init__(self, source_id: str, cause: Optional[Exception] = None) -> None:
        message = f"Source not found or not accessible: {source_id}"
        super().__init__(message, cause)
        self.source_id = source_id


class PersistenceError(YouTubeExporterError):
    """Raised when the export store cannot read or write state."""

    def __init__(
        self, operation: str, cause: Optional[Exception] = None
    ) -> None:
        message = f"Persistence failure during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, cause)
        self.operation = operation


class ExportInProgressError(YouTubeExporterError):
    """Raised when another worker already holds the export lease for a user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"An export batch is already running for user: {user_id}")
        self.user_id = user_id


class FailureKind(str, Enum):
    """How a failed batch should be treated by auto-resume."""

    TRANSIENT = "transient"
    FATAL = "fatal"


def classify_failure(error: Exception) -> FailureKind:
    """
    Classify a batch failure.

    Credential problems and permanently missing sources cannot be fixed by
    waiting, everything else reported by the remote API can. Errors from
    outside the domain are transient only when a network failure caused them.
    """
    if isinstance(error, (AuthenticationError, SourceNotFoundError)):
        return FailureKind.FATAL
    if isinstance(error, APIError):
        return FailureKind.TRANSIENT

    cause: Optional[BaseException] = error
    while cause is not None:
        if isinstance(cause, OSError):
            return FailureKind.TRANSIENT
        cause = cause.__cause__ or cause.__context__
    return FailureKind.FATAL
