"""Auto-resume state machine: persistent per-user state and its transitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Union

from youtube_exporter.domain.exceptions import FailureKind
from youtube_exporter.domain.models.export import ExportBatchResult


class AutoResumeStatus(str, Enum):
    """Whether the exporter may run batches for a user on its own."""

    ACTIVE = "active"
    PAUSED = "paused"
    DISABLED = "disabled"


class PauseReason(str, Enum):
    """Why autonomous progress halted."""

    NONE = "none"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT_ERROR = "transient_error"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff applied to consecutive transient failures."""

    initial_delay_seconds: int = 300
    backoff_factor: float = 2.0
    max_delay_seconds: int = 21600

    def delay_for(self, failures: int) -> timedelta:
        """Delay before retrying after ``failures`` consecutive transient failures."""
        exponent = max(failures - 1, 0)
        seconds = self.initial_delay_seconds * (self.backoff_factor ** exponent)
        return timedelta(seconds=min(seconds, self.max_delay_seconds))


@dataclass(frozen=True)
class AutoResumeRecord:
    """
    Persistent auto-resume state for one user.

    Instances are immutable; every change goes through :func:`apply_event`.
    """

    user_id: str
    status: AutoResumeStatus = AutoResumeStatus.DISABLED
    paused_reason: PauseReason = PauseReason.NONE
    paused_until: datetime | None = None
    last_attempt: datetime | None = None
    next_attempt: datetime | None = None
    consecutive_failures: int = 0
    last_error: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate the state invariants."""
        if not self.user_id:
            raise ValueError("User ID cannot be empty")
        if self.status == AutoResumeStatus.PAUSED and self.paused_until is None:
            raise ValueError("A paused auto-resume needs a paused_until time")
        if self.status == AutoResumeStatus.ACTIVE and (
            self.paused_reason != PauseReason.NONE or self.paused_until is not None
        ):
            raise ValueError("An active auto-resume cannot carry a pause")

    def is_eligible(self, now: datetime) -> bool:
        """Whether an attempt made at ``now`` should run a batch."""
        if self.status == AutoResumeStatus.ACTIVE:
            return True
        if self.status == AutoResumeStatus.PAUSED and self.paused_until is not None:
            return now >= self.paused_until
        return False

    def to_dict(self) -> dict[str, Any]:
        """Snapshot suitable for JSON responses."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status.value,
            "paused_reason": self.paused_reason.value,
            "paused_until": iso(self.paused_until),
            "last_attempt": iso(self.last_attempt),
            "next_attempt": iso(self.next_attempt),
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.status == AutoResumeStatus.PAUSED:
            return (
                f"AutoResume(user={self.user_id}, paused: {self.paused_reason.value} "
                f"until {self.paused_until})"
            )
        return f"AutoResume(user={self.user_id}, {self.status.value})"


@dataclass(frozen=True)
class EnableRequested:
    """The user switched auto-resume on."""


@dataclass(frozen=True)
class DisableRequested:
    """The user switched auto-resume off."""


@dataclass(frozen=True)
class AttemptStarted:
    """A manual trigger or the scheduler is about to run a batch."""


@dataclass(frozen=True)
class BatchSucceeded:
    """The orchestrator returned a snapshot."""

    result: ExportBatchResult
    quota_resets_at: datetime


@dataclass(frozen=True)
class BatchFailed:
    """The orchestrator raised a classified remote failure."""

    kind: FailureKind
    message: str
    backoff: BackoffPolicy = BackoffPolicy()


@dataclass(frozen=True)
class AttemptOutcome:
    """
    What a single auto-resume attempt did.

    ``ran`` is False when the attempt was a no-op: the record was not
    eligible or another worker held the user's lease.
    """

    user_id: str
    ran: bool
    record: AutoResumeRecord | None = None
    result: ExportBatchResult | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


AutoResumeEvent = Union[
    EnableRequested, DisableRequested, AttemptStarted, BatchSucceeded, BatchFailed
]


class InvalidTransitionError(ValueError):
    """Raised when an event is not allowed in the record's current state."""


def apply_event(
    record: AutoResumeRecord, event: AutoResumeEvent, now: datetime
) -> AutoResumeRecord:
    """
    Compute the state that follows ``event`` at time ``now``.

    This is the only place auto-resume state changes, whoever triggers it.
    The function is pure: persisting the returned record is the caller's job.
    """
    if isinstance(event, EnableRequested):
        return replace(
            record,
            status=AutoResumeStatus.ACTIVE,
            paused_reason=PauseReason.NONE,
            paused_until=None,
            next_attempt=now,
            consecutive_failures=0,
            last_error=None,
        )

    if isinstance(event, DisableRequested):
        return replace(
            record,
            status=AutoResumeStatus.DISABLED,
            paused_reason=PauseReason.NONE,
            paused_until=None,
            next_attempt=None,
        )

    if isinstance(event, AttemptStarted):
        if not record.is_eligible(now):
            raise InvalidTransitionError(
                f"Auto-resume for {record.user_id} is not eligible at {now.isoformat()}"
            )
        return replace(
            record,
            status=AutoResumeStatus.ACTIVE,
            paused_reason=PauseReason.NONE,
            paused_until=None,
            last_attempt=now,
        )

    if isinstance(event, BatchSucceeded):
        return _after_batch(record, event, now)

    if isinstance(event, BatchFailed):
        return _after_failure(record, event, now)

    raise InvalidTransitionError(f"Unknown auto-resume event: {event!r}")


def _after_batch(
    record: AutoResumeRecord, event: BatchSucceeded, now: datetime
) -> AutoResumeRecord:
    result = event.result

    if result.export_complete:
        return replace(
            record,
            status=AutoResumeStatus.DISABLED,
            paused_reason=PauseReason.NONE,
            paused_until=None,
            next_attempt=None,
            consecutive_failures=0,
            last_error=None,
        )

    if result.should_stop:
        if event.quota_resets_at <= now:
            raise InvalidTransitionError("Quota reset must lie in the future")
        return replace(
            record,
            status=AutoResumeStatus.PAUSED,
            paused_reason=PauseReason.QUOTA_EXCEEDED,
            paused_until=event.quota_resets_at,
            next_attempt=event.quota_resets_at,
            consecutive_failures=0,
            last_error=None,
        )

    return replace(
        record,
        status=AutoResumeStatus.ACTIVE,
        paused_reason=PauseReason.NONE,
        paused_until=None,
        next_attempt=now,
        consecutive_failures=0,
        last_error=None,
    )


def _after_failure(
    record: AutoResumeRecord, event: BatchFailed, now: datetime
) -> AutoResumeRecord:
    if event.kind == FailureKind.FATAL:
        return replace(
            record,
            status=AutoResumeStatus.DISABLED,
            paused_reason=PauseReason.FATAL_ERROR,
            paused_until=None,
            next_attempt=None,
            last_error=event.message,
        )

    failures = record.consecutive_failures + 1
    paused_until = now + event.backoff.delay_for(failures)
    return replace(
        record,
        status=AutoResumeStatus.PAUSED,
        paused_reason=PauseReason.TRANSIENT_ERROR,
        paused_until=paused_until,
        next_attempt=paused_until,
        consecutive_failures=failures,
        last_error=event.message,
    )
