"""Quota domain models: daily usage snapshots and the reset window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class QuotaWindow:
    """
    Defines which calendar day a moment belongs to for quota purposes.

    A quota day starts at local midnight in ``timezone_name``. YouTube resets
    its Data API quota at midnight Pacific time, which is the default.
    """

    timezone_name: str = "America/Los_Angeles"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    def day_of(self, moment: datetime) -> date:
        """Return the quota day containing ``moment``."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()

    def next_reset(self, moment: datetime) -> datetime:
        """Return the first instant of the quota day after the one containing ``moment``."""
        tomorrow = self.day_of(moment) + timedelta(days=1)
        local_midnight = datetime.combine(tomorrow, time.min, tzinfo=self.tz)
        return local_midnight.astimezone(timezone.utc)


@dataclass(frozen=True)
class QuotaReservation:
    """Outcome of an attempt to reserve quota units for one remote call."""

    accepted: bool
    remaining_after: int
    cost: int = 0


@dataclass(frozen=True)
class QuotaState:
    """
    Quota consumption for one user on one quota day.

    ``ceiling`` is the self-imposed budget (a share of ``daily_limit``) that
    exports are allowed to spend.
    """

    day: date
    consumed: int
    daily_limit: int
    ceiling: int

    @property
    def remaining(self) -> int:
        """Units left before the ceiling is reached."""
        return max(self.ceiling - self.consumed, 0)

    @property
    def percent_used(self) -> float:
        """Consumption as a percentage of the remote daily limit."""
        if self.daily_limit == 0:
            return 0.0
        return (self.consumed / self.daily_limit) * 100

    def can_afford(self, cost: int) -> bool:
        """Whether a call of the given cost fits under the ceiling."""
        return self.consumed + cost <= self.ceiling

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"QuotaState(day={self.day.isoformat()}, consumed={self.consumed}, "
            f"ceiling={self.ceiling}, percent_used={self.percent_used:.1f}%)"
        )
