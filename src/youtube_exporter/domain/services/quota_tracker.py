"""Abstract base class for daily quota accounting."""

from abc import ABC, abstractmethod
from datetime import date

from youtube_exporter.domain.models.quota import QuotaReservation, QuotaState, QuotaWindow


class QuotaTracker(ABC):
    """
    Abstract service tracking remote-API cost against a daily ceiling.

    A day with no recorded usage counts as zero consumed, so the daily reset
    is implicit in the ``day`` argument.
    """

    @property
    @abstractmethod
    def ceiling(self) -> int:
        """Maximum units a user may consume per quota day."""
        pass

    @property
    @abstractmethod
    def window(self) -> QuotaWindow:
        """The schedule defining where one quota day ends and the next begins."""
        pass

    @abstractmethod
    def remaining(self, user_id: str, day: date) -> int:
        """
        Units left for the user on ``day``.

        Returns:
            The ceiling minus the units consumed, never negative
        """
        pass

    @abstractmethod
    def try_consume(self, user_id: str, day: date, cost: int) -> QuotaReservation:
        """
        Atomically reserve ``cost`` units if they fit under the ceiling.

        The check and the increment happen as one step, so concurrent callers
        for the same user and day can never push consumption past the ceiling.
        A rejected reservation leaves the stored state untouched.

        Raises:
            PersistenceError: If the store cannot be updated
        """
        pass

    @abstractmethod
    def status(self, user_id: str, day: date) -> QuotaState:
        """Get the consumption snapshot for one user and day."""
        pass

    @abstractmethod
    def history(self, user_id: str, days: int = 7) -> list[QuotaState]:
        """
        Get recorded consumption for the last ``days`` quota days.

        Returns:
            Recorded days, newest first. Days without usage are omitted.
        """
        pass
