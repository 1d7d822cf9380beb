"""Abstract base class for per-user mutual exclusion leases."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Lease:
    """A time-bound claim on a user's export work."""

    user_id: str
    token: str
    expires_at: datetime


class LeaseManager(ABC):
    """
    Abstract provider of per-user advisory leases.

    A lease is persistent and expires on its own, so a worker that dies while
    holding one blocks the user only until ``expires_at``. Leases must work
    across processes, not only across tasks of one process.
    """

    @abstractmethod
    def acquire(self, user_id: str, ttl_seconds: int) -> Lease | None:
        """
        Try to take the user's lease without waiting.

        Returns:
            The lease, or None if another holder has an unexpired lease
        """
        pass

    @abstractmethod
    def release(self, lease: Lease) -> None:
        """Give a lease back. Releasing a lease that already expired is a no-op."""
        pass

    @contextmanager
    def hold(self, user_id: str, ttl_seconds: int) -> Iterator[Lease | None]:
        """Hold the user's lease for the duration of a ``with`` block, if available."""
        lease = self.acquire(user_id, ttl_seconds)
        try:
            yield lease
        finally:
            if lease is not None:
                self.release(lease)
