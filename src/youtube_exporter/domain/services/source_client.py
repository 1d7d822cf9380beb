"""Abstract base class for remote source access."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Optional

from youtube_exporter.domain.models.source import RemoteSource, SourceKind
from youtube_exporter.domain.models.video import Page


class SourceClient(ABC):
    """
    Abstract client for listing items of remote playlists and channels.

    Implementations wrap a remote API on behalf of one user. Every call has
    a fixed, declared cost in quota units, which callers reserve before
    making the call.
    """

    @property
    @abstractmethod
    def page_cost(self) -> int:
        """Quota units consumed by one :meth:`fetch_page` call."""
        pass

    @property
    @abstractmethod
    def listing_cost(self) -> int:
        """Quota units consumed by one page of a discovery listing."""
        pass

    @abstractmethod
    async def fetch_page(
        self, kind: SourceKind, external_source_id: str, cursor: Optional[str]
    ) -> Page:
        """
        Fetch one page of items from a source.

        Args:
            kind: Whether the source is a playlist or a channel
            external_source_id: The remote ID of the playlist or channel
            cursor: Continuation token from the previous page, None for the first page

        Returns:
            The page, with ``next_cursor`` None when the source is exhausted

        Raises:
            SourceNotFoundError: If the source no longer exists or is not accessible
            AuthenticationError: If the user's credential is invalid or revoked
            QuotaExceededError: If the remote API reports its daily quota as spent
            RateLimitError: If the remote API asks the caller to slow down
            APIError: For any other failure of the call
        """
        pass

    @abstractmethod
    async def list_playlists(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        """
        List the playlists owned by the user.

        Args:
            reserve: Called with :attr:`listing_cost` before each page. A False
                return aborts the listing with QuotaExceededError.

        Raises:
            QuotaExceededError: If ``reserve`` refused a page
            AuthenticationError: If the user's credential is invalid or revoked
            APIError: If the API call fails
        """
        pass

    @abstractmethod
    async def list_subscribed_channels(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        """
        List the channels the user is subscribed to.

        Args:
            reserve: Same as for :meth:`list_playlists`

        Raises:
            QuotaExceededError: If ``reserve`` refused a page
            AuthenticationError: If the user's credential is invalid or revoked
            APIError: If the API call fails
        """
        pass
