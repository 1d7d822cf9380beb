"""YouTube API source client implementation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from youtube_exporter.domain.exceptions import (
    APIError,
    AuthenticationError,
    QuotaExceededError,
    RateLimitError,
    SourceNotFoundError,
    YouTubeExporterError,
)
from youtube_exporter.domain.models.source import (
    RemoteSource,
    SourceKind,
    channel_uploads_playlist_id,
)
from youtube_exporter.domain.models.video import Page, PageItem
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.infrastructure.youtube.auth_manager import YouTubeAuthManager

logger = logging.getLogger(__name__)

# playlistItems.list + videos.list
DEFAULT_PAGE_COST = 2
MAX_PAGE_SIZE = 50

_QUOTA_REASONS = ("quotaExceeded", "dailyLimitExceeded")
_RATE_LIMIT_REASONS = ("rateLimitExceeded", "userRateLimitExceeded")
_NOT_ACCESSIBLE_REASONS = ("playlistItemsNotAccessible", "playlistNotFound", "channelNotFound")


def map_http_error(error: HttpError, resource_id: str) -> YouTubeExporterError:
    """
    Translate a YouTube API HTTP error into a domain exception.

    Args:
        error: The error raised by the API client
        resource_id: ID of the playlist or channel the call targeted
    """
    status = error.resp.status
    content = error.content.decode("utf-8", errors="replace") if error.content else ""
    detail = f"{error} {content}"

    if status == 404 or any(reason in detail for reason in _NOT_ACCESSIBLE_REASONS):
        return SourceNotFoundError(resource_id, error)
    if status == 429 or any(reason in detail for reason in _RATE_LIMIT_REASONS):
        return RateLimitError(cause=error)
    if status == 403:
        if any(reason in detail for reason in _QUOTA_REASONS):
            return QuotaExceededError(cause=error)
        return AuthenticationError("Insufficient permissions", error)
    if status == 401:
        return AuthenticationError("YouTube credential rejected", error)
    return APIError(f"YouTube API error: {error}", status, error)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value}")
        return None


class YouTubeSourceClient(SourceClient):
    """
    YouTube Data API v3 implementation of the source client for one user.

    A page is one ``playlistItems.list`` call followed by one ``videos.list``
    call for the details (language, thumbnail) of the listed videos. Channel
    sources are read through their uploads playlist.
    """

    def __init__(
        self,
        auth_manager: YouTubeAuthManager,
        user_id: str,
        page_size: int = MAX_PAGE_SIZE,
        page_cost: int = DEFAULT_PAGE_COST,
        listing_cost: int = 1,
    ) -> None:
        """
        Initialize the YouTube source client.

        Args:
            auth_manager: YouTube authentication manager
            user_id: The user whose credential is used for every call
            page_size: Items requested per page (at most 50)
            page_cost: Quota units charged per fetched page
            listing_cost: Quota units charged per discovery listing page
        """
        self.auth_manager = auth_manager
        self.user_id = user_id
        self.page_size = min(page_size, MAX_PAGE_SIZE)
        self._page_cost = page_cost
        self._listing_cost = listing_cost

    @property
    def page_cost(self) -> int:
        return self._page_cost

    @property
    def listing_cost(self) -> int:
        return self._listing_cost

    def _map_failure(self, error: Exception, resource_id: str) -> YouTubeExporterError:
        if isinstance(error, HttpError):
            return map_http_error(error, resource_id)
        if isinstance(error, RefreshError):
            return AuthenticationError(f"Credential for {self.user_id} was revoked: {error}", error)
        # DNS, socket and token transport failures all land here
        return APIError(f"Network error talking to YouTube: {error}", cause=error)

    def _service(self, resource_id: str) -> Any:
        try:
            return self.auth_manager.get_authenticated_service(self.user_id)
        except YouTubeExporterError:
            raise
        except Exception as e:
            raise self._map_failure(e, resource_id) from e

    async def _execute(self, request: Any, resource_id: str) -> dict[str, Any]:
        """Run a prepared API request off the event loop, mapping failures."""
        try:
            return await asyncio.to_thread(request.execute)
        except YouTubeExporterError:
            raise
        except Exception as e:
            raise self._map_failure(e, resource_id) from e

    async def fetch_page(
        self, kind: SourceKind, external_source_id: str, cursor: Optional[str]
    ) -> Page:
        playlist_id = (
            channel_uploads_playlist_id(external_source_id)
            if kind == SourceKind.CHANNEL
            else external_source_id
        )
        service = self._service(external_source_id)

        listing = await self._execute(
            service.playlistItems().list(
                part="snippet,contentDetails",
                playlistId=playlist_id,
                maxResults=self.page_size,
                pageToken=cursor,
            ),
            external_source_id,
        )
        next_cursor = listing.get("nextPageToken") or None
        total_results = listing.get("pageInfo", {}).get("totalResults", 0)

        entries = listing.get("items", [])
        video_ids = [
            entry.get("contentDetails", {}).get("videoId")
            for entry in entries
            if entry.get("contentDetails", {}).get("videoId")
        ]
        if not video_ids:
            return Page(items=[], next_cursor=next_cursor, total_results=total_results)

        details = await self._execute(
            service.videos().list(part="snippet,contentDetails", id=",".join(video_ids)),
            external_source_id,
        )
        details_by_id = {item["id"]: item for item in details.get("items", []) if "id" in item}

        items = [
            self._parse_item(entry, details_by_id.get(entry["contentDetails"]["videoId"]))
            for entry in entries
            if entry.get("contentDetails", {}).get("videoId")
        ]
        logger.debug(
            f"Fetched {len(items)} items from {kind.value} {external_source_id} "
            f"(next page: {bool(next_cursor)})"
        )
        return Page(items=items, next_cursor=next_cursor, total_results=total_results)

    def _parse_item(self, entry: dict[str, Any], detail: Optional[dict[str, Any]]) -> PageItem:
        """
        Merge a playlist entry with its video details.

        Deleted or private videos have no details; the playlist entry's own
        snippet is used for them.
        """
        entry_snippet = entry.get("snippet", {})
        snippet = (detail or {}).get("snippet", {})
        thumbnails = snippet.get("thumbnails") or entry_snippet.get("thumbnails") or {}

        return PageItem(
            video_id=entry["contentDetails"]["videoId"],
            title=snippet.get("title") or entry_snippet.get("title") or "",
            channel_id=snippet.get("channelId") or entry_snippet.get("videoOwnerChannelId"),
            channel_title=snippet.get("channelTitle") or entry_snippet.get("videoOwnerChannelTitle"),
            language=snippet.get("defaultAudioLanguage") or None,
            published_at=_parse_timestamp(snippet.get("publishedAt")),
            thumbnail_url=thumbnails.get("medium", {}).get("url"),
        )

    async def _list_all(
        self,
        build_request: Callable[[Any, Optional[str]], Any],
        parse: Callable[[dict[str, Any]], Optional[RemoteSource]],
        what: str,
        reserve: Optional[Callable[[int], bool]],
    ) -> list[RemoteSource]:
        service = self._service(what)
        found: dict[str, RemoteSource] = {}
        page_token: Optional[str] = None

        while True:
            if reserve is not None and not reserve(self._listing_cost):
                raise QuotaExceededError(f"No quota left to list {what}")
            response = await self._execute(build_request(service, page_token), what)
            for item in response.get("items", []):
                remote = parse(item)
                if remote is not None and remote.id not in found:
                    found[remote.id] = remote
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Found {len(found)} {what} for {self.user_id}")
        return list(found.values())

    async def list_playlists(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        def build_request(service: Any, page_token: Optional[str]) -> Any:
            return service.playlists().list(
                part="snippet,contentDetails", mine=True, maxResults=MAX_PAGE_SIZE, pageToken=page_token
            )

        def parse(item: dict[str, Any]) -> Optional[RemoteSource]:
            if not item.get("id"):
                return None
            return RemoteSource(
                id=item["id"],
                title=item.get("snippet", {}).get("title"),
                item_count=item.get("contentDetails", {}).get("itemCount", 0),
            )

        return await self._list_all(build_request, parse, "playlists", reserve)

    async def list_subscribed_channels(
        self, reserve: Optional[Callable[[int], bool]] = None
    ) -> list[RemoteSource]:
        def build_request(service: Any, page_token: Optional[str]) -> Any:
            return service.subscriptions().list(
                part="snippet", mine=True, maxResults=MAX_PAGE_SIZE, pageToken=page_token
            )

        def parse(item: dict[str, Any]) -> Optional[RemoteSource]:
            snippet = item.get("snippet", {})
            channel_id = snippet.get("resourceId", {}).get("channelId")
            if not channel_id:
                return None
            return RemoteSource(id=channel_id, title=snippet.get("title"))

        return await self._list_all(build_request, parse, "subscriptions", reserve)
