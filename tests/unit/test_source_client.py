"""Tests for the YouTube source client."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import Mock

import httplib2
import pytest
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from youtube_exporter.domain.exceptions import (
    APIError,
    AuthenticationError,
    QuotaExceededError,
    RateLimitError,
    SourceNotFoundError,
)
from youtube_exporter.domain.models.source import SourceKind
from youtube_exporter.infrastructure.youtube.source_client import (
    YouTubeSourceClient,
    map_http_error,
)


def http_error(status: int, reason: str = "", message: str = "API error") -> HttpError:
    """Build an HttpError the way the API client raises it."""
    errors = [{"reason": reason, "message": message}] if reason else []
    content = json.dumps({"error": {"code": status, "message": message, "errors": errors}})
    return HttpError(Mock(status=status, reason=message), content.encode("utf-8"))


def playlist_entry(video_id: str, title: str = "") -> dict[str, Any]:
    return {
        "snippet": {"title": title or f"Entry {video_id}", "videoOwnerChannelId": "UCentry"},
        "contentDetails": {"videoId": video_id},
    }


def video_detail(video_id: str, language: str | None = "en") -> dict[str, Any]:
    snippet: dict[str, Any] = {
        "title": f"Video {video_id}",
        "channelId": "UCowner",
        "channelTitle": "Owner",
        "publishedAt": "2024-01-02T03:04:05Z",
        "thumbnails": {
            "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
            "medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"},
        },
    }
    if language:
        snippet["defaultAudioLanguage"] = language
    return {"id": video_id, "snippet": snippet}


@pytest.fixture
def mock_service() -> Mock:
    return Mock()


@pytest.fixture
def mock_auth_manager(mock_service: Mock) -> Mock:
    """Mock auth manager handing out the mock service."""
    auth_manager = Mock()
    auth_manager.get_authenticated_service.return_value = mock_service
    return auth_manager


@pytest.fixture
def client(mock_auth_manager: Mock) -> YouTubeSourceClient:
    return YouTubeSourceClient(mock_auth_manager, "user-1", page_size=50)


class TestMapHttpError:
    """Tests for map_http_error."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (http_error(404, "playlistNotFound"), SourceNotFoundError),
            (http_error(403, "playlistItemsNotAccessible"), SourceNotFoundError),
            (http_error(429), RateLimitError),
            (http_error(403, "rateLimitExceeded"), RateLimitError),
            (http_error(403, "quotaExceeded"), QuotaExceededError),
            (http_error(403, "forbidden"), AuthenticationError),
            (http_error(401, "authError"), AuthenticationError),
            (http_error(500, "backendError"), APIError),
        ],
    )
    def test_mapping(self, error: HttpError, expected: type) -> None:
        """Test that each HTTP failure lands on the right domain exception."""
        mapped = map_http_error(error, "PL1")
        assert type(mapped) is expected
        assert mapped.cause is error

    def test_missing_source_keeps_id(self) -> None:
        """Test that the source ID is carried on not-found errors."""
        mapped = map_http_error(http_error(404, "playlistNotFound"), "PL1")
        assert mapped.source_id == "PL1"

    def test_server_error_keeps_status(self) -> None:
        """Test that unclassified failures keep their status code."""
        mapped = map_http_error(http_error(503, "backendError"), "PL1")
        assert mapped.status_code == 503


class TestFetchPage:
    """Tests for YouTubeSourceClient.fetch_page."""

    def test_page_size_is_capped(self, mock_auth_manager: Mock) -> None:
        """Test that YouTube's page size maximum is enforced."""
        client = YouTubeSourceClient(mock_auth_manager, "user-1", page_size=500)
        assert client.page_size == 50
        assert client.page_cost == 2
        assert client.listing_cost == 1

    @pytest.mark.asyncio
    async def test_fetch_page(self, client: YouTubeSourceClient, mock_service: Mock) -> None:
        """Test parsing a page and its video details."""
        mock_service.playlistItems.return_value.list.return_value.execute.return_value = {
            "items": [playlist_entry("v1"), playlist_entry("v2")],
            "nextPageToken": "NEXT",
            "pageInfo": {"totalResults": 120},
        }
        mock_service.videos.return_value.list.return_value.execute.return_value = {
            "items": [video_detail("v1", "en-US"), video_detail("v2", None)],
        }

        page = await client.fetch_page(SourceKind.PLAYLIST, "PL1", "CURSOR")

        mock_service.playlistItems.return_value.list.assert_called_once_with(
            part="snippet,contentDetails", playlistId="PL1", maxResults=50, pageToken="CURSOR"
        )
        mock_service.videos.return_value.list.assert_called_once_with(
            part="snippet,contentDetails", id="v1,v2"
        )
        assert page.next_cursor == "NEXT"
        assert page.total_results == 120
        assert page.has_more is True

        first, second = page.items
        assert first.video_id == "v1"
        assert first.title == "Video v1"
        assert first.channel_id == "UCowner"
        assert first.language == "en-US"
        assert first.published_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert first.thumbnail_url == "https://i.ytimg.com/vi/v1/mqdefault.jpg"
        assert second.language is None

    @pytest.mark.asyncio
    async def test_channel_reads_uploads_playlist(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test that channels are read through their uploads playlist."""
        mock_service.playlistItems.return_value.list.return_value.execute.return_value = {"items": []}

        await client.fetch_page(SourceKind.CHANNEL, "UCabc", None)

        kwargs = mock_service.playlistItems.return_value.list.call_args.kwargs
        assert kwargs["playlistId"] == "UUabc"

    @pytest.mark.asyncio
    async def test_empty_page_skips_details(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test that an empty listing makes no video details call."""
        mock_service.playlistItems.return_value.list.return_value.execute.return_value = {
            "items": [],
            "pageInfo": {"totalResults": 0},
        }

        page = await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)

        assert page.items == []
        assert page.has_more is False
        mock_service.videos.assert_not_called()

    @pytest.mark.asyncio
    async def test_deleted_video_uses_entry_snippet(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test items without video details, as for deleted videos."""
        mock_service.playlistItems.return_value.list.return_value.execute.return_value = {
            "items": [playlist_entry("gone", "Deleted video")],
        }
        mock_service.videos.return_value.list.return_value.execute.return_value = {"items": []}

        page = await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)

        assert page.items[0].title == "Deleted video"
        assert page.items[0].channel_id == "UCentry"
        assert page.items[0].language is None

    @pytest.mark.asyncio
    async def test_http_error_is_mapped(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test that API failures surface as domain exceptions."""
        mock_service.playlistItems.return_value.list.return_value.execute.side_effect = http_error(
            404, "playlistNotFound"
        )

        with pytest.raises(SourceNotFoundError) as exc_info:
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)
        assert exc_info.value.source_id == "PL1"

    @pytest.mark.asyncio
    async def test_revoked_credential(self, client: YouTubeSourceClient, mock_service: Mock) -> None:
        """Test that a failed token refresh is an authentication failure."""
        mock_service.playlistItems.return_value.list.return_value.execute.side_effect = RefreshError(
            "invalid_grant"
        )

        with pytest.raises(AuthenticationError, match="revoked"):
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)

    @pytest.mark.asyncio
    async def test_network_error(self, client: YouTubeSourceClient, mock_service: Mock) -> None:
        """Test that connection failures are retryable API errors."""
        mock_service.playlistItems.return_value.list.return_value.execute.side_effect = ConnectionResetError()

        with pytest.raises(APIError, match="Network error"):
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)

    @pytest.mark.asyncio
    async def test_dns_failure(self, client: YouTubeSourceClient, mock_service: Mock) -> None:
        """Test that an unresolvable API host is a retryable API error."""
        mock_service.playlistItems.return_value.list.return_value.execute.side_effect = (
            httplib2.ServerNotFoundError("Unable to find the server at youtube.googleapis.com")
        )

        with pytest.raises(APIError, match="Network error") as exc_info:
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)
        assert isinstance(exc_info.value.__cause__, httplib2.ServerNotFoundError)

    @pytest.mark.asyncio
    async def test_token_transport_failure_while_building_service(
        self, client: YouTubeSourceClient, mock_auth_manager: Mock
    ) -> None:
        """Test that failures while getting the service are mapped too."""
        mock_auth_manager.get_authenticated_service.side_effect = TransportError(
            "connection reset during token refresh"
        )

        with pytest.raises(APIError, match="Network error"):
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(
        self, client: YouTubeSourceClient, mock_auth_manager: Mock
    ) -> None:
        """Test that errors already mapped by the auth manager are kept as is."""
        mock_auth_manager.get_authenticated_service.side_effect = AuthenticationError("No token")

        with pytest.raises(AuthenticationError, match="No token"):
            await client.fetch_page(SourceKind.PLAYLIST, "PL1", None)


class TestDiscovery:
    """Tests for listing playlists and subscriptions."""

    @pytest.mark.asyncio
    async def test_list_playlists_follows_pages(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test paging through playlists while reserving quota per page."""
        mock_service.playlists.return_value.list.return_value.execute.side_effect = [
            {
                "items": [
                    {"id": "PL1", "snippet": {"title": "One"}, "contentDetails": {"itemCount": 7}},
                    {"id": "PL2", "snippet": {"title": "Two"}},
                ],
                "nextPageToken": "P2",
            },
            {"items": [{"id": "PL1", "snippet": {"title": "One"}}, {"snippet": {}}]},
        ]
        reserved: list[int] = []

        def reserve(cost: int) -> bool:
            reserved.append(cost)
            return True

        playlists = await client.list_playlists(reserve)

        assert [(p.id, p.title, p.item_count) for p in playlists] == [("PL1", "One", 7), ("PL2", "Two", 0)]
        assert reserved == [1, 1]
        assert mock_service.playlists.return_value.list.call_args_list[1].kwargs["pageToken"] == "P2"

    @pytest.mark.asyncio
    async def test_listing_refused_by_quota(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test that no listing call is made without quota."""
        with pytest.raises(QuotaExceededError):
            await client.list_playlists(lambda cost: False)
        mock_service.playlists.return_value.list.return_value.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_subscribed_channels(
        self, client: YouTubeSourceClient, mock_service: Mock
    ) -> None:
        """Test parsing subscriptions into channel sources."""
        mock_service.subscriptions.return_value.list.return_value.execute.return_value = {
            "items": [
                {"snippet": {"title": "Chan", "resourceId": {"channelId": "UC1"}}},
                {"snippet": {"title": "Broken"}},
            ]
        }

        channels = await client.list_subscribed_channels()

        assert [(c.id, c.title) for c in channels] == [("UC1", "Chan")]
        mock_service.subscriptions.return_value.list.assert_called_once_with(
            part="snippet", mine=True, maxResults=50, pageToken=None
        )
