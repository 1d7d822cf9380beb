"""YouTube API authentication manager."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError, RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from youtube_exporter.domain.exceptions import APIError, AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.@-]")


class YouTubeAuthManager:
    """
    Manages YouTube API authentication using OAuth2.

    This class handles the OAuth2 flow, token storage, and refresh logic
    for accessing the YouTube Data API v3. Each user has their own token
    file under ``token_dir``; the interactive flow only runs when explicitly
    requested, so scheduled exports fail fast on a missing or revoked token.
    """

    def __init__(
        self,
        credentials_file: str | Path | None,
        token_dir: str | Path,
        scopes: list[str],
    ) -> None:
        """
        Initialize the YouTube authentication manager.

        Args:
            credentials_file: Path to OAuth2 client credentials JSON file
            token_dir: Directory to store/load per-user access tokens
            scopes: List of OAuth2 scopes required
        """
        self.credentials_file = Path(credentials_file) if credentials_file else None
        self.token_dir = Path(token_dir)
        self.scopes = scopes
        self._credentials: dict[str, Credentials] = {}
        self._services: dict[str, Resource] = {}

    def token_file(self, user_id: str) -> Path:
        """Path of the token file holding the user's credential."""
        return self.token_dir / f"{_UNSAFE_FILENAME_CHARS.sub('_', user_id)}.json"

    def get_authenticated_service(self, user_id: str, interactive: bool = False) -> Resource:
        """
        Get an authenticated YouTube API service instance for a user.

        Args:
            user_id: Opaque identifier of the user
            interactive: Run the browser consent flow when no usable token exists

        Returns:
            Authenticated YouTube Data API v3 service

        Raises:
            AuthenticationError: If authentication fails
            APIError: If the token refresh cannot reach Google
            ConfigurationError: If credentials are invalid
        """
        if user_id not in self._services:
            credentials = self._get_credentials(user_id, interactive)
            self._services[user_id] = build("youtube", "v3", credentials=credentials)

        return self._services[user_id]

    def _get_credentials(self, user_id: str, interactive: bool) -> Credentials:
        """
        Get valid OAuth2 credentials, handling refresh and initial auth flow.

        Raises:
            AuthenticationError: If authentication fails
            ConfigurationError: If credentials file is missing or invalid
        """
        credentials = self._credentials.get(user_id)
        if credentials and credentials.valid:
            return credentials

        token_file = self.token_file(user_id)
        if credentials is None and token_file.exists():
            try:
                credentials = Credentials.from_authorized_user_file(  # type: ignore[no-untyped-call]
                    str(token_file), self.scopes
                )
            except (ValueError, OSError) as e:
                raise AuthenticationError(
                    f"Failed to load stored credentials for {user_id}: {e}", e
                ) from e

        # Refresh expired token
        if credentials and credentials.expired and credentials.refresh_token:
            try:
                credentials.refresh(Request())  # type: ignore[no-untyped-call]
            except RefreshError as e:
                raise AuthenticationError(
                    f"Credential for {user_id} was revoked or expired: {e}", e
                ) from e
            except TransportError as e:
                raise APIError(f"Network error refreshing credential for {user_id}: {e}", cause=e) from e
            self._credentials[user_id] = credentials
            self._save_credentials(user_id)

        if not credentials or not credentials.valid:
            if not interactive:
                raise AuthenticationError(
                    f"No valid YouTube credential for {user_id}. "
                    "Run 'youtube-exporter auth setup' first."
                )
            credentials = self._run_oauth_flow()

        self._credentials[user_id] = credentials
        self._save_credentials(user_id)
        return credentials

    def _run_oauth_flow(self) -> Credentials:
        """
        Run the OAuth2 authorization flow.

        Raises:
            ConfigurationError: If credentials file is missing or invalid
            AuthenticationError: If OAuth2 flow fails
        """
        if self.credentials_file is None or not self.credentials_file.exists():
            raise ConfigurationError(
                f"OAuth2 credentials file not found: {self.credentials_file}\n"
                "Please download your credentials.json file from Google Cloud Console."
            )

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_file), self.scopes
            )
            credentials = flow.run_local_server(port=0, open_browser=True)
            return credentials  # type: ignore[no-any-return]

        except (GoogleAuthError, ValueError, OSError) as e:
            raise AuthenticationError(
                f"OAuth2 flow failed: {e}\n"
                "Please check your credentials file and internet connection.",
                e,
            ) from e

    def _save_credentials(self, user_id: str) -> None:
        """Save a user's credentials to their token file."""
        credentials = self._credentials.get(user_id)
        if not credentials:
            return

        token_file = self.token_file(user_id)
        try:
            token_file.parent.mkdir(parents=True, exist_ok=True)
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(credentials.to_json())  # type: ignore[no-untyped-call]
        except OSError as e:
            # Don't fail if we can't save, just warn
            logger.warning(f"Could not save credentials to {token_file}: {e}")

    def revoke_credentials(self, user_id: str) -> None:
        """
        Forget a user's credential and remove their token file.

        This is useful for testing or when switching accounts.
        """
        self._credentials.pop(user_id, None)
        self._services.pop(user_id, None)

        token_file = self.token_file(user_id)
        if token_file.exists():
            try:
                token_file.unlink()
            except OSError as e:
                logger.warning(f"Could not remove token file {token_file}: {e}")

    def has_stored_token(self, user_id: str) -> bool:
        """Check whether a token file exists for the user."""
        return self.token_file(user_id).exists()

    def get_user_info(self, user_id: str) -> dict[str, Any]:
        """
        Get information about the authenticated user.

        Raises:
            AuthenticationError: If not authenticated or API call fails
        """
        try:
            service = self.get_authenticated_service(user_id)
            response = service.channels().list(part="snippet,statistics", mine=True).execute()
        except AuthenticationError:
            raise
        except Exception as e:
            raise AuthenticationError(f"Failed to get user info: {e}", e) from e

        if not response.get("items"):
            return {
                "authenticated": True,
                "has_channel": False,
                "message": "Authenticated but no YouTube channel found"
            }

        channel = response["items"][0]
        return {
            "authenticated": True,
            "has_channel": True,
            "channel_id": channel["id"],
            "channel_title": channel["snippet"]["title"],
            "subscriber_count": channel["statistics"].get("subscriberCount", "0"),
            "video_count": channel["statistics"].get("videoCount", "0"),
        }

    def is_authenticated(self, user_id: str) -> bool:
        """Check if the user has a usable credential without prompting."""
        try:
            credentials = self._get_credentials(user_id, interactive=False)
        except (AuthenticationError, ConfigurationError):
            return False
        return bool(credentials.valid)
