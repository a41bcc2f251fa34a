"""
YouTube API Client
Resolves channel identifiers (ID, Handle, URL, username) and fetches their statistics.
"""

import re
import logging
from typing import Any, Dict, Optional, Tuple

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..errors import InvalidCredentialError, NotFoundError, TransportError
from ..tracking.models import local_now
from .channel_info import ChannelInfo

logger = logging.getLogger(__name__)

_CREDENTIAL_MARKERS = ("keyinvalid", "api key not valid", "api_key_invalid", "keyexpired", "unregistered")


class YouTubeClient:
    """
    YouTube Data API client used to fetch channel metrics.

    Accepted identifier formats:
    - Channel ID (starts with 'UC', 24 characters)
    - Handle (starts with '@')
    - Full YouTube URL (starts with 'http', /channel/ or /@ paths)
    - Anything else is looked up as a legacy username

    The API key is passed on every call; one service object is cached per key.
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}

    def fetch_channel(self, identifier: str, api_key: str) -> ChannelInfo:
        """
        Fetch display fields and current statistics for a channel.

        Raises:
            NotFoundError: The channel does not exist or the URL is unsupported.
            InvalidCredentialError: The API key was rejected.
            TransportError: Network or other API failure.
        """
        identifier = identifier.strip()
        if not identifier:
            raise NotFoundError("Channel identifier cannot be empty")
        if not api_key or not api_key.strip():
            raise InvalidCredentialError("YouTube API key is not configured")

        param, value = self._lookup_param(identifier)
        logger.info(f"Fetching channel {identifier} ({param}={value})")

        try:
            response = self._service_for(api_key).channels().list(
                part="snippet,statistics",
                **{param: value}
            ).execute()
        except HttpError as e:
            raise self._translate_http_error(e, identifier) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise TransportError(f"Network error fetching {identifier}: {e}") from e

        items = response.get("items") or []
        if not items:
            raise NotFoundError(f"Channel not found: {identifier}")

        return self._parse_item(items[0])

    def _service_for(self, api_key: str):
        service = self._services.get(api_key)
        if service is None:
            try:
                # static_discovery=False prevents the 'file_cache' warning in logs
                service = build('youtube', 'v3', developerKey=api_key, static_discovery=False)
            except HttpError as e:
                raise self._translate_http_error(e, "discovery") from e
            except (httplib2.HttpLib2Error, OSError) as e:
                raise TransportError(f"Could not reach the YouTube API: {e}") from e
            self._services[api_key] = service
        return service

    def _lookup_param(self, identifier: str) -> Tuple[str, str]:
        """Chooses the channels().list filter for an identifier."""
        if identifier.startswith("UC") and len(identifier) == 24:
            return "id", identifier
        if identifier.startswith("@"):
            return "forHandle", identifier
        if identifier.startswith("http"):
            return self._param_from_url(identifier)
        return "forUsername", identifier

    def _param_from_url(self, url: str) -> Tuple[str, str]:
        """Extracts channel ID or Handle from a YouTube URL."""
        if "/channel/" in url:
            match = re.search(r"channel/(UC[\w-]{22})", url)
            if match:
                return "id", match.group(1)

        if "/@" in url:
            match = re.search(r"/(@[\w.-]+)", url)
            if match:
                return "forHandle", match.group(1)

        raise NotFoundError(
            f"URL does not contain a supported channel path (/channel/ or /@): {url}"
        )

    def _parse_item(self, item: Dict[str, Any]) -> ChannelInfo:
        snippet = item.get("snippet", {})
        statistics = item.get("statistics", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = thumbnails.get("default") or thumbnails.get("medium") or thumbnails.get("high") or {}

        return ChannelInfo(
            channel_id=item["id"],
            title=snippet.get("title", "Unknown"),
            thumbnail_url=thumbnail.get("url", ""),
            custom_url=snippet.get("customUrl") or None,
            view_count=_as_count(statistics.get("viewCount")),
            subscriber_count=_as_count(statistics.get("subscriberCount")),
            video_count=_as_count(statistics.get("videoCount")),
            fetched_at=local_now()
        )

    def _translate_http_error(self, error: HttpError, identifier: str) -> Exception:
        status = getattr(error.resp, "status", None)
        detail = _error_text(error)

        if status in (400, 401, 403) and any(m in detail.lower() for m in _CREDENTIAL_MARKERS):
            return InvalidCredentialError(f"YouTube rejected the API key: {detail}")
        if status == 404:
            return NotFoundError(f"Channel not found: {identifier}")
        return TransportError(f"YouTube API error {status} for {identifier}: {detail}")


def _as_count(value: Optional[str]) -> int:
    """API statistics are strings; hidden or malformed counts become 0."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _error_text(error: HttpError) -> str:
    content = error.content
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return f"{getattr(error, 'reason', '')} {content or ''}".strip()
