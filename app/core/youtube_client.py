"""YouTube API client bound to one API key."""

import json
import logging
from typing import Any

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

QUOTA_REASONS = {"quotaExceeded", "dailyLimitExceeded"}
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}
INVALID_KEY_REASONS = {"keyInvalid", "keyExpired"}


def http_error_details(error: HttpError) -> tuple[int, str, str]:
    """
    Extract (status, reason, message) from a YouTube API HttpError.

    The reason is the machine-readable ``errors[0].reason`` field of the
    JSON error body, e.g. "quotaExceeded" or "keyInvalid".
    """
    status = int(getattr(error.resp, "status", 0) or 0)
    reason = ""
    message = ""

    try:
        content = error.content.decode("utf-8") if isinstance(error.content, bytes) else error.content
        body = json.loads(content or "{}").get("error", {})
        message = body.get("message", "")
        errors = body.get("errors") or []
        if errors:
            reason = errors[0].get("reason", "")
        if not reason:
            for detail in body.get("details") or []:
                reason = detail.get("reason", "")
                if reason:
                    break
    except (ValueError, AttributeError):
        message = str(error)

    return status, reason, message


def is_quota_error(error: HttpError) -> bool:
    status, reason, _ = http_error_details(error)
    return status == 403 and reason in QUOTA_REASONS


def is_rate_limit_error(error: HttpError) -> bool:
    """Short-term throttling. Another key would not help, so this is not a quota error."""
    status, reason, _ = http_error_details(error)
    return status == 429 or reason in RATE_LIMIT_REASONS


def is_invalid_key_error(error: HttpError) -> bool:
    status, reason, message = http_error_details(error)
    return status == 400 and (reason in INVALID_KEY_REASONS or "API key not valid" in message)


class YouTubeClient:
    """
    YouTube Data API v3 client for a single API key.

    Quota Cost:
        - search_videos: 100 units per call
        - get_video_details: 1 unit per video
    """

    def __init__(self, api_key: str, timeout_seconds: float = 15.0):
        """Initialize YouTube client with a single API key."""
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _build_youtube_service(self) -> Any:
        """Build YouTube API service with an explicit request timeout."""
        http = httplib2.Http(timeout=self.timeout_seconds)
        return build("youtube", "v3", developerKey=self.api_key, http=http, cache_discovery=False)

    def search_videos(self, query: str, max_results: int = 25) -> list[dict[str, Any]]:
        """
        Search for videos (single page, no pagination).

        Args:
            query: Search query, sent as typed by the user
            max_results: Maximum number of results (1-50)

        Returns:
            List of search.list items

        Raises:
            HttpError: On any API error (callers classify it)
        """
        youtube = self._build_youtube_service()

        request = youtube.search().list(
            part="snippet",
            q=query,
            type="video",
            maxResults=min(max(max_results, 1), 50),
            order="relevance",
            safeSearch="strict",
            relevanceLanguage="en",
        )
        response = request.execute()

        items = response.get("items", [])
        logger.info(f"Search '{query}': got {len(items)} results")
        return items

    def get_video_details(self, video_ids: list[str]) -> list[dict[str, Any]]:
        """
        Get detailed information for specific videos.

        Args:
            video_ids: List of video IDs (max 50 per request)

        Returns:
            List of videos.list items with snippet, contentDetails and statistics
        """
        if not video_ids:
            return []

        youtube = self._build_youtube_service()

        # Batch video IDs (max 50 per request)
        video_ids = video_ids[:50]

        request = youtube.videos().list(
            part="snippet,contentDetails,statistics",
            id=",".join(video_ids),
        )
        response = request.execute()

        return response.get("items", [])
