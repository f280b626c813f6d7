"""Pytest configuration and fixtures."""

import json
import os
from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock, Mock

import httplib2
import pytest
from googleapiclient.errors import HttpError

# Set up environment variables before anything imports app.config
os.environ.setdefault("GCP_PROJECT_ID", "test-project")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("FIRESTORE_DATABASE_ID", "(default)")
os.environ["YOUTUBE_API_KEYS"] = ""
os.environ["YOUTUBE_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["VERTEX_AI_PROJECT_ID"] = ""

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def make_http_error(status: int, reason: str, message: str = "") -> HttpError:
    """Build an HttpError shaped like a YouTube Data API error response."""
    body = {"error": {"code": status, "message": message, "errors": [{"reason": reason, "message": message}]}}
    return HttpError(httplib2.Response({"status": status}), json.dumps(body).encode("utf-8"))


def make_search_item(video_id: str, title: str = "", description: str = "") -> dict:
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": title or f"Video {video_id}",
            "description": description,
            "channelTitle": "Test Channel",
            "publishedAt": "2026-03-01T00:00:00Z",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"}},
        },
    }


def make_detail_item(video_id: str, duration: str = "PT10M", views: int = 1000, title: str = "") -> dict:
    return {
        "id": video_id,
        "snippet": {
            "title": title or f"Video {video_id}",
            "description": f"About {video_id}",
            "channelTitle": "Test Channel",
            "publishedAt": "2026-03-01T00:00:00Z",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"}},
        },
        "contentDetails": {"duration": duration},
        "statistics": {"viewCount": str(views)},
    }


@pytest.fixture
def mock_firestore():
    """Mock Firestore client."""
    mock_client = Mock()
    mock_doc = Mock()
    mock_doc.exists = False
    mock_client.collection().document().get.return_value = mock_doc
    return mock_client


@pytest.fixture
def mock_store():
    """Mock FirestoreStore with no persisted quota records."""
    store = MagicMock()
    store.get_quota_usage.return_value = []
    store.delete_quota_usage_before.return_value = 0
    return store


@pytest.fixture
def make_candidate():
    """Factory for CandidateVideo instances."""
    from app.models import CandidateVideo

    def _make(video_id: str, title: str = "", description: str = "", **overrides):
        fields = {
            "video_id": video_id,
            "title": title or f"Video {video_id}",
            "description": description,
            "channel_name": "Test Channel",
            "duration_seconds": 600,
            "thumbnail_url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            "published_at": NOW - timedelta(days=10),
            "view_count": 1000,
            "recency_score": 1.0,
        }
        fields.update(overrides)
        return CandidateVideo(**fields)

    return _make


@pytest.fixture
def make_classified(make_candidate):
    """Factory for ClassifiedCandidate instances."""
    from app.models import ClassifiedCandidate, DifficultyTier

    def _make(video_id: str, tier: int, relevance: float = 0.9, **overrides):
        candidate = make_candidate(video_id, **overrides)
        return ClassifiedCandidate(
            **candidate.model_dump(),
            relevance_score=relevance,
            difficulty_tier=DifficultyTier(tier),
        )

    return _make
