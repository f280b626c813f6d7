"""Tests for SearchAnalytics."""

from app.core.search_analytics import SearchAnalytics
from app.models import DifficultyTier, LearningPath, LearningPathVideo, SearchRecord


def make_path():
    return LearningPath(topic="Chess", videos=[
        LearningPathVideo(
            youtube_id=f"v{tier}", title="t", level=f"level {tier}", tier=DifficultyTier(tier),
            topic="Chess", relevance_score=0.9, difficulty_score=tier,
        )
        for tier in (1, 2, 3)
    ])


def test_record_search_stores_path_summary(mock_store):
    mock_store.record_search.return_value = "rec-1"
    analytics = SearchAnalytics(mock_store)

    record_id = analytics.record_search("s1", "Chess", make_path(), 420, 1, 115)

    assert record_id == "rec-1"
    record = mock_store.record_search.call_args[0][0]
    assert record.video_ids == ["v1", "v2", "v3"]
    assert record.levels == ["level 1", "level 2", "level 3"]
    assert record.difficulty_scores == [1, 2, 3]
    assert record.quota_consumed == 115


def test_record_failure_is_swallowed(mock_store):
    mock_store.record_search.side_effect = Exception("Firestore unavailable")
    analytics = SearchAnalytics(mock_store)

    assert analytics.record_search("s1", "Chess", make_path(), 420, 1, 115) is None


def test_summary():
    searches = [
        SearchRecord(session_id="a", query="Chess", processing_time_ms=100, quota_consumed=115),
        SearchRecord(session_id="a", query="chess ", processing_time_ms=300, quota_consumed=0),
        SearchRecord(session_id="b", query="Knitting", processing_time_ms=200, quota_consumed=110),
    ]

    summary = SearchAnalytics.summarize(searches)

    assert summary.total_searches == 3
    assert summary.unique_sessions == 2
    assert summary.avg_processing_time == 200
    assert summary.total_quota_used == 225
    assert summary.popular_topics[0].topic == "chess"
    assert summary.popular_topics[0].count == 2


def test_empty_summary(mock_store):
    mock_store.list_recent_searches.return_value = []

    response = SearchAnalytics(mock_store).get_search_analytics(limit=10)

    assert response.summary.total_searches == 0
    mock_store.list_recent_searches.assert_called_once_with(limit=10)
