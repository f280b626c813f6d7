"""Search analytics: record served searches and summarize them for the dashboard."""

import logging
from collections import Counter

from ..models import AnalyticsResponse, AnalyticsSummary, LearningPath, PopularTopic, SearchRecord
from ..utils.logging_utils import log_exception_json
from .firestore_store import FirestoreStore

logger = logging.getLogger(__name__)


class SearchAnalytics:
    """Track searches in Firestore. Recording never fails the caller."""

    def __init__(self, store: FirestoreStore):
        self.store = store

    def record_search(
        self,
        session_id: str,
        query: str,
        path: LearningPath | None,
        processing_time_ms: int,
        api_key_used: int | None,
        quota_consumed: int,
        cache_hit: bool = False,
    ) -> str | None:
        """
        Record one served search.

        Returns:
            Stored record ID, or None if the write failed
        """
        videos = path.videos if path else []
        record = SearchRecord(
            session_id=session_id,
            query=query,
            results_count=len(videos),
            processing_time_ms=processing_time_ms,
            api_key_used=api_key_used,
            quota_consumed=quota_consumed,
            cache_hit=cache_hit,
            video_ids=[v.youtube_id for v in videos],
            levels=[v.level for v in videos],
            relevance_scores=[v.relevance_score for v in videos],
            difficulty_scores=[v.difficulty_score for v in videos],
        )

        try:
            record_id = self.store.record_search(record)
            logger.info(f"Recorded search for '{query}' with {len(videos)} results")
            return record_id
        except Exception as e:
            log_exception_json(
                logger,
                "Failed to record search analytics",
                e,
                severity="WARNING",
                query=query,
                session_id=session_id,
            )
            return None

    def get_search_analytics(self, limit: int = 100) -> AnalyticsResponse:
        """Recent searches plus summary statistics."""
        searches = self.store.list_recent_searches(limit=limit)
        return AnalyticsResponse(searches=searches, summary=self.summarize(searches))

    @staticmethod
    def summarize(searches: list[SearchRecord]) -> AnalyticsSummary:
        if not searches:
            return AnalyticsSummary()

        topic_counts = Counter(s.query.strip().lower() for s in searches)

        return AnalyticsSummary(
            total_searches=len(searches),
            unique_sessions=len({s.session_id for s in searches}),
            avg_processing_time=sum(s.processing_time_ms for s in searches) / len(searches),
            total_quota_used=sum(s.quota_consumed for s in searches),
            popular_topics=[
                PopularTopic(topic=topic, count=count)
                for topic, count in topic_counts.most_common(10)
            ],
        )
