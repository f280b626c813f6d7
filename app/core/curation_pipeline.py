"""Curation pipeline: topic -> beginner/intermediate/advanced learning path.

Stages (each completes before the next starts):

    CacheCheck -> Fetching -> Scoring -> Classifying -> Selecting -> Persisting -> Respond

A cache hit responds straight away. Any ``CurationError`` moves the
request to Failed and propagates to the caller. AI stage failures are
absorbed by the scorers' fallbacks and never reach this level.
"""

import asyncio
import logging
import time
import uuid

from google.cloud import firestore

from ..config import Settings, settings as default_settings
from ..models import LearningPath, QuotaUsage
from ..utils.logging_utils import log_exception_json
from .api_key_pool import ApiKeyPool
from .candidate_fetcher import CandidateFetcher, FetchStats
from .difficulty_classifier import DifficultyClassifier
from .errors import CurationError
from .firestore_store import FirestoreStore
from .gemini_client import GeminiClient
from .path_selector import PathSelector, filter_by_relevance
from .quota_tracker import QuotaTracker
from .relevance_scorer import RelevanceScorer
from .result_cache import ResultCache
from .search_analytics import SearchAnalytics
from .topic_generator import TopicGenerator

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return uuid.uuid4().hex[:12]


class CurationPipeline:
    """
    Owns all per-process curation state.

    Built once at startup: the path cache (classified candidates per
    topic), the fetcher's candidate cache, the quota counters and the
    API key cursor all live here and are shared by concurrent requests.
    """

    def __init__(
        self,
        fetcher: CandidateFetcher,
        scorer: RelevanceScorer,
        classifier: DifficultyClassifier,
        selector: PathSelector,
        store: FirestoreStore,
        quota_tracker: QuotaTracker,
        analytics: SearchAnalytics,
        path_cache: ResultCache,
        topic_generator: TopicGenerator | None = None,
        strict_threshold: float = 0.8,
        relaxed_threshold: float = 0.6,
    ):
        self.fetcher = fetcher
        self.scorer = scorer
        self.classifier = classifier
        self.selector = selector
        self.store = store
        self.quota = quota_tracker
        self.analytics = analytics
        self.path_cache = path_cache
        self.topic_generator = topic_generator or TopicGenerator(None)
        self.strict_threshold = strict_threshold
        self.relaxed_threshold = relaxed_threshold

    @classmethod
    def from_settings(
        cls,
        firestore_client: firestore.Client,
        gemini_client: GeminiClient | None = None,
        config: Settings | None = None,
    ) -> "CurationPipeline":
        """Wire the pipeline from configuration."""
        config = config or default_settings
        store = FirestoreStore(firestore_client)
        key_pool = ApiKeyPool(config.api_keys)
        quota_tracker = QuotaTracker(
            store=store,
            key_count=len(key_pool),
            daily_quota_per_key=config.youtube_daily_quota_per_key,
            timezone=config.quota_timezone,
        )

        fetcher = CandidateFetcher(
            key_pool=key_pool,
            quota_tracker=quota_tracker,
            cache=ResultCache(config.cache_ttl_seconds, config.cache_max_entries),
            search_max_results=config.search_max_results,
            prefetch_limit=config.prefetch_limit,
            min_duration_seconds=config.min_duration_seconds,
            max_duration_seconds=config.max_duration_seconds,
            timeout_seconds=config.youtube_timeout_seconds,
        )

        return cls(
            fetcher=fetcher,
            scorer=RelevanceScorer(gemini_client),
            classifier=DifficultyClassifier(gemini_client),
            selector=PathSelector(
                weight_relevance=config.weight_relevance,
                weight_recency=config.weight_recency,
                weight_views=config.weight_views,
            ),
            store=store,
            quota_tracker=quota_tracker,
            analytics=SearchAnalytics(store),
            path_cache=ResultCache(config.cache_ttl_seconds, config.cache_max_entries),
            topic_generator=TopicGenerator(gemini_client),
            strict_threshold=config.relevance_strict_threshold,
            relaxed_threshold=config.relevance_relaxed_threshold,
        )

    async def curate(self, query: str, session_id: str | None = None) -> LearningPath:
        """
        Build (or serve from cache) the learning path for a topic.

        Raises:
            CurationError: Fetching failed or too few relevant videos
        """
        topic = query.strip()
        session_id = session_id or generate_session_id()
        start_time = time.perf_counter()
        stats = FetchStats()

        logger.info(f"[{session_id}] CacheCheck: '{topic}'")
        cached = self.path_cache.get(topic)
        if cached is not None:
            logger.info(f"[{session_id}] CacheHit -> Respond: '{topic}'")
            stats.cache_hit = True
            # Reselect so labels and descriptions use this request's spelling of the topic
            path = self.selector.select_path(cached, topic)
            await self._record_analytics(session_id, topic, path, start_time, stats)
            return path

        try:
            logger.info(f"[{session_id}] Fetching")
            candidates = await asyncio.to_thread(self.fetcher.fetch_candidates, topic, stats)

            logger.info(f"[{session_id}] Scoring {len(candidates)} candidates")
            scored = await self.scorer.score_relevance(candidates, topic)
            relevant = filter_by_relevance(scored, self.strict_threshold, self.relaxed_threshold)

            logger.info(f"[{session_id}] Classifying {len(relevant)} candidates")
            classified = await self.classifier.classify_difficulty(relevant, topic)

            logger.info(f"[{session_id}] Selecting")
            path = self.selector.select_path(classified, topic)

        except CurationError as e:
            logger.warning(f"[{session_id}] Failed: {e.kind.value}: {e.message}")
            raise

        logger.info(f"[{session_id}] Persisting")
        await self._persist(path)
        self.path_cache.set(topic, classified)

        await self._record_analytics(session_id, topic, path, start_time, stats)
        logger.info(
            f"[{session_id}] Respond: '{topic}' in {(time.perf_counter() - start_time) * 1000:.0f}ms"
        )
        return path

    async def _persist(self, path: LearningPath) -> None:
        """Save the finalized path. A storage failure does not fail the response."""
        try:
            await asyncio.to_thread(self.store.save_learning_path, path)
        except Exception as e:
            log_exception_json(logger, "Failed to persist learning path", e, topic=path.topic)

    async def _record_analytics(
        self,
        session_id: str,
        topic: str,
        path: LearningPath,
        start_time: float,
        stats: FetchStats,
    ) -> None:
        await asyncio.to_thread(
            self.analytics.record_search,
            session_id,
            topic,
            path,
            int((time.perf_counter() - start_time) * 1000),
            stats.key_index,
            0 if stats.cache_hit else stats.quota_units,
            stats.cache_hit,
        )

    async def get_learning_path(self, topic: str) -> LearningPath | None:
        """Previously persisted path for a topic."""
        return await asyncio.to_thread(self.store.get_learning_path_by_topic, topic)

    def quota_usage(self) -> QuotaUsage:
        return self.quota.current_usage()

    def cleanup_quota(self, retention_days: int = 30) -> int:
        return self.quota.cleanup_old_records(retention_days)
