"""Candidate discovery: search + details against the YouTube API with key rotation."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any

import httplib2
from googleapiclient.errors import HttpError

from ..models import CandidateVideo, RawCandidate
from .api_key_pool import ApiKeyPool
from .errors import (
    AccessDeniedError,
    CurationError,
    InvalidKeyError,
    NoResultsError,
    QuotaExhaustedError,
    UpstreamError,
)
from .quota_tracker import QuotaTracker
from .result_cache import ResultCache, normalize_query
from .youtube_client import (
    YouTubeClient,
    http_error_details,
    is_invalid_key_error,
    is_quota_error,
    is_rate_limit_error,
)

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?")

FRESH_DAYS = 30
STALE_DAYS = 730
MIN_RECENCY = 0.1


def parse_duration(duration_str: str | None) -> int:
    """
    Parse ISO 8601 duration to seconds.

    Format: PT[hours]H[minutes]M[seconds]S
    Examples:
    - PT5M30S = 330 seconds
    - PT1H15M = 4500 seconds
    - PT45S = 45 seconds
    - PT = 0 seconds

    Returns:
        Total seconds (0 if parsing fails)
    """
    if not duration_str:
        return 0

    match = DURATION_PATTERN.fullmatch(duration_str.strip())
    if not match:
        return 0

    days, hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def recency_score(published_at: datetime, now: datetime | None = None) -> float:
    """
    Score freshness from publish age.

    1.0 within 30 days, 0.1 from ~2 years on, linear in between.
    """
    now = now or datetime.now(UTC)
    age_days = max(0.0, (now - published_at).total_seconds() / 86400)

    if age_days <= FRESH_DAYS:
        return 1.0
    if age_days >= STALE_DAYS:
        return MIN_RECENCY

    fraction = (age_days - FRESH_DAYS) / (STALE_DAYS - FRESH_DAYS)
    return round(1.0 - fraction * (1.0 - MIN_RECENCY), 4)


def _parse_published_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def _best_thumbnail(snippet: dict[str, Any]) -> str:
    thumbnails = snippet.get("thumbnails", {})
    return (
        thumbnails.get("high", {}).get("url", "")
        or thumbnails.get("medium", {}).get("url", "")
        or thumbnails.get("default", {}).get("url", "")
    )


@dataclass
class FetchStats:
    """Bookkeeping for one fetch, reported to analytics."""

    key_index: int | None = None
    attempts: int = 0
    quota_units: int = 0
    cache_hit: bool = False


class CandidateFetcher:
    """
    Fetch candidate videos for a topic.

    One search call (rotating keys on quota exhaustion) followed by one
    details call on the same key. Results are cached per normalized topic.
    """

    def __init__(
        self,
        key_pool: ApiKeyPool,
        quota_tracker: QuotaTracker,
        cache: ResultCache,
        client_factory: Callable[[str], YouTubeClient] | None = None,
        search_max_results: int = 25,
        prefetch_limit: int = 15,
        min_duration_seconds: int = 120,
        max_duration_seconds: int = 3600,
        timeout_seconds: float = 15.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.key_pool = key_pool
        self.quota = quota_tracker
        self.cache = cache
        self.client_factory = client_factory or (
            lambda api_key: YouTubeClient(api_key, timeout_seconds=timeout_seconds)
        )
        self.search_max_results = search_max_results
        self.prefetch_limit = prefetch_limit
        self.min_duration_seconds = min_duration_seconds
        self.max_duration_seconds = max_duration_seconds
        self._clock = clock or (lambda: datetime.now(UTC))

    def fetch_candidates(self, topic: str, stats: FetchStats | None = None) -> list[CandidateVideo]:
        """
        Fetch, enrich and duration-filter candidates for a topic.

        Raises:
            QuotaExhaustedError: Every key returned quota-exceeded
            InvalidKeyError / AccessDeniedError: Key configuration problem
            UpstreamError: Any other API failure
            NoResultsError: Nothing survived dedup and duration filtering
        """
        stats = stats if stats is not None else FetchStats()
        cache_key = normalize_query(topic)

        cached = self.cache.get(cache_key)
        if cached is not None:
            stats.cache_hit = True
            logger.info(f"Candidate cache hit for '{cache_key}' ({len(cached)} candidates)")
            return list(cached)

        key_index, client, search_items = self._search_with_rotation(topic.strip(), stats)

        raw_candidates = self._dedupe(search_items)[: self.prefetch_limit]
        if not raw_candidates:
            raise NoResultsError(f"No videos found for topic: {topic.strip()}")

        details = self._fetch_details(client, key_index, [c.video_id for c in raw_candidates], stats)
        candidates = self._build_candidates(raw_candidates, details)

        filtered = [
            c for c in candidates
            if self.min_duration_seconds <= c.duration_seconds <= self.max_duration_seconds
        ]
        logger.info(
            f"'{cache_key}': {len(search_items)} search hits, {len(raw_candidates)} unique, "
            f"{len(filtered)} within {self.min_duration_seconds}-{self.max_duration_seconds}s"
        )

        if not filtered:
            raise NoResultsError(f"No videos of suitable length found for topic: {topic.strip()}")

        self.cache.set(cache_key, list(filtered))
        return filtered

    def _search_with_rotation(
        self, query: str, stats: FetchStats
    ) -> tuple[int, YouTubeClient, list[dict[str, Any]]]:
        """Run the search on successive keys until one is not quota-exhausted."""
        first = self.key_pool.next_index()
        pool_size = len(self.key_pool)

        for offset in range(pool_size):
            key_index = (first + offset) % pool_size
            client = self.client_factory(self.key_pool.key(key_index))
            stats.attempts += 1
            stats.quota_units += QuotaTracker.COSTS["search"]

            try:
                items = client.search_videos(query, max_results=self.search_max_results)
            except HttpError as e:
                self.quota.record_search_call(key_index, successful=False)
                if is_quota_error(e):
                    logger.warning(f"Key {key_index + 1} quota exceeded, rotating to next key")
                    continue
                raise self._map_http_error(e, key_index) from e
            except (httplib2.HttpLib2Error, OSError) as e:
                self.quota.record_search_call(key_index, successful=False)
                raise UpstreamError(f"YouTube search failed: {e}") from e

            self.quota.record_search_call(key_index)
            stats.key_index = key_index
            return key_index, client, items

        logger.error(f"All {pool_size} YouTube API keys are quota-exhausted")
        raise QuotaExhaustedError()

    def _fetch_details(
        self,
        client: YouTubeClient,
        key_index: int,
        video_ids: list[str],
        stats: FetchStats,
    ) -> list[dict[str, Any]]:
        """Details call on the same key that served the search."""
        stats.quota_units += QuotaTracker.COSTS["video_details"] * len(video_ids)

        try:
            items = client.get_video_details(video_ids)
        except HttpError as e:
            self.quota.record_detail_call(key_index, len(video_ids), successful=False)
            if is_quota_error(e):
                logger.warning(f"Key {key_index + 1} quota exceeded on details call")
                raise QuotaExhaustedError() from e
            raise self._map_http_error(e, key_index) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            self.quota.record_detail_call(key_index, len(video_ids), successful=False)
            raise UpstreamError(f"YouTube details request failed: {e}") from e

        self.quota.record_detail_call(key_index, len(video_ids))
        return items

    @staticmethod
    def _map_http_error(error: HttpError, key_index: int) -> CurationError:
        status, reason, message = http_error_details(error)

        if is_invalid_key_error(error):
            logger.error(f"OPERATOR ACTION NEEDED: YouTube API key {key_index + 1} is invalid ({reason})")
            return InvalidKeyError(f"YouTube API key {key_index + 1} is invalid")
        if is_rate_limit_error(error):
            logger.warning(f"YouTube API throttled key {key_index + 1}: {reason} {message}")
            return UpstreamError(f"YouTube API rate limited ({status}): {message or reason}")
        if status == 403:
            logger.error(f"YouTube API access denied for key {key_index + 1}: {reason} {message}")
            return AccessDeniedError(f"YouTube API access denied: {message or reason}")

        logger.error(f"YouTube API error {status}: {reason} {message}")
        return UpstreamError(f"YouTube API request failed ({status}): {message or reason}")

    @staticmethod
    def _dedupe(search_items: list[dict[str, Any]]) -> list[RawCandidate]:
        """Convert search hits to RawCandidates, first occurrence of an ID wins."""
        seen: set[str] = set()
        candidates = []

        for item in search_items:
            video_id = item.get("id")
            if isinstance(video_id, dict):
                video_id = video_id.get("videoId")
            if not video_id or video_id in seen:
                continue
            seen.add(video_id)

            snippet = item.get("snippet", {})
            candidates.append(RawCandidate(
                video_id=video_id,
                title=snippet.get("title", ""),
                description=snippet.get("description", ""),
                channel_name=snippet.get("channelTitle", ""),
                thumbnail_url=_best_thumbnail(snippet),
                published_at=_parse_published_at(snippet.get("publishedAt")),
            ))

        return candidates

    def _build_candidates(
        self, raw_candidates: list[RawCandidate], details: list[dict[str, Any]]
    ) -> list[CandidateVideo]:
        """Merge details into candidates, keeping search order. Missing details are dropped."""
        details_by_id = {item.get("id"): item for item in details if item.get("id")}
        now = self._clock()
        candidates = []

        for raw in raw_candidates:
            item = details_by_id.get(raw.video_id)
            if item is None:
                logger.debug(f"No details returned for {raw.video_id}, dropping")
                continue

            snippet = item.get("snippet", {})
            statistics = item.get("statistics", {})
            content_details = item.get("contentDetails", {})

            published_at = (
                _parse_published_at(snippet.get("publishedAt"))
                or raw.published_at
                or now
            )

            candidates.append(CandidateVideo(
                video_id=raw.video_id,
                title=snippet.get("title") or raw.title,
                description=snippet.get("description") or raw.description,
                channel_name=snippet.get("channelTitle") or raw.channel_name,
                duration_seconds=parse_duration(content_details.get("duration")),
                thumbnail_url=_best_thumbnail(snippet) or raw.thumbnail_url,
                published_at=published_at,
                view_count=int(statistics.get("viewCount", 0) or 0),
                recency_score=recency_score(published_at, now),
            ))

        return candidates
