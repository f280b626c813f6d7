"""Pydantic models for the curation service."""

from datetime import datetime, UTC
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for models that cross the HTTP boundary (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DifficultyTier(IntEnum):
    """Pedagogical difficulty of a video."""

    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3

    @property
    def level(self) -> str:
        return f"level {self.value}"


class ErrorKind(str, Enum):
    """Error kinds surfaced to API callers."""

    QUOTA_EXCEEDED_DAILY = "QUOTA_EXCEEDED_DAILY"
    INVALID_KEY = "INVALID_KEY"
    ACCESS_DENIED = "ACCESS_DENIED"
    NO_RESULTS = "NO_RESULTS"
    NO_RELEVANT_RESULTS = "NO_RELEVANT_RESULTS"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"


# ============================================================================
# Pipeline stages
# ============================================================================


class RawCandidate(BaseModel):
    """A search.list hit, before details are fetched."""

    video_id: str = Field(..., description="YouTube video ID")
    title: str = Field(default="", description="Video title")
    description: str = Field(default="", description="Video description")
    channel_name: str = Field(default="", description="Channel name")
    thumbnail_url: str = Field(default="", description="Video thumbnail URL")
    published_at: datetime | None = Field(default=None, description="Video publish date")


class CandidateVideo(BaseModel):
    """Detail-enriched candidate that passed the duration band."""

    video_id: str = Field(..., description="YouTube video ID")
    title: str = Field(..., description="Video title")
    description: str = Field(default="", description="Video description")
    channel_name: str = Field(default="", description="Channel name")
    duration_seconds: int = Field(default=0, ge=0, description="Video duration in seconds")
    thumbnail_url: str = Field(default="", description="Video thumbnail URL")
    published_at: datetime = Field(..., description="Video publish date")
    view_count: int = Field(default=0, ge=0, description="Number of views")
    recency_score: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Freshness score from publish age"
    )


class ScoredCandidate(CandidateVideo):
    """Candidate with topical relevance attached."""

    relevance_score: float = Field(..., ge=0.0, le=1.0)
    relevance_rationale: str = Field(default="")
    relevance_source: str = Field(default="ai", description="ai, keyword or default")


class ClassifiedCandidate(ScoredCandidate):
    """Candidate with difficulty tier attached."""

    difficulty_tier: DifficultyTier = Field(...)
    difficulty_rationale: str = Field(default="")
    difficulty_source: str = Field(default="ai", description="ai, heuristic or default")


class LearningPathVideo(ApiModel):
    """One finalized entry of a learning path."""

    youtube_id: str = Field(..., description="YouTube video ID")
    title: str
    description: str = ""
    channel_name: str = ""
    duration: int = Field(default=0, description="Duration in seconds")
    thumbnail_url: str = ""
    level: str = Field(..., description='"level 1" .. "level 3"')
    tier: DifficultyTier
    topic: str
    relevance_score: float = 0.0
    difficulty_score: int = 1


class LearningPath(ApiModel):
    """Ordered easiest -> hardest sequence of three videos for a topic."""

    topic: str
    videos: list[LearningPathVideo] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def video_ids(self) -> list[str]:
        return [v.youtube_id for v in self.videos]


# ============================================================================
# Quota
# ============================================================================


class QuotaRecord(BaseModel):
    """Per (quota day, API key) call counters."""

    date: str = Field(..., description="Quota day (YYYY-MM-DD, Pacific)")
    key_index: int = Field(..., ge=0)
    search_calls: int = 0
    detail_calls: int = 0
    total_units: int = 0
    successful_calls: int = 0
    failed_calls: int = 0


class KeyUsage(ApiModel):
    key_index: int
    units: int
    calls: int
    remaining: int


class QuotaUsage(ApiModel):
    """Snapshot of today's quota consumption."""

    date: str
    timezone: str
    total_units: int
    daily_limit_per_key: int
    per_key: list[KeyUsage] = Field(default_factory=list)

    @computed_field(alias="perKeyUnits")
    @property
    def per_key_units(self) -> dict[int, int]:
        return {k.key_index: k.units for k in self.per_key}

    @computed_field(alias="perKeyCalls")
    @property
    def per_key_calls(self) -> dict[int, int]:
        return {k.key_index: k.calls for k in self.per_key}


# ============================================================================
# HTTP contract
# ============================================================================


class SearchRequest(ApiModel):
    query: str = Field(..., description="Learning topic")
    session_id: str | None = Field(default=None, description="Client session ID")


class SearchResponse(ApiModel):
    videos: list[LearningPathVideo]
    query: str


class ErrorResponse(ApiModel):
    error_kind: ErrorKind
    message: str


class HealthResponse(ApiModel):
    status: str
    service: str
    version: str
    timestamp: datetime
    dependencies: dict[str, str] = Field(default_factory=dict)


# ============================================================================
# Analytics
# ============================================================================


class SearchRecord(ApiModel):
    """One served search, for the analytics dashboard."""

    session_id: str
    query: str
    results_count: int = 0
    processing_time_ms: int = 0
    api_key_used: int | None = None
    quota_consumed: int = 0
    cache_hit: bool = False
    video_ids: list[str] = Field(default_factory=list)
    levels: list[str] = Field(default_factory=list)
    relevance_scores: list[float] = Field(default_factory=list)
    difficulty_scores: list[int] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PopularTopic(ApiModel):
    topic: str
    count: int


class AnalyticsSummary(ApiModel):
    total_searches: int = 0
    unique_sessions: int = 0
    avg_processing_time: float = 0.0
    total_quota_used: int = 0
    popular_topics: list[PopularTopic] = Field(default_factory=list)


class AnalyticsResponse(ApiModel):
    searches: list[SearchRecord] = Field(default_factory=list)
    summary: AnalyticsSummary = Field(default_factory=AnalyticsSummary)


class TopicsResponse(ApiModel):
    topics: list[str]


# ============================================================================
# Bookmarks
# ============================================================================


class BookmarkCreate(ApiModel):
    user_id: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    video_ids: list[str] = Field(default_factory=list)


class Bookmark(BookmarkCreate):
    bookmark_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class BookmarkDelete(ApiModel):
    user_id: str = Field(..., min_length=1)
