"""Configuration settings for the curation service."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service info
    service_name: str = "curation-service"
    version: str = "0.1.0"
    port: int = 8080
    environment: str = "development"

    # GCP / Firestore
    gcp_project_id: str = "learnpath-local"
    firestore_database_id: str = "(default)"
    learning_paths_collection: str = "learning_paths"
    quota_collection: str = "quota_usage"
    searches_collection: str = "searches"
    bookmarks_collection: str = "bookmarks"

    # YouTube API
    youtube_api_keys: str = ""  # Comma-separated key pool
    youtube_api_key: str = ""  # Single key, used when no pool is configured
    youtube_timeout_seconds: float = 15.0
    youtube_daily_quota_per_key: int = 10_000

    # Quota bookkeeping
    quota_timezone: str = "America/Los_Angeles"  # YouTube quota resets at midnight PT
    quota_retention_days: int = 30
    quota_cleanup_interval_seconds: int = 24 * 60 * 60

    # Candidate fetching
    search_max_results: int = 25
    prefetch_limit: int = 15
    min_duration_seconds: int = 120
    max_duration_seconds: int = 3600

    # Cache
    cache_ttl_seconds: int = 30 * 60
    cache_max_entries: int = 100

    # Gemini
    gemini_api_key: str = ""
    vertex_ai_project_id: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_location: str = "us-central1"
    gemini_temperature: float = 0.2
    gemini_max_output_tokens: int = 2048
    gemini_timeout_seconds: float = 30.0

    # Relevance thresholds (tried in order)
    relevance_strict_threshold: float = 0.8
    relevance_relaxed_threshold: float = 0.6

    # Ranking weights for path selection
    weight_relevance: float = 0.6
    weight_recency: float = 0.25
    weight_views: float = 0.15

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    @property
    def api_keys(self) -> list[str]:
        """Configured YouTube API key pool, in rotation order."""
        keys = [k.strip() for k in self.youtube_api_keys.split(",") if k.strip()]
        if not keys and self.youtube_api_key.strip():
            keys = [self.youtube_api_key.strip()]
        return keys

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key or self.vertex_ai_project_id)


# Global settings instance
settings = Settings()
