"""Core business logic for the curation service."""

from .candidate_fetcher import CandidateFetcher
from .curation_pipeline import CurationPipeline
from .difficulty_classifier import DifficultyClassifier
from .path_selector import PathSelector
from .quota_tracker import QuotaTracker
from .relevance_scorer import RelevanceScorer
from .youtube_client import YouTubeClient

__all__ = [
    "CandidateFetcher",
    "CurationPipeline",
    "DifficultyClassifier",
    "PathSelector",
    "QuotaTracker",
    "RelevanceScorer",
    "YouTubeClient",
]
