"""Dependency injection for FastAPI routes.

The pipeline is built once in the app lifespan and kept on ``app.state``;
these accessors hand it (and the collaborators it owns) to the routes.
"""

import logging

from fastapi import HTTPException, Request
from google.cloud import firestore

from .config import settings
from .core.curation_pipeline import CurationPipeline
from .core.firestore_store import FirestoreStore
from .core.gemini_client import GeminiClient
from .core.search_analytics import SearchAnalytics

logger = logging.getLogger(__name__)


def create_firestore_client() -> firestore.Client:
    """Create the Firestore client."""
    return firestore.Client(
        project=settings.gcp_project_id, database=settings.firestore_database_id
    )


def create_gemini_client() -> GeminiClient | None:
    """Create the Gemini client, or None when AI scoring is not configured."""
    if not settings.gemini_configured:
        logger.warning("Gemini not configured: relevance and difficulty use keyword fallbacks")
        return None
    try:
        return GeminiClient()
    except Exception as e:
        logger.error(f"Failed to initialize Gemini client, using keyword fallbacks: {e}")
        return None


def get_pipeline(request: Request) -> CurationPipeline:
    """Get the process-wide curation pipeline."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="No YouTube API key configured")
    return pipeline


def get_store(request: Request) -> FirestoreStore:
    return get_pipeline(request).store


def get_analytics(request: Request) -> SearchAnalytics:
    return get_pipeline(request).analytics
