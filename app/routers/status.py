"""Quota, analytics and topic suggestion endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from ..core.curation_pipeline import CurationPipeline
from ..core.search_analytics import SearchAnalytics
from ..dependencies import get_analytics, get_pipeline
from ..models import AnalyticsResponse, QuotaUsage, TopicsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["status"])


@router.get("/quota-usage", response_model=QuotaUsage)
async def get_quota_usage(pipeline: CurationPipeline = Depends(get_pipeline)) -> QuotaUsage:
    """Today's YouTube quota usage per API key (Pacific quota day)."""
    return await asyncio.to_thread(pipeline.quota_usage)


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics_summary(
    limit: int = Query(default=100, ge=1, le=1000),
    analytics: SearchAnalytics = Depends(get_analytics),
) -> AnalyticsResponse:
    """Recent searches with summary statistics."""
    return await asyncio.to_thread(analytics.get_search_analytics, limit)


@router.get("/topics/random", response_model=TopicsResponse)
async def get_random_topics(
    count: int = Query(default=8, ge=1, le=20),
    pipeline: CurationPipeline = Depends(get_pipeline),
) -> TopicsResponse:
    """Suggested topics for the search page."""
    topics = await pipeline.topic_generator.generate_topics(count)
    logger.debug(f"Suggested topics: {topics}")
    return TopicsResponse(topics=topics)
