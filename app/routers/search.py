"""Search router - topic in, 3-video learning path out."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.curation_pipeline import CurationPipeline
from ..core.errors import InvalidRequestError
from ..dependencies import get_pipeline
from ..models import ErrorResponse, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "No (relevant) videos for this topic"},
    422: {"model": ErrorResponse, "description": "Invalid request"},
    429: {"model": ErrorResponse, "description": "Daily quota exhausted on all keys"},
    500: {"model": ErrorResponse, "description": "API key misconfiguration"},
    502: {"model": ErrorResponse, "description": "Upstream failure"},
}


@router.post("/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search(
    request: SearchRequest,
    pipeline: CurationPipeline = Depends(get_pipeline),
) -> SearchResponse:
    """
    Curate a beginner -> intermediate -> advanced path for a topic.

    Errors are returned as ``{errorKind, message}``.
    """
    query = request.query.strip()
    if not query:
        logger.info("Rejected search with empty query")
        raise InvalidRequestError()

    path = await pipeline.curate(query, session_id=request.session_id)
    return SearchResponse(videos=path.videos, query=query)


@router.get("/videos/{topic}", response_model=SearchResponse)
async def get_videos(
    topic: str,
    pipeline: CurationPipeline = Depends(get_pipeline),
) -> SearchResponse:
    """Get the last persisted learning path for a topic."""
    path = await pipeline.get_learning_path(topic)
    if path is None:
        raise HTTPException(status_code=404, detail=f"No learning path stored for '{topic}'")
    return SearchResponse(videos=path.videos, query=path.topic)
