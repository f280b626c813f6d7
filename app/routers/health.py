"""Health check router."""

from datetime import datetime, UTC

from fastapi import APIRouter, Request

from ..config import settings
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Report service status.

    ``degraded`` means no YouTube key is configured, so searches are refused.
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    ai_enabled = pipeline is not None and pipeline.scorer.gemini is not None
    return HealthResponse(
        status="healthy" if pipeline is not None else "degraded",
        service=settings.service_name,
        version=settings.version,
        timestamp=datetime.now(UTC),
        dependencies={
            "youtube_api": f"{len(settings.api_keys)} key(s)" if settings.api_keys else "unconfigured",
            "gemini": "enabled" if ai_enabled else "fallback",
        },
    )


@router.get("/")
async def root() -> dict[str, str]:
    return {
        "service": settings.service_name,
        "version": settings.version,
        "status": "running",
    }
