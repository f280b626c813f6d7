"""Main FastAPI application for the curation service."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .core.curation_pipeline import CurationPipeline
from .core.errors import CurationError
from .dependencies import create_firestore_client, create_gemini_client
from .middleware import RequestLoggingMiddleware, setup_logging
from .models import ErrorKind, ErrorResponse
from .routers import bookmarks, health, search, status
from .utils.logging_utils import log_exception_json

setup_logging()
logger = logging.getLogger(__name__)


async def run_quota_cleanup(pipeline: CurationPipeline) -> None:
    """Prune quota records older than the retention window, once per interval."""
    while True:
        try:
            deleted = await asyncio.to_thread(pipeline.cleanup_quota, settings.quota_retention_days)
            logger.info(f"Quota cleanup removed {deleted} record(s)")
        except Exception as e:
            log_exception_json(logger, "Quota cleanup failed", e)
        await asyncio.sleep(settings.quota_cleanup_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting {settings.service_name} v{settings.version}",
        extra={"environment": settings.environment, "project_id": settings.gcp_project_id},
    )

    app.state.pipeline = None
    cleanup_task = None
    if settings.api_keys:
        app.state.pipeline = CurationPipeline.from_settings(
            create_firestore_client(), create_gemini_client()
        )
        cleanup_task = asyncio.create_task(run_quota_cleanup(app.state.pipeline))
        logger.info(f"Curation pipeline ready with {len(settings.api_keys)} YouTube API key(s)")
    else:
        logger.error("No YouTube API key configured; /search will return 503")

    yield

    if cleanup_task is not None:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
    logger.info(f"Shutting down {settings.service_name}")


app = FastAPI(
    title="Curation Service",
    description="Turns a topic into a beginner -> intermediate -> advanced YouTube learning path",
    version=settings.version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


def error_response(status_code: int, kind: ErrorKind, message: str) -> JSONResponse:
    body = ErrorResponse(error_kind=kind, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, mode="json"))


@app.exception_handler(CurationError)
async def curation_error_handler(request: Request, exc: CurationError):
    logger.warning(f"{exc.kind.value} on {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.kind, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(422, ErrorKind.INVALID_REQUEST, message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions as a single structured entry."""
    log_exception_json(
        logger,
        f"Unhandled exception on {request.method} {request.url.path}",
        exc,
        severity="ERROR",
        service="curation",
        path=str(request.url.path),
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {type(exc).__name__}"},
    )


app.include_router(health.router)
app.include_router(search.router)
app.include_router(status.router)
app.include_router(bookmarks.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
