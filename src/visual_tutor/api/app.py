"""
FastAPI Application Setup.

Application factory for the visual tutor REST API.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from visual_tutor import __version__
from visual_tutor.api.middleware.cors import add_cors_middleware
from visual_tutor.api.middleware.logging import RequestLoggingMiddleware
from visual_tutor.api.routes import health, retention, tutor, visual
from visual_tutor.config import Settings
from visual_tutor.core.exceptions import (
    AllProvidersFailedError,
    ValidationError,
    VisualTutorError,
)
from visual_tutor.retention import RetentionSweeper
from visual_tutor.service import (
    TutorService,
    VisualExplanationService,
    build_tutor_service,
    build_visual_service,
)
from visual_tutor.storage import LocalBlobStore, build_stores

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and release HTTP clients, workers and stores on shutdown."""
    logger.info(f"Visual tutor API starting up (version {__version__})")

    yield

    logger.info("Visual tutor API shutting down...")
    app.state.visual_service.close()
    app.state.tutor_service.close()
    if app.state.store is not None:
        app.state.store.close()
    if app.state.blob_store is not None:
        app.state.blob_store.close()


def create_app(
    settings: Settings | None = None,
    *,
    visual_service: VisualExplanationService | None = None,
    tutor_service: TutorService | None = None,
    sweeper: RetentionSweeper | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration (default: read from the environment)
        visual_service: Prebuilt visual-explanation service
        tutor_service: Prebuilt tutor service
        sweeper: Prebuilt retention sweeper

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings.from_env()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(
        title="Visual Tutor API",
        description="Educational image generation with written explanations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    store = None
    blob_store = None
    if visual_service is None or sweeper is None:
        store, blob_store = build_stores(settings.storage)

    app.state.settings = settings
    app.state.store = store
    app.state.blob_store = blob_store
    app.state.visual_service = visual_service or build_visual_service(settings, store, blob_store)
    app.state.tutor_service = tutor_service or build_tutor_service(settings)
    app.state.sweeper = sweeper or RetentionSweeper(
        store,
        blob_store,
        retention=timedelta(days=settings.retention_days),
    )

    app.add_middleware(RequestLoggingMiddleware)
    add_cors_middleware(app, allow_origins=["*"])

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )
    app.include_router(
        visual.router,
        prefix="/api/v1/visual-explanations",
        tags=["Visual Explanations"],
    )
    app.include_router(
        tutor.router,
        prefix="/api/v1/tutor-responses",
        tags=["Tutor"],
    )
    app.include_router(
        retention.router,
        prefix="/api/v1/retention",
        tags=["Retention"],
    )

    # Serve locally stored uploads at the path their public URLs point to
    if isinstance(blob_store, LocalBlobStore):
        mount_path = urlparse(settings.storage.public_base_url).path.rstrip("/") or "/blobs"
        app.mount(mount_path, StaticFiles(directory=blob_store.blob_dir), name="blobs")

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Missing or empty required fields."""
        logger.info(f"Rejected request: {exc.message}", extra={"fields": exc.fields})
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON or a body of the wrong shape."""
        logger.info(f"Invalid request body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(AllProvidersFailedError)
    async def providers_failed_handler(request: Request, exc: AllProvidersFailedError) -> JSONResponse:
        """No image could be produced by any provider."""
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(VisualTutorError)
    async def visual_tutor_error_handler(request: Request, exc: VisualTutorError) -> JSONResponse:
        logger.error(f"Request failed: {exc}")
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, object]:
        """Root endpoint with API information."""
        return {
            "name": "Visual Tutor API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    return app
