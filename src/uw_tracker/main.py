# src/uw_tracker/main.py
"""Main entry point for the UW Assignment Tracker application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from uw_tracker.api.v1 import admin_router, audit_router, auth_router, board_router
from uw_tracker.core.errors import (
    NotConfigured,
    PersistenceFailure,
    TrackerError,
    Unauthorized,
    UnknownWorker,
)
from uw_tracker.core.settings import settings
from uw_tracker.db.session import create_tables
from uw_tracker.services.board import _BoardServiceSingleton
from uw_tracker.services.directory import DuplicateUser
from uw_tracker.services.sorting import configure_collation

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="UW Assignment Tracker API",
    description="Shared daily board of underwriter availability and assigned files",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(board_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(audit_router, prefix="/api/v1")


def _error_response(status_code: int, exc: TrackerError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": exc.user_message})


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(UnknownWorker)
async def unknown_worker_handler(request: Request, exc: UnknownWorker) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(DuplicateUser)
async def duplicate_user_handler(request: Request, exc: DuplicateUser) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again.", "retry": True},
    )


@app.on_event("startup")
async def on_startup() -> None:
    missing = settings.missing_required()
    if missing:
        logger.critical("Missing required configuration: %s", ", ".join(missing))
        raise NotConfigured(f"Missing required configuration: {', '.join(missing)}")
    create_tables()
    collation = configure_collation()
    logger.info("Board names collated with locale %s", collation)
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    _BoardServiceSingleton.reset()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("uw_tracker.main:app", host="0.0.0.0", port=8000, reload=settings.debug)


if __name__ == "__main__":
    run()
