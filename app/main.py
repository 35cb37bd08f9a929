"""
Main FastAPI application for the Google Drive upload relay.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.constants import SERVICE_NAME
from app.core.exceptions import UploadServiceError
from app.api import router as api_router
from app.middleware import CORSMiddleware, LoggingMiddleware
from app.schemas import HealthResponse
from app.services import CredentialProvider, get_credential_provider, get_upload_orchestrator
from app.utils import cleanup_old_files, ensure_storage_dir

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {SERVICE_NAME}...")

    ensure_storage_dir(settings.UPLOAD_DIR)
    removed = cleanup_old_files(settings.UPLOAD_DIR, settings.STALE_UPLOAD_HOURS)
    if removed:
        logger.info(f"Removed {removed} stale temp files from {settings.UPLOAD_DIR}")

    upload_orchestrator = get_upload_orchestrator()
    await upload_orchestrator.start()

    logger.info(f"Health check: {settings.BASE_URL}/health")
    logger.info(f"Authorization: {settings.BASE_URL}/auth")
    logger.info(f"Auth Status: {settings.BASE_URL}/auth/status")
    if not get_credential_provider().is_authenticated():
        logger.warning("No Google refresh token configured; uploads are rejected until /auth is completed")

    yield

    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}...")
    await upload_orchestrator.stop()
    logger.info("Application shutdown completed successfully!")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"success": false, "error": ...}``."""

    @app.exception_handler(UploadServiceError)
    async def upload_service_error_handler(request: Request, exc: UploadServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error = exc.detail
        if exc.status_code == 404 and exc.detail == "Not Found":
            error = "Endpoint not found"
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title=SERVICE_NAME,
        description="Relays uploads to Google Drive and tracks their progress",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CORSMiddleware)

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(credentials: CredentialProvider = Depends(get_credential_provider)):
        """Health check endpoint."""
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat(),
            service=SERVICE_NAME,
            authenticated=credentials.is_authenticated(),
        )

    # Include API router
    app.include_router(api_router)

    # Static pages (e.g. an OAuth callback page) go last so API routes win
    if settings.STATIC_DIR and os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
