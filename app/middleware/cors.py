"""
CORS middleware for FastAPI.
"""
from fastapi.middleware.cors import CORSMiddleware as FastAPICORSMiddleware

from app.core.config import settings


class CORSMiddleware(FastAPICORSMiddleware):
    """CORS middleware restricted to ALLOWED_ORIGINS (every origin when unset)."""

    def __init__(self, app, allow_origins=None):
        origins = allow_origins if allow_origins is not None else settings.ALLOWED_ORIGINS
        super().__init__(
            app,
            allow_origins=origins,
            # Browsers reject credentialed responses with a wildcard origin
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
