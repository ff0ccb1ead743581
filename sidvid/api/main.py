"""Main FastAPI application for SidVid."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from sidvid import __version__
from sidvid.core.config import get_config
from sidvid.core.env_loader import ensure_env_loaded
from sidvid.core.exceptions import (
    SidVidError,
    NotFoundError,
    InvalidArgumentError,
    InvalidStateError,
    InvalidSessionDataError,
    ProviderError,
)
from sidvid.core.logging_config import get_logger
from sidvid.generation import MockGenerationService
from sidvid.session import SessionManager
from sidvid.storage import create_storage
from sidvid.api.routers import sessions, video

ensure_env_loaded()

logger = get_logger("api.main")

_STATUS_CODES = [
    (NotFoundError, 404),
    (InvalidSessionDataError, 422),
    (InvalidArgumentError, 400),
    (InvalidStateError, 400),
    (ProviderError, 502),
]


def _status_for(error: SidVidError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def sidvid_error_handler(request: Request, exc: SidVidError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.__class__.__name__, "message": exc.message, "details": exc.details},
    )


def create_default_manager() -> SessionManager:
    """SessionManager from the global config, backed by the mock provider."""
    config = get_config()
    storage = create_storage(config.storage.backend, config.storage.base_path)
    return SessionManager(storage, MockGenerationService(), config)


def create_app(manager: Optional[SessionManager] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        manager: Session manager to serve; built from config on startup when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "manager", None) is None:
            app.state.manager = create_default_manager()
        yield
        app.state.manager.teardown()

    app = FastAPI(
        title="SidVid API",
        description="API for story, storyboard and scene video generation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = manager

    # Rate limiter
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(SidVidError, sidvid_error_handler)

    # CORS middleware for web UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
    app.include_router(video.router, prefix="/api/video", tags=["video"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "SidVid API", "version": __version__}

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def start_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Start the FastAPI server."""
    uvicorn.run(
        "sidvid.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="warning",
    )


if __name__ == "__main__":
    start_server()
