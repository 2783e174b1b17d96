"""
FastAPI application for the IMAP proxy.

This is the main application that orchestrates all endpoints and middleware.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..version import API_VERSION, get_component_versions
from ..config import settings
from ..logging_config import setup_logging
from ..transport import TransporterCache
from .routes import health, proxy
from .middleware import (
    setup_auth_middleware,
    setup_error_handling_middleware,
    setup_logging_middleware,
)

# Setup logging on module import
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Closes every cached SMTP transport on shutdown.
    """
    logger.info(
        "Starting IMAP Proxy",
        version=API_VERSION,
        port=settings.api_port,
        log_level=settings.log_level,
        auth_enabled=bool(settings.proxy_secret),
        components=get_component_versions(),
    )
    yield
    app.state.transporter_cache.shutdown_all()
    logger.info("Shutting down IMAP Proxy")


def create_app(
    proxy_secret: Optional[str] = None,
    transporter_cache: Optional[TransporterCache] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        proxy_secret: Shared secret for /api routes (defaults to settings)
        transporter_cache: Send-handle cache (defaults to a cache using settings TTL)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="IMAP Proxy",
        description="HTTP proxy for IMAP mailboxes and SMTP sending with MIME body/attachment decoding",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.started_at = time.monotonic()
    # An injected cache is usually empty, and empty caches are falsy
    if transporter_cache is None:
        transporter_cache = TransporterCache(ttl_seconds=settings.transporter_ttl_seconds)
    app.state.transporter_cache = transporter_cache

    # Middleware order matters - last added = outermost
    setup_auth_middleware(
        app, proxy_secret if proxy_secret is not None else settings.proxy_secret
    )
    setup_logging_middleware(app)
    setup_error_handling_middleware(app)

    # Outermost so preflight requests never reach the secret check
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(proxy.router, tags=["Proxy"])

    return app


# Create app instance
app = create_app()


def main() -> None:
    """
    Entry point for running the API server directly.

    For development use. In production, use uvicorn directly.
    """
    import uvicorn

    uvicorn.run(
        "imap_proxy.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
