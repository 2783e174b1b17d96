"""
FastAPI middleware for logging, proxy-secret authentication, and error handling.
"""

import secrets
import time
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)

PROXY_SECRET_HEADER = "x-proxy-secret"


# Probed every few seconds by orchestrators; kept out of INFO output
_QUIET_PATHS = ("/health",)


def setup_logging_middleware(app: FastAPI) -> None:
    """
    Setup request/response logging middleware.

    Binds method and path into the structlog context for the duration of the
    request, so log lines from the mail store and transport layers carry
    them. Logs the status code and processing time on completion; 5xx
    responses are logged as errors and 4xx as warnings.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        path = request.url.path
        quiet = path in _QUIET_PATHS

        structlog.contextvars.bind_contextvars(method=request.method, path=path)
        try:
            if not quiet:
                logger.info(
                    "Request started",
                    client=request.client.host if request.client else None,
                )

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "Request failed",
                    process_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    error=str(e),
                    exc_info=True,
                )
                raise

            process_time = time.perf_counter() - start_time
            if response.status_code >= 500:
                log = logger.error
            elif response.status_code >= 400:
                log = logger.warning
            elif quiet:
                log = logger.debug
            else:
                log = logger.info
            log(
                "Request completed",
                status_code=response.status_code,
                process_time_ms=round(process_time * 1000, 2),
            )

            response.headers["X-Process-Time"] = f"{process_time:.6f}"
            return response
        finally:
            structlog.contextvars.unbind_contextvars("method", "path")


def setup_auth_middleware(app: FastAPI, secret: Optional[str], prefix: str = "/api") -> None:
    """
    Require the shared proxy secret on every path under ``prefix``.

    When no secret is configured the check is skipped (development mode).
    """

    @app.middleware("http")
    async def check_proxy_secret(request: Request, call_next: Callable) -> Response:
        if secret and request.url.path.startswith(prefix):
            supplied = request.headers.get(PROXY_SECRET_HEADER, "")
            if not secrets.compare_digest(supplied.encode(), secret.encode()):
                logger.warning(
                    "Unauthorized request",
                    method=request.method,
                    path=request.url.path,
                )
                return JSONResponse(status_code=401, content={"error": "Unauthorized"})
        return await call_next(request)


def setup_error_handling_middleware(app: FastAPI) -> None:
    """
    Setup global error handling middleware.

    Catches unhandled exceptions and returns consistent error responses.
    """

    @app.middleware("http")
    async def handle_errors(request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unhandled exception",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "detail": str(e) if app.debug else None,
                },
            )
