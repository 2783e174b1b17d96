"""
Health check endpoint. Served outside /api, so no proxy secret is required.
"""

import time

from fastapi import APIRouter, Request

from ...models.api_models import HealthResponse
from ...version import API_VERSION

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Report liveness and the time since the app was created.

    Returns:
        Health status, API version and uptime
    """
    started_at = request.app.state.started_at
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        uptime_seconds=round(time.monotonic() - started_at, 3),
    )
