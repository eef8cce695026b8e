"""Health check and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from semsearch import __version__
from semsearch.api.models import HealthResponse
from semsearch.utils.timing import get_latency_tracker

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns service status and the backend this instance talks to. The
    backend itself is not contacted.
    """
    client = getattr(request.app.state, "client", None)
    if client is None:
        return HealthResponse(status="starting", version=__version__, backend_url="")
    return HealthResponse(status="healthy", version=__version__, backend_url=client.base_url)


@router.get("/api/v1/metrics")
async def metrics() -> dict:
    """Latency statistics of backend calls and consolidation stages."""
    return {"operations": get_latency_tracker().get_stats()}
