"""Index management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from semsearch.api.models import (
    ErrorResponse,
    IndexStatusResponse,
    PollerSnapshot,
    ReindexRequestBody,
    ReindexStartResponse,
)
from semsearch.core.types import ReindexParams
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/index", tags=["index"])


@router.post(
    "/reindex",
    response_model=ReindexStartResponse,
    responses={409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def start_reindex(request: Request, body: ReindexRequestBody) -> ReindexStartResponse:
    """Start a backend reindex and poll its progress in the background."""
    poller = request.app.state.poller
    if poller.running:
        raise HTTPException(status_code=409, detail="A reindex is already in progress")

    config = request.app.state.config
    params = ReindexParams(
        environment=body.environment or config.get("reindex.environment"),
        batch_size=body.batch_size or config.get("reindex.batch_size"),
        content_types=body.content_types,
    )
    status = await poller.start(params)
    return ReindexStartResponse(
        success=status.success,
        status=status.status,
        message=status.message,
        poller=PollerSnapshot(**poller.snapshot()),
    )


@router.get("/progress", response_model=PollerSnapshot)
async def reindex_progress(request: Request) -> PollerSnapshot:
    """Latest progress seen by the reindex poller."""
    return PollerSnapshot(**request.app.state.poller.snapshot())


@router.delete("/reindex", response_model=PollerSnapshot)
async def stop_reindex(request: Request) -> PollerSnapshot:
    """Stop following the reindex. The backend job is not cancelled."""
    poller = request.app.state.poller
    await poller.stop()
    return PollerSnapshot(**poller.snapshot())


@router.get("/status", response_model=IndexStatusResponse)
async def index_status(request: Request) -> IndexStatusResponse:
    status = await request.app.state.client.get_index_status()
    return IndexStatusResponse(
        success=status.success,
        status=status.status,
        message=status.message,
        index_stats=status.index_stats,
    )


@router.delete("")
async def clear_index(request: Request) -> dict:
    """Remove every document from the backend index."""
    logger.warning("Index clear requested through the API")
    return await request.app.state.client.clear_index()
