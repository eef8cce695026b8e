"""Search endpoints."""

from __future__ import annotations

from typing import List, Optional, Sequence

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile

from semsearch.api.models import (
    ContentTypeItem,
    EntryUrlResponse,
    ErrorResponse,
    SearchRequestBody,
    SearchResponseModel,
    SessionResponse,
)
from semsearch.core.analytics import fetch_dashboard
from semsearch.core.config import FusionWeights, RankingConfig
from semsearch.core.errors import QueryValidationError
from semsearch.core.orchestrator import SearchRequest, SearchSession
from semsearch.core.types import ImageUpload, SearchMode, SearchResult
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["search"])

_ERROR_RESPONSES = {
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _ranking_config(
    request: Request,
    mode: SearchMode,
    weights: Optional[FusionWeights] = None,
    min_similarity: Optional[float] = None,
    min_rerank: Optional[float] = None,
    max_results: Optional[int] = None,
    strategy: Optional[str] = None,
    post_fusion: Optional[str] = None,
) -> RankingConfig:
    """Server defaults with the per-request overrides applied."""
    config = request.app.state.orchestrator.config.with_overrides(
        weights=weights,
        min_similarity=min_similarity,
        min_rerank=min_rerank,
        hybrid_strategy=strategy,
        post_fusion=post_fusion,
    )
    if max_results is not None:
        config = config.with_max_results(mode, max_results)
    return config


def _serialize(results: Sequence[SearchResult]) -> List[dict]:
    return [{"rank": rank, **r.to_dict()} for rank, r in enumerate(results, 1)]


async def _run_search(
    request: Request, search_request: SearchRequest, session_id: Optional[str]
) -> SearchResponseModel:
    mode = search_request.mode.value
    if session_id:
        session = request.app.state.sessions.get(session_id)
        results = await session.search(search_request)
        if results is None:
            logger.info(f"Search in session '{session_id}' superseded by a newer one")
            return SearchResponseModel(
                mode=mode, count=0, results=[], superseded=True, session_id=session_id
            )
    else:
        results = await request.app.state.orchestrator.search(search_request)

    return SearchResponseModel(
        mode=mode,
        count=len(results),
        results=_serialize(results),
        superseded=False,
        session_id=session_id,
    )


@router.post("/search", response_model=SearchResponseModel, responses=_ERROR_RESPONSES)
async def search(request: Request, body: SearchRequestBody) -> SearchResponseModel:
    """Search by text, image URL, or both.

    Backend candidates are filtered by the similarity and rerank thresholds,
    fused when the mode is hybrid, ranked and capped per mode.

    Args:
        body: Search request; unset overrides use the server configuration

    Returns:
        SearchResponseModel with consolidated results
    """
    mode = SearchMode.parse(body.mode)
    config = _ranking_config(
        request,
        mode,
        weights=FusionWeights(**body.weights.model_dump()) if body.weights else None,
        min_similarity=body.min_similarity,
        min_rerank=body.min_rerank,
        max_results=body.max_results,
        strategy=body.strategy,
        post_fusion=body.post_fusion,
    )
    search_request = SearchRequest(
        mode=mode,
        query=body.query,
        image_url=body.image_url,
        content_types=body.content_types,
        config=config,
    )
    return await _run_search(request, search_request, body.session_id)


@router.post(
    "/search/upload", response_model=SearchResponseModel, responses=_ERROR_RESPONSES
)
async def search_upload(
    request: Request,
    image: UploadFile = File(..., description="Image file (JPEG, PNG, GIF, BMP or WebP)"),
    mode: str = Form("image"),
    query: Optional[str] = Form(None),
    text_weight: Optional[float] = Form(None, ge=0.0, le=1.0),
    max_results: Optional[int] = Form(None, ge=1, le=100),
    session_id: Optional[str] = Form(None),
) -> SearchResponseModel:
    """Search with an uploaded image, optionally combined with a text query."""
    search_mode = SearchMode.parse(mode)
    if search_mode not in (SearchMode.IMAGE, SearchMode.HYBRID):
        raise QueryValidationError("Uploads are only supported in image and hybrid mode")

    upload = ImageUpload(
        filename=image.filename or "upload",
        content=await image.read(),
        mime_type=image.content_type or "application/octet-stream",
    )
    config = _ranking_config(
        request,
        search_mode,
        weights=(
            FusionWeights.from_text_weight(text_weight)
            if text_weight is not None
            else None
        ),
        max_results=max_results,
    )
    search_request = SearchRequest(
        mode=search_mode, query=query, image=upload, config=config
    )
    return await _run_search(request, search_request, session_id)


def _find_session(request: Request, session_id: str) -> SearchSession:
    session = request.app.state.sessions.find(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown search session '{session_id}'")
    return session


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(request: Request, session_id: str) -> SessionResponse:
    """Current state and visible results of a search session.

    Raises:
        HTTPException: If no session with this id exists
    """
    session = _find_session(request, session_id)
    return SessionResponse(
        session_id=session_id,
        state=session.state.value,
        sequence=session.sequence,
        count=len(session.results),
        results=_serialize(session.results),
        error=session.error,
    )


@router.delete("/sessions/{session_id}", response_model=SessionResponse)
async def clear_session(request: Request, session_id: str) -> SessionResponse:
    """Reset a search session and forget it.

    Raises:
        HTTPException: If no session with this id exists
    """
    session = _find_session(request, session_id)
    session.clear()
    request.app.state.sessions.remove(session_id)
    logger.debug(f"Removed search session '{session_id}'")
    return SessionResponse(
        session_id=session_id,
        state=session.state.value,
        sequence=session.sequence,
        count=0,
        results=[],
    )


@router.get("/content-types", response_model=List[ContentTypeItem])
async def content_types(request: Request) -> List[ContentTypeItem]:
    """Content types known to the backend."""
    items = await request.app.state.client.get_content_types()
    return [
        ContentTypeItem(
            uid=ct.uid,
            title=ct.title,
            description=ct.description,
            field_count=len(ct.schema),
        )
        for ct in items
    ]


@router.get("/entry-url", response_model=EntryUrlResponse, responses=_ERROR_RESPONSES)
async def entry_url(
    request: Request,
    content_type: str = Query(..., min_length=1),
    locale: str = Query(..., min_length=1),
    uid: str = Query(..., min_length=1),
) -> EntryUrlResponse:
    """CMS edit link of an entry."""
    url = await request.app.state.stack_loader.entry_url(content_type, locale, uid)
    return EntryUrlResponse(uid=uid, url=url)


@router.get("/analytics", responses=_ERROR_RESPONSES)
async def analytics(request: Request, days: int = Query(7, ge=1, le=365)) -> dict:
    """Search usage over the last ``days`` days plus index statistics."""
    report = await fetch_dashboard(request.app.state.client, days)
    return report.to_dict()
