"""Pydantic models for API requests and responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WeightsModel(BaseModel):
    """Hybrid channel weights; must sum to 1.0."""

    text: float = Field(..., description="Weight of the text channel", ge=0.0, le=1.0)
    image: float = Field(..., description="Weight of the image channel", ge=0.0, le=1.0)


class SearchRequestBody(BaseModel):
    """Search request model."""

    mode: str = Field("semantic", description="text, semantic, image or hybrid")
    query: Optional[str] = Field(None, description="Text query")
    image_url: Optional[str] = Field(None, description="Image URL (image and hybrid modes)")
    content_types: List[str] = Field(
        default_factory=list, description="Restrict results to these content types"
    )
    weights: Optional[WeightsModel] = Field(None, description="Hybrid weights override")
    min_similarity: Optional[float] = Field(None, description="Similarity threshold override")
    min_rerank: Optional[float] = Field(None, description="Rerank threshold override")
    max_results: Optional[int] = Field(
        None, description="Display cap override for this mode", ge=1, le=100
    )
    strategy: Optional[str] = Field(None, description="Hybrid strategy: 'client' or 'server'")
    post_fusion: Optional[str] = Field(
        None, description="Post-fusion threshold: 'combined', 'per_axis' or 'none'"
    )
    session_id: Optional[str] = Field(
        None, description="Run in this session; superseded calls return no results"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "mode": "hybrid",
                    "query": "red summer dress",
                    "image_url": "https://cdn.example.com/dress.jpg",
                    "weights": {"text": 0.7, "image": 0.3},
                    "session_id": "tab-1",
                }
            ]
        }
    }


class SearchResponseModel(BaseModel):
    """Search response model."""

    mode: str = Field(..., description="Search mode used")
    count: int = Field(..., description="Number of results returned")
    results: List[Dict[str, Any]] = Field(
        ..., description="Consolidated results, best first, in the backend's wire format"
    )
    superseded: bool = Field(
        False, description="True if a newer search in the same session replaced this one"
    )
    session_id: Optional[str] = Field(None, description="Session the search ran in")


class SessionResponse(BaseModel):
    """Current state of a search session."""

    session_id: str
    state: str
    sequence: int
    count: int
    results: List[Dict[str, Any]]
    error: Optional[str] = None


class ContentTypeItem(BaseModel):
    uid: str
    title: str
    description: Optional[str] = None
    field_count: int = 0


class EntryUrlResponse(BaseModel):
    uid: str
    url: str


class ReindexRequestBody(BaseModel):
    """Reindex request model."""

    environment: Optional[str] = Field(None, description="CMS environment to index")
    batch_size: Optional[int] = Field(None, description="Entries per batch", ge=1)
    content_types: List[str] = Field(default_factory=list, description="Content types to index")


class PollerSnapshot(BaseModel):
    """Reindex poller state."""

    state: str = Field(..., description="idle, running, completed, failed or stopped")
    progress: Optional[Dict[str, Any]] = Field(None, description="Last progress reported")
    error: Optional[str] = Field(None, description="Failure reason")


class ReindexStartResponse(BaseModel):
    success: bool
    status: str
    message: Optional[str] = None
    poller: PollerSnapshot


class IndexStatusResponse(BaseModel):
    success: bool
    status: str
    message: Optional[str] = None
    index_stats: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    backend_url: str = Field(..., description="Search backend base URL")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
