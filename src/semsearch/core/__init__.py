"""Result consolidation engine: scoring, filtering, ranking, fusion and orchestration."""

from semsearch.core.config import FusionWeights, RankingConfig
from semsearch.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    QueryValidationError,
    SearchError,
    TransportError,
)
from semsearch.core.fusion import apply_post_fusion_threshold, fuse, fused_score_key
from semsearch.core.orchestrator import (
    SearchOrchestrator,
    SearchRequest,
    SearchSession,
    SearchState,
    SessionRegistry,
)
from semsearch.core.pipeline import filter_results, limit_results, rank_results
from semsearch.core.scoring import comparable_score, passes_threshold
from semsearch.core.types import (
    ContentType,
    FusedSearchResult,
    ImageUpload,
    SearchMode,
    SearchResponse,
    SearchResult,
)

__all__ = [
    "ConfigurationError",
    "ContentType",
    "FusedSearchResult",
    "FusionWeights",
    "ImageUpload",
    "InvalidResponseError",
    "QueryValidationError",
    "RankingConfig",
    "SearchError",
    "SearchMode",
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchSession",
    "SearchState",
    "SessionRegistry",
    "TransportError",
    "apply_post_fusion_threshold",
    "comparable_score",
    "filter_results",
    "fuse",
    "fused_score_key",
    "limit_results",
    "passes_threshold",
    "rank_results",
]
