"""Hybrid fusion of text and image result sets."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from semsearch.core.config import FusionWeights, RankingConfig
from semsearch.core.errors import ConfigurationError
from semsearch.core.pipeline import filter_results
from semsearch.core.scoring import comparable_score
from semsearch.core.types import FusedSearchResult, SearchResult
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)


def _fusion_key(result: SearchResult, modality: str, key: str) -> str:
    if key == "modality":
        return f"{modality}:{result.uid}"
    return result.uid


def _index_by_key(
    results: Sequence[SearchResult], modality: str, key: str
) -> Dict[str, SearchResult]:
    """Map fusion key -> first result carrying it, in list order."""
    indexed: Dict[str, SearchResult] = {}
    for result in results:
        fusion_key = _fusion_key(result, modality, key)
        if fusion_key in indexed:
            logger.debug(
                f"Duplicate {modality} result for '{fusion_key}', keeping first occurrence"
            )
            continue
        indexed[fusion_key] = result
    return indexed


def _merge(
    text_match: Optional[SearchResult],
    image_match: Optional[SearchResult],
    fused_score: float,
    text_score: Optional[float],
    image_score: Optional[float],
) -> FusedSearchResult:
    """Merge two records of the same entry, text fields taking precedence."""
    primary = text_match if text_match is not None else image_match
    secondary = image_match if text_match is not None else None

    def pick(attr: str):
        value = getattr(primary, attr)
        if value is None and secondary is not None:
            value = getattr(secondary, attr)
        return value

    payload = dict(primary.payload)
    if secondary is not None:
        payload = {**secondary.payload, **payload}

    return FusedSearchResult(
        uid=primary.uid,
        similarity=pick("similarity"),
        rerank_score=pick("rerank_score"),
        content_type=pick("content_type"),
        locale=pick("locale"),
        payload=payload,
        fused_score=fused_score,
        text_score=text_score,
        image_score=image_score,
    )


def fuse(
    text_results: Sequence[SearchResult],
    image_results: Sequence[SearchResult],
    weights: FusionWeights,
    key: str = "uid",
) -> List[FusedSearchResult]:
    """Combine independently scored text and image results.

    Score = w_text * text_score + w_image * image_score, where a channel that
    did not return the entry contributes 0. Weights are used as given; callers
    validate them first (see :meth:`FusionWeights.validate`).

    Args:
        text_results: Results of the text/semantic channel
        image_results: Results of the image channel
        weights: Channel weights
        key: "uid" to merge channels by uid, "modality" to keep them apart

    Returns:
        One fused result per distinct key: text keys in text order, then
        image-only keys in image order
    """
    text_by_key = _index_by_key(text_results, "text", key)
    image_by_key = _index_by_key(image_results, "image", key)
    ordered_keys = list(text_by_key) + [k for k in image_by_key if k not in text_by_key]

    fused: List[FusedSearchResult] = []
    for fusion_key in ordered_keys:
        text_match = text_by_key.get(fusion_key)
        image_match = image_by_key.get(fusion_key)
        text_score = comparable_score(text_match) if text_match is not None else None
        image_score = comparable_score(image_match) if image_match is not None else None

        score = weights.text * (text_score or 0.0) + weights.image * (image_score or 0.0)
        fused.append(_merge(text_match, image_match, score, text_score, image_score))

    logger.debug(
        f"Fused {len(text_results)} text + {len(image_results)} image results "
        f"into {len(fused)} entries (weights={weights.to_dict()}, key={key})"
    )
    return fused


def fused_score_key(result: FusedSearchResult) -> float:
    """Ranking key for fused results."""
    return result.fused_score


def apply_post_fusion_threshold(
    results: Sequence[FusedSearchResult], config: RankingConfig
) -> List[FusedSearchResult]:
    """Filter fused results according to ``config.post_fusion``.

    Policies:
        combined: keep ``fused_score >= config.min_fused_score``
        per_axis: re-apply the similarity OR rerank thresholds to the merged record
        none: keep everything

    Raises:
        ConfigurationError: If the policy name is unknown
    """
    policy = config.post_fusion
    if policy == "none":
        return list(results)
    if policy == "combined":
        return [r for r in results if r.fused_score >= config.min_fused_score]
    if policy == "per_axis":
        return filter_results(results, config)
    raise ConfigurationError(f"Unknown post_fusion policy '{policy}'")


__all__ = ["apply_post_fusion_threshold", "fuse", "fused_score_key"]
