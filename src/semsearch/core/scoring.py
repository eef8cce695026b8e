"""Score evaluation for search results.

Two independent signals are available per result: the embedding similarity
and the (optional) rerank score. Membership uses an OR over both thresholds
so a result underrated by one signal is not discarded; ordering prefers the
rerank score whenever it is present.
"""

from __future__ import annotations

from semsearch.core.types import SearchResult


def passes_threshold(
    result: SearchResult, min_similarity: float, min_rerank: float
) -> bool:
    """Check whether a result clears either score threshold.

    A missing score counts as ``0.0``; a present ``0.0`` is a real zero.

    Args:
        result: Candidate result
        min_similarity: Threshold on the similarity axis
        min_rerank: Threshold on the rerank axis

    Returns:
        True if ``similarity >= min_similarity`` or ``rerank_score >= min_rerank``
    """
    similarity = result.similarity if result.similarity is not None else 0.0
    rerank = result.rerank_score if result.rerank_score is not None else 0.0
    return similarity >= min_similarity or rerank >= min_rerank


def comparable_score(result: SearchResult) -> float:
    """Single scalar used to order results.

    Returns:
        ``rerank_score`` if present, else ``similarity``, else ``0.0``
    """
    if result.rerank_score is not None:
        return result.rerank_score
    if result.similarity is not None:
        return result.similarity
    return 0.0


__all__ = ["comparable_score", "passes_threshold"]
