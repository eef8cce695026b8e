"""Filter, rank and limit stages of result consolidation.

Every stage is a pure function: inputs are never mutated and a new list is
always returned.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar

from semsearch.core.config import RankingConfig
from semsearch.core.scoring import comparable_score, passes_threshold
from semsearch.core.types import SearchResult

R = TypeVar("R", bound=SearchResult)


def filter_results(results: Sequence[R], config: RankingConfig) -> List[R]:
    """Keep the results that pass the similarity OR rerank threshold.

    Args:
        results: Candidate results in backend order
        config: Ranking configuration holding both thresholds

    Returns:
        Order-preserving subset of ``results``
    """
    return [
        r
        for r in results
        if passes_threshold(r, config.min_similarity, config.min_rerank)
    ]


def rank_results(
    results: Sequence[R], key: Callable[[R], float] = comparable_score
) -> List[R]:
    """Sort results by descending score.

    ``sorted`` is stable, so results with equal scores keep their input order.

    Args:
        results: Results to order
        key: Score function, :func:`comparable_score` by default

    Returns:
        New list ordered from best to worst
    """
    return sorted(results, key=key, reverse=True)


def limit_results(results: Sequence[R], max_results: int) -> List[R]:
    """Return at most ``max_results`` leading entries (none if ``max_results <= 0``)."""
    if max_results <= 0:
        return []
    return list(results[:max_results])


__all__ = ["filter_results", "limit_results", "rank_results"]
