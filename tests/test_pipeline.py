"""Tests for the filter, rank and limit stages."""

import random

import pytest

from semsearch.core.config import RankingConfig
from semsearch.core.pipeline import filter_results, limit_results, rank_results
from semsearch.core.scoring import passes_threshold
from tests.helpers import make_result

CONFIG = RankingConfig(min_similarity=0.2, min_rerank=0.003)


def test_filter_keeps_similarity_pass():
    """Scenario: similarity 0.25 clears the 0.2 threshold."""
    kept = filter_results([make_result("a", similarity=0.25)], CONFIG)
    assert [r.uid for r in kept] == ["a"]


def test_filter_keeps_rerank_pass():
    """Scenario: rerank 0.01 passes although similarity 0.1 fails."""
    kept = filter_results([make_result("b", similarity=0.1, rerank=0.01)], CONFIG)
    assert [r.uid for r in kept] == ["b"]


def test_filter_matches_threshold_predicate():
    """filter([r]) is non-empty exactly when r passes either threshold."""
    rng = random.Random(7)
    for i in range(200):
        similarity = rng.choice([None, 0.0, 0.1, 0.2, 0.5])
        rerank = rng.choice([None, 0.0, 0.001, 0.003, 0.2])
        result = make_result(f"r{i}", similarity=similarity, rerank=rerank)
        kept = filter_results([result], CONFIG)
        assert bool(kept) == passes_threshold(result, 0.2, 0.003)


def test_filter_preserves_order_and_input():
    results = [
        make_result("a", similarity=0.5),
        make_result("b", similarity=0.05),
        make_result("c", rerank=0.1),
    ]
    snapshot = list(results)

    kept = filter_results(results, CONFIG)

    assert [r.uid for r in kept] == ["a", "c"]
    assert results == snapshot
    assert filter_results([], CONFIG) == []


def test_rank_uses_similarity_fallback():
    """Scenario: 0.9 similarity outranks a 0.5 rerank score."""
    ranked = rank_results([make_result("x", rerank=0.5), make_result("y", similarity=0.9)])
    assert [r.uid for r in ranked] == ["y", "x"]


def test_rank_is_stable_for_ties():
    results = [
        make_result("first", similarity=0.4),
        make_result("top", rerank=0.9),
        make_result("second", similarity=0.4),
        make_result("third", rerank=0.4),
    ]
    ranked = rank_results(results)
    assert [r.uid for r in ranked] == ["top", "first", "second", "third"]


def test_rank_missing_scores_sort_last():
    ranked = rank_results([make_result("none"), make_result("some", similarity=0.01)])
    assert [r.uid for r in ranked] == ["some", "none"]


def test_limit_takes_leading_entries():
    """Scenario: eight results capped at five."""
    results = [make_result(f"r{i}", similarity=0.5) for i in range(1, 9)]
    limited = limit_results(results, 5)
    assert [r.uid for r in limited] == ["r1", "r2", "r3", "r4", "r5"]


@pytest.mark.parametrize("n", [0, 1, 3, 5, 10])
def test_limit_is_idempotent(n):
    results = [make_result(f"r{i}", similarity=0.5) for i in range(5)]
    assert limit_results(limit_results(results, n), n) == limit_results(results, n)


def test_limit_non_positive_and_short_lists():
    results = [make_result("a", similarity=0.5)]
    assert limit_results(results, 0) == []
    assert limit_results(results, -3) == []

    limited = limit_results(results, 5)
    assert limited == results
    assert limited is not results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
