"""Tests for score evaluation."""

import pytest

from semsearch.core.scoring import comparable_score, passes_threshold
from tests.helpers import make_result


@pytest.mark.parametrize(
    "similarity, rerank, expected",
    [
        (0.25, None, True),  # similarity alone
        (0.1, 0.01, True),  # rerank alone
        (0.1, 0.001, False),  # neither
        (None, None, False),  # absent scores count as 0
        (0.2, None, True),  # threshold is inclusive
        (None, 0.003, True),
    ],
)
def test_passes_threshold(similarity, rerank, expected):
    """Test the OR over both thresholds."""
    result = make_result("a", similarity=similarity, rerank=rerank)
    assert passes_threshold(result, 0.2, 0.003) is expected


def test_absent_score_passes_zero_threshold():
    """A missing score is 0, so a zero threshold lets it through."""
    result = make_result("a")
    assert passes_threshold(result, 0.0, 0.5)


def test_comparable_score_prefers_rerank():
    assert comparable_score(make_result("a", similarity=0.9, rerank=0.1)) == 0.1
    assert comparable_score(make_result("a", similarity=0.9)) == 0.9
    assert comparable_score(make_result("a")) == 0.0


def test_comparable_score_keeps_real_zero():
    """A present rerank score of 0.0 is used, not skipped."""
    assert comparable_score(make_result("a", similarity=0.9, rerank=0.0)) == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
