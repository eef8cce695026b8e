"""Tests for search orchestration."""

import asyncio

import httpx
import pytest

from semsearch.core.config import FusionWeights, RankingConfig
from semsearch.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    QueryValidationError,
    TransportError,
)
from semsearch.core.orchestrator import SearchOrchestrator, SearchRequest
from semsearch.core.types import FusedSearchResult, ImageUpload
from tests.helpers import make_result, search_body

PNG = ImageUpload(filename="shoe.png", content=b"\x89PNG fake", mime_type="image/png")


def _run(backend, request, config=None):
    async def go():
        async with backend.client() as client:
            orchestrator = SearchOrchestrator(client, config or RankingConfig())
            return await orchestrator.search(request)

    return asyncio.run(go())


def test_semantic_search_is_consolidated(backend):
    backend.add(
        "POST",
        "/search/semantic",
        search_body(
            [{"uid": f"e{i}", "similarity": 0.1 * i, "title": f"Entry {i}"} for i in range(1, 9)]
        ),
    )

    results = _run(backend, SearchRequest(mode="semantic", query="  trail shoes "))

    # e1 (0.1) fails the 0.2 threshold; text cap is 5
    assert [r.uid for r in results] == ["e8", "e7", "e6", "e5", "e4"]
    body = backend.json_body("POST", "/search/semantic")
    assert body == {"query": "trail shoes", "limit": 20, "searchType": "semantic"}


def test_search_leaves_caller_request_untouched(backend):
    backend.add("POST", "/search/semantic", search_body([{"uid": "t", "similarity": 0.8}]))
    backend.add("POST", "/search/image", search_body([{"uid": "i", "similarity": 0.8}], "image"))
    request = SearchRequest(
        mode="hybrid", query="  blue shoe ", image_url=" https://cdn.example.com/q.jpg "
    )

    _run(backend, request)

    assert request.query == "  blue shoe "
    assert request.image_url == " https://cdn.example.com/q.jpg "
    assert backend.json_body("POST", "/search/semantic")["query"] == "blue shoe"
    assert backend.json_body("POST", "/search/image")["imageUrl"] == "https://cdn.example.com/q.jpg"


def test_text_search_sends_content_types(backend):
    backend.add("POST", "/search/text", search_body([{"uid": "a", "similarity": 0.9}], "text"))

    _run(backend, SearchRequest(mode="text", query="faq", content_types=["page"]))

    assert backend.json_body("POST", "/search/text")["contentTypes"] == ["page"]
    assert not backend.calls("POST", "/search/semantic")


def test_image_search_caps_at_twelve(backend):
    backend.add(
        "POST",
        "/search/image",
        search_body([{"uid": f"i{i}", "similarity": 0.5} for i in range(20)], "image"),
    )

    results = _run(
        backend, SearchRequest(mode="image", image_url="https://cdn.example.com/a.jpg")
    )

    assert len(results) == 12
    assert backend.json_body("POST", "/search/image")["imageUrl"] == "https://cdn.example.com/a.jpg"


def test_image_upload_uses_multipart(backend):
    backend.add("POST", "/search/upload", search_body([{"uid": "i1", "similarity": 0.7}], "uploaded_image"))

    results = _run(backend, SearchRequest(mode="image", image=PNG))

    assert [r.uid for r in results] == ["i1"]
    request = backend.calls("POST", "/search/upload")[0]
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="image"; filename="shoe.png"' in request.content


def test_hybrid_client_strategy_fuses_both_channels(backend):
    backend.add(
        "POST",
        "/search/semantic",
        search_body(
            [
                {"uid": "both", "similarity": 0.6, "title": "Both"},
                {"uid": "text-only", "similarity": 0.8},
                {"uid": "noise", "similarity": 0.01},
            ]
        ),
    )
    backend.add(
        "POST",
        "/search/image",
        search_body(
            [
                {"uid": "both", "similarity": 0.9, "url": "https://cdn.example.com/b.jpg"},
                {"uid": "image-only", "similarity": 0.95},
            ],
            "image",
        ),
    )

    results = _run(
        backend,
        SearchRequest(
            mode="hybrid", query="blue shoe", image_url="https://cdn.example.com/q.jpg"
        ),
    )

    assert all(isinstance(r, FusedSearchResult) for r in results)
    scores = {r.uid: r.fused_score for r in results}
    assert scores["both"] == pytest.approx(0.7 * 0.6 + 0.3 * 0.9)
    assert scores["text-only"] == pytest.approx(0.56)
    assert scores["image-only"] == pytest.approx(0.285)
    assert "noise" not in scores  # removed by the per-channel prefilter
    assert [r.uid for r in results] == ["both", "text-only", "image-only"]
    assert results[0].payload["url"] == "https://cdn.example.com/b.jpg"
    assert not backend.calls("POST", "/search/hybrid")


def test_hybrid_text_only_skips_image_channel(backend):
    backend.add("POST", "/search/semantic", search_body([{"uid": "a", "similarity": 0.5}]))

    results = _run(backend, SearchRequest(mode="hybrid", query="boots"))

    assert [r.uid for r in results] == ["a"]
    assert not backend.calls("POST", "/search/image")


def test_hybrid_server_strategy(backend):
    backend.add(
        "POST",
        "/search/hybrid",
        search_body([{"uid": "h1", "similarity": 0.4}, {"uid": "h2", "rerankScore": 0.6}], "hybrid"),
    )
    config = RankingConfig(hybrid_strategy="server", weights=FusionWeights(0.5, 0.5))

    results = _run(
        backend,
        SearchRequest(mode="hybrid", query="boots", image_url="https://cdn.example.com/q.png"),
        config,
    )

    assert [r.uid for r in results] == ["h2", "h1"]
    body = backend.json_body("POST", "/search/hybrid")
    assert body["weights"] == {"text": 0.5, "image": 0.5}
    assert body["textQuery"] == "boots"


def test_invalid_weights_rejected_before_any_request(backend):
    config = RankingConfig(weights=FusionWeights(text=0.8, image=0.8))

    with pytest.raises(ConfigurationError):
        _run(backend, SearchRequest(mode="hybrid", query="boots"), config)

    assert backend.requests == []


def test_non_positive_cap_rejected(backend):
    config = RankingConfig().with_max_results("semantic", 0)

    with pytest.raises(ConfigurationError):
        _run(backend, SearchRequest(mode="semantic", query="boots"), config)
    assert backend.requests == []


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"mode": "semantic", "query": " "},
        {"mode": "text", "query": "a"},
        {"mode": "semantic", "query": "x" * 501},
        {"mode": "image"},
        {"mode": "image", "image_url": "https://cdn.example.com/readme.txt"},
        {"mode": "image", "image_url": "not a url .jpg"},
        {"mode": "hybrid"},
        {"mode": "image", "image_url": "https://cdn.example.com/a.jpg", "image": PNG},
    ],
)
def test_invalid_requests_rejected(backend, request_kwargs):
    with pytest.raises(QueryValidationError):
        _run(backend, SearchRequest(**request_kwargs))
    assert backend.requests == []


def test_unknown_mode():
    with pytest.raises(ConfigurationError):
        SearchRequest(mode="audio", query="boots")


def test_backend_failure_propagates(backend):
    backend.add("POST", "/search/semantic", {"error": "index offline"}, status_code=503)

    with pytest.raises(TransportError) as exc_info:
        _run(backend, SearchRequest(mode="semantic", query="boots"))

    assert exc_info.value.status_code == 503
    assert "index offline" in exc_info.value.message


def test_unsuccessful_response_propagates(backend):
    backend.add("POST", "/search/semantic", {"success": False, "error": "bad query"})

    with pytest.raises(InvalidResponseError):
        _run(backend, SearchRequest(mode="semantic", query="boots"))


def test_hybrid_channel_failure_fails_the_search(backend):
    backend.add("POST", "/search/semantic", search_body([{"uid": "a", "similarity": 0.5}]))
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.add("POST", "/search/image", refuse)

    with pytest.raises(TransportError):
        _run(
            backend,
            SearchRequest(mode="hybrid", query="boots", image_url="https://cdn.example.com/q.jpg"),
        )


def test_consolidate_is_pure():
    orchestrator = SearchOrchestrator(client=None, config=RankingConfig())
    raw = [make_result("a", similarity=0.3), make_result("b", rerank=0.5), make_result("c", similarity=0.1)]

    first = orchestrator.consolidate(raw, "text")
    second = orchestrator.consolidate(raw, "text")

    assert [r.uid for r in first] == ["b", "a"] == [r.uid for r in second]
    assert [r.uid for r in raw] == ["a", "b", "c"]


def test_consolidate_hybrid_validates_weights():
    orchestrator = SearchOrchestrator(client=None, config=RankingConfig())
    bad = RankingConfig(weights=FusionWeights(text=0.5, image=0.6))

    with pytest.raises(ConfigurationError):
        orchestrator.consolidate_hybrid([make_result("a", similarity=0.5)], [], bad)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
