"""Tests for the search backend client."""

import asyncio
import logging

import httpx
import pytest

from semsearch.client.service import SearchServiceClient
from semsearch.core.config import FusionWeights
from semsearch.core.errors import InvalidResponseError, TransportError
from semsearch.core.types import ImageUpload, ReindexParams
from semsearch.utils.config import Config
from tests.helpers import search_body


def _call(backend, method_name, *args, **kwargs):
    async def go():
        async with backend.client() as client:
            return await getattr(client, method_name)(*args, **kwargs)

    return asyncio.run(go())


def test_search_response_is_parsed(backend):
    backend.add(
        "POST",
        "/search/semantic",
        search_body(
            [
                {
                    "uid": "blt1",
                    "similarity": 0.82,
                    "rerankScore": 0.4,
                    "contentType": "product",
                    "locale": "en-us",
                    "title": "Trail shoe",
                    "tags": ["outdoor"],
                }
            ]
        ),
    )

    response = _call(backend, "search_semantic", "trail shoes", limit=10)

    assert response.success
    assert response.search_type == "semantic"
    assert response.reranked
    result = response.results[0]
    assert result.uid == "blt1"
    assert result.rerank_score == 0.4
    assert result.content_type == "product"
    assert result.payload == {"title": "Trail shoe", "tags": ["outdoor"]}
    assert backend.json_body("POST", "/search/semantic")["limit"] == 10


def test_search_type_defaults_to_endpoint(backend):
    body = search_body([{"uid": "a", "similarity": 0.5}])
    del body["searchType"]
    backend.add("POST", "/search/image", body)

    response = _call(backend, "search_by_image", "https://cdn.example.com/a.png")

    assert response.search_type == "image"


def test_get_requests_carry_environment(backend):
    backend.add("GET", "/search/stats", {"success": True, "stats": {}})
    backend.add("GET", "/search/analytics", {"success": True})

    _call(backend, "get_stats")
    _call(backend, "get_analytics", days=30)

    stats_request = backend.calls("GET", "/search/stats")[0]
    assert stats_request.url.params["environment"] == "development"
    analytics_request = backend.calls("GET", "/search/analytics")[0]
    assert analytics_request.url.params["days"] == "30"
    assert analytics_request.url.params["environment"] == "development"


def test_none_params_are_dropped(backend):
    backend.add("GET", "/search/analytics", {"success": True})

    _call(backend, "get_analytics")

    assert "days" not in backend.calls("GET", "/search/analytics")[0].url.params


@pytest.mark.parametrize("status_code", [400, 404, 500, 503])
def test_error_status_raises_transport_error(backend, status_code):
    backend.add("POST", "/search/text", {"message": "boom"}, status_code=status_code)

    with pytest.raises(TransportError) as exc_info:
        _call(backend, "search_text", "shoes")

    assert exc_info.value.status_code == status_code
    assert "boom" in exc_info.value.message


def test_unauthorized_logs_warning(backend, caplog):
    backend.add("GET", "/config/stack", {"error": "Unauthorized"}, status_code=401)

    with caplog.at_level(logging.WARNING, logger="semsearch"):
        with pytest.raises(TransportError):
            _call(backend, "get_stack_config")

    assert "Authentication failed" in caplog.text


def test_timeout_raises_transport_error(backend):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    backend.add("POST", "/search/text", slow)

    with pytest.raises(TransportError) as exc_info:
        _call(backend, "search_text", "shoes")

    assert "timed out" in exc_info.value.message
    assert exc_info.value.status_code is None


def test_non_json_body(backend):
    backend.add("GET", "/search/stats", lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(InvalidResponseError):
        _call(backend, "get_stats")


@pytest.mark.parametrize(
    "body",
    [
        {"success": False, "error": "index missing"},
        {"success": True},
        {"success": True, "results": {"uid": "a"}},
        {"success": True, "results": [{"title": "no uid"}]},
        {"success": True, "results": [{"uid": "a", "similarity": "high"}]},
        ["not", "an", "object"],
    ],
)
def test_malformed_search_response(backend, body):
    backend.add("POST", "/search/text", body)

    with pytest.raises(InvalidResponseError):
        _call(backend, "search_text", "shoes")


def test_upload_is_multipart(backend):
    backend.add("POST", "/search/upload", search_body([{"uid": "a", "similarity": 0.9}], "uploaded_image"))
    upload = ImageUpload(filename="cat.jpg", content=b"jpeg-bytes", mime_type="image/jpeg")

    _call(backend, "search_by_upload", upload, limit=8)

    request = backend.calls("POST", "/search/upload")[0]
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b"jpeg-bytes" in request.content
    assert b"Content-Type: image/jpeg" in request.content
    assert b'name="limit"' in request.content


def test_hybrid_with_upload_sends_weights_as_form_fields(backend):
    backend.add("POST", "/search/hybrid", search_body([], "hybrid"))
    upload = ImageUpload(filename="cat.png", content=b"png-bytes", mime_type="image/png")

    _call(
        backend,
        "search_hybrid",
        text_query="cats",
        upload=upload,
        weights=FusionWeights(0.6, 0.4),
    )

    content = backend.calls("POST", "/search/hybrid")[0].content
    assert b'name="weights[text]"\r\n\r\n0.6' in content
    assert b'name="weights[image]"\r\n\r\n0.4' in content
    assert b'name="textQuery"\r\n\r\ncats' in content


def test_hybrid_json_body(backend):
    backend.add("POST", "/search/hybrid", search_body([], "hybrid"))

    _call(
        backend,
        "search_hybrid",
        text_query="cats",
        image_url="https://cdn.example.com/cat.png",
        limit=10,
        content_types=["product"],
    )

    assert backend.json_body("POST", "/search/hybrid") == {
        "limit": 10,
        "weights": {"text": 0.7, "image": 0.3},
        "textQuery": "cats",
        "imageUrl": "https://cdn.example.com/cat.png",
        "contentTypes": ["product"],
    }


def test_content_types(backend):
    backend.add(
        "GET",
        "/config/content-types",
        {
            "success": True,
            "contentTypes": [
                {"uid": "product", "title": "Product", "schema": [{"uid": "title"}]},
                {"uid": "faq"},
            ],
        },
    )

    content_types = _call(backend, "get_content_types")

    assert [ct.title for ct in content_types] == ["Product", "faq"]
    assert len(content_types[0].schema) == 1


def test_content_types_missing_list(backend):
    backend.add("GET", "/config/content-types", {"success": True})

    with pytest.raises(InvalidResponseError):
        _call(backend, "get_content_types")


def test_start_reindex_body(backend):
    backend.add(
        "POST",
        "/index/reindex",
        {"success": True, "status": "running", "message": "Reindexing started"},
    )

    status = _call(
        backend,
        "start_reindex",
        ReindexParams(environment="production", batch_size=25, content_types=["faq"]),
    )

    assert status.success and status.status == "running"
    assert backend.json_body("POST", "/index/reindex") == {
        "environment": "production",
        "batchSize": 25,
        "contentTypes": ["faq"],
    }


def test_reindex_progress_percentage_derived(backend):
    backend.add("GET", "/index/progress", {"status": "running", "processed": 5, "total": 20})

    progress = _call(backend, "get_reindex_progress")

    assert progress.percentage == 25.0
    assert not progress.is_terminal


def test_config_endpoints(backend):
    backend.add("GET", "/config/fields", {"success": True, "fieldConfigs": [{"fieldUid": "title"}]})
    backend.add("GET", "/config/system", {"success": True, "config": {"rerank": True}})
    backend.add("POST", "/config/system", {"success": True})

    assert _call(backend, "get_field_configs") == [{"fieldUid": "title"}]
    assert _call(backend, "get_system_config") == {"rerank": True}
    _call(backend, "update_system_config", {"rerank": False})
    assert backend.json_body("POST", "/config/system") == {"config": {"rerank": False}}


def test_entries_and_batch_index(backend):
    backend.add("GET", "/search/entries", {"success": True, "entries": [{"uid": "e1"}]})
    backend.add("POST", "/index/batch", {"success": True, "indexed": 2})
    backend.add("POST", "/config/fields", {"success": True})

    assert _call(backend, "get_all_entries")["entries"] == [{"uid": "e1"}]
    _call(
        backend,
        "batch_index",
        [{"uid": "e1", "contentType": "faq"}, {"uid": "e2", "contentType": "faq"}],
        environment="staging",
    )
    _call(backend, "update_field_configs", [{"fieldUid": "title", "weight": 2}])

    assert backend.json_body("POST", "/index/batch")["environment"] == "staging"
    assert len(backend.json_body("POST", "/index/batch")["entries"]) == 2
    assert backend.json_body("POST", "/config/fields") == {
        "configs": [{"fieldUid": "title", "weight": 2}]
    }


def test_base_url_from_config():
    config = Config()
    config.set("backend.base_url", "https://search.example.com/api/")
    config.set("backend.timeout", 5)

    async def go():
        async with SearchServiceClient(config=config) as client:
            return client.base_url, client.timeout

    assert asyncio.run(go()) == ("https://search.example.com/api", 5.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
