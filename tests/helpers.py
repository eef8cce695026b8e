"""Test helpers: result builders and a fake search backend."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx

from semsearch.client.service import SearchServiceClient
from semsearch.core.types import SearchResult
from semsearch.utils.config import Config

BASE_URL = "http://backend.test/api"

Handler = Union[Dict[str, Any], Callable[[httpx.Request], httpx.Response]]


def make_result(uid: str, similarity=None, rerank=None, **payload) -> SearchResult:
    """Build a SearchResult the way the backend would send it."""
    data: Dict[str, Any] = {"uid": uid, **payload}
    if similarity is not None:
        data["similarity"] = similarity
    if rerank is not None:
        data["rerankScore"] = rerank
    return SearchResult.from_dict(data)


def search_body(results: List[Dict[str, Any]], search_type: str = "semantic") -> Dict[str, Any]:
    return {
        "success": True,
        "results": results,
        "count": len(results),
        "searchType": search_type,
        "metadata": {"totalResults": len(results), "searchTime": 12, "reranked": True},
    }


class FakeBackend:
    """Canned backend behind ``httpx.MockTransport``.

    Routes are keyed by method and path relative to the API root
    (``("POST", "/search/text")``). Every request is recorded.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.status_codes: Dict[Tuple[str, str], int] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, body: Handler, status_code: int = 200) -> None:
        self.routes[(method, path)] = body
        self.status_codes[(method, path)] = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        key = (request.method, path)
        if key not in self.routes:
            return httpx.Response(404, json={"error": f"no route {key}"})
        body = self.routes[key]
        if callable(body):
            return body(request)
        return httpx.Response(self.status_codes[key], json=body)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path == f"/api{path}"
        ]

    def json_body(self, method: str, path: str, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.calls(method, path)[index].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self, config: Optional[Config] = None, **kwargs) -> SearchServiceClient:
        return SearchServiceClient(
            base_url=BASE_URL,
            transport=self.transport(),
            config=config or Config(),
            **kwargs,
        )


