"""Async HTTP client for the external search backend."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from semsearch.core.config import FusionWeights
from semsearch.core.errors import InvalidResponseError, TransportError
from semsearch.core.types import (
    ContentType,
    ImageUpload,
    ReindexParams,
    ReindexProgress,
    ReindexStatus,
    SearchResponse,
)
from semsearch.utils.config import Config, get_config
from semsearch.utils.logging import get_logger
from semsearch.utils.timing import timed

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's error text from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


class SearchServiceClient:
    """Client for the search backend REST API.

    One instance wraps one ``httpx.AsyncClient``; close it with
    :meth:`aclose` or use the client as an async context manager.

    Example:
        >>> async with SearchServiceClient() as client:
        ...     response = await client.search_semantic("red running shoes")
        ...     print(response.count)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        environment: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend base URL (default from ``backend.base_url``)
            timeout: Request timeout in seconds (default from ``backend.timeout``)
            environment: Environment parameter added to every GET request
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
            config: Config instance (uses global config if None)
        """
        config = config or get_config()
        self.base_url = (base_url or config.get("backend.base_url")).rstrip("/")
        self.timeout = float(timeout or config.get("backend.timeout", 30.0))
        self.environment = environment or config.get(
            "backend.environment", "development"
        )

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        logger.debug(
            f"SearchServiceClient initialized: base_url={self.base_url}, "
            f"timeout={self.timeout}s, environment={self.environment}"
        )

    async def __aenter__(self) -> SearchServiceClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            TransportError: On network failure, timeout or a non-2xx status
            InvalidResponseError: If the body is not JSON
        """
        if method == "GET":
            params = dict(params or {})
            params.setdefault("environment", self.environment)
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._client.request(
                method, path, params=params, json=json, data=data, files=files
            )
        except httpx.TimeoutException as e:
            logger.error(f"API error: {method} {path} timed out after {self.timeout}s")
            raise TransportError(
                f"{method} {path} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"API error: {method} {path} failed: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code == 401:
            logger.warning("Authentication failed. Please check your credentials.")
        elif response.status_code == 429:
            logger.warning("Rate limit exceeded. Please try again later.")

        if response.is_error:
            message = _error_message(response)
            logger.error(
                f"API error: {method} {path} -> HTTP {response.status_code}: {message}"
            )
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}: {message}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"{method} {path} returned a non-JSON body"
            ) from e

    # Search

    @timed("backend.search_text")
    async def search_text(
        self,
        query: str,
        limit: int = 20,
        content_types: Optional[Sequence[str]] = None,
    ) -> SearchResponse:
        """Keyword-style text search (``POST /search/text``)."""
        body = self._text_body(query, limit, "text", content_types)
        data = await self._request("POST", "/search/text", json=body)
        return SearchResponse.from_dict(data, default_search_type="text")

    @timed("backend.search_semantic")
    async def search_semantic(
        self,
        query: str,
        limit: int = 20,
        content_types: Optional[Sequence[str]] = None,
    ) -> SearchResponse:
        """Embedding search with reranking (``POST /search/semantic``)."""
        body = self._text_body(query, limit, "semantic", content_types)
        data = await self._request("POST", "/search/semantic", json=body)
        return SearchResponse.from_dict(data, default_search_type="semantic")

    @staticmethod
    def _text_body(
        query: str, limit: int, search_type: str, content_types: Optional[Sequence[str]]
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"query": query, "limit": limit, "searchType": search_type}
        if content_types:
            body["contentTypes"] = list(content_types)
        return body

    @timed("backend.search_by_image")
    async def search_by_image(self, image_url: str, limit: int = 20) -> SearchResponse:
        """Image similarity search by URL (``POST /search/image``)."""
        data = await self._request(
            "POST", "/search/image", json={"imageUrl": image_url, "limit": limit}
        )
        return SearchResponse.from_dict(data, default_search_type="image")

    @timed("backend.search_by_upload")
    async def search_by_upload(
        self, upload: ImageUpload, limit: int = 20
    ) -> SearchResponse:
        """Image similarity search with an uploaded file (``POST /search/upload``)."""
        files = {"image": (upload.filename, upload.content, upload.mime_type)}
        data = await self._request(
            "POST", "/search/upload", data={"limit": str(limit)}, files=files
        )
        return SearchResponse.from_dict(data, default_search_type="uploaded_image")

    @timed("backend.search_hybrid")
    async def search_hybrid(
        self,
        text_query: Optional[str] = None,
        image_url: Optional[str] = None,
        upload: Optional[ImageUpload] = None,
        limit: int = 10,
        weights: Optional[FusionWeights] = None,
        content_types: Optional[Sequence[str]] = None,
    ) -> SearchResponse:
        """Backend-side hybrid search (``POST /search/hybrid``).

        With an upload the request is sent as multipart form data, otherwise
        as JSON.
        """
        weights = weights or FusionWeights()
        if upload is not None:
            form: Dict[str, Any] = {"limit": str(limit)}
            if text_query:
                form["textQuery"] = text_query
            form["weights[text]"] = str(weights.text)
            form["weights[image]"] = str(weights.image)
            if content_types:
                form["contentTypes"] = ",".join(content_types)
            files = {"image": (upload.filename, upload.content, upload.mime_type)}
            data = await self._request("POST", "/search/hybrid", data=form, files=files)
        else:
            body: Dict[str, Any] = {"limit": limit, "weights": weights.to_dict()}
            if text_query:
                body["textQuery"] = text_query
            if image_url:
                body["imageUrl"] = image_url
            if content_types:
                body["contentTypes"] = list(content_types)
            data = await self._request("POST", "/search/hybrid", json=body)
        return SearchResponse.from_dict(data, default_search_type="hybrid")

    async def get_analytics(self, days: Optional[int] = None) -> Dict[str, Any]:
        return await self._request("GET", "/search/analytics", params={"days": days})

    async def get_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/search/stats")

    async def get_all_entries(self) -> Dict[str, Any]:
        return await self._request("GET", "/search/entries")

    # Indexing

    @timed("backend.start_reindex")
    async def start_reindex(self, params: Optional[ReindexParams] = None) -> ReindexStatus:
        params = params or ReindexParams()
        data = await self._request("POST", "/index/reindex", json=params.to_dict())
        return ReindexStatus.from_dict(data)

    async def get_reindex_progress(self) -> ReindexProgress:
        data = await self._request("GET", "/index/progress")
        return ReindexProgress.from_dict(data)

    async def get_index_status(self) -> ReindexStatus:
        data = await self._request("GET", "/index/status")
        return ReindexStatus.from_dict(data)

    async def clear_index(self) -> Dict[str, Any]:
        logger.warning(f"Clearing search index at {self.base_url}")
        return await self._request("DELETE", "/index/clear")

    async def batch_index(
        self, entries: Sequence[Dict[str, str]], environment: Optional[str] = None
    ) -> Dict[str, Any]:
        """Index specific entries.

        Args:
            entries: Items of the form ``{"uid": ..., "contentType": ...}``
            environment: Target environment (backend default if None)
        """
        body: Dict[str, Any] = {"entries": [dict(e) for e in entries]}
        if environment:
            body["environment"] = environment
        return await self._request("POST", "/index/batch", json=body)

    # Configuration

    async def get_content_types(
        self, environment: Optional[str] = None
    ) -> List[ContentType]:
        data = await self._request(
            "GET", "/config/content-types", params={"environment": environment}
        )
        if not isinstance(data, dict) or not isinstance(data.get("contentTypes"), list):
            raise InvalidResponseError("Content type response is missing 'contentTypes'")
        return [ContentType.from_dict(item) for item in data["contentTypes"]]

    async def get_field_configs(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/config/fields")
        return list(data.get("fieldConfigs") or [])

    async def update_field_configs(self, configs: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._request(
            "POST", "/config/fields", json={"configs": list(configs)}
        )

    async def get_system_config(self) -> Dict[str, Any]:
        data = await self._request("GET", "/config/system")
        return dict(data.get("config") or {})

    async def update_system_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/config/system", json={"config": config})

    async def get_stack_config(self) -> Dict[str, Any]:
        data = await self._request("GET", "/config/stack")
        if not isinstance(data, dict):
            raise InvalidResponseError("Stack configuration must be a JSON object")
        return data


__all__ = ["SearchServiceClient"]
