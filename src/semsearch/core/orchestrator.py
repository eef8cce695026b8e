"""Search orchestration: dispatch, consolidation and per-session state."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from semsearch.core.config import RankingConfig
from semsearch.core.errors import QueryValidationError
from semsearch.core.fusion import apply_post_fusion_threshold, fuse, fused_score_key
from semsearch.core.pipeline import filter_results, limit_results, rank_results
from semsearch.core.types import (
    FusedSearchResult,
    ImageUpload,
    SearchMode,
    SearchResponse,
    SearchResult,
)
from semsearch.core.validation import (
    validate_image_upload,
    validate_image_url,
    validate_search_query,
)
from semsearch.utils.logging import get_logger
from semsearch.utils.timing import TimingContext

if TYPE_CHECKING:
    from semsearch.client.service import SearchServiceClient

logger = get_logger(__name__)


@dataclass
class SearchRequest:
    """One user search.

    Attributes:
        mode: Input channel (text, semantic, image or hybrid)
        query: Text query (text, semantic and hybrid modes)
        image_url: Image URL (image and hybrid modes)
        image: Uploaded image file (image and hybrid modes)
        content_types: Restrict text results to these content types
        config: Ranking settings for this call (orchestrator default if None)
    """

    mode: SearchMode
    query: Optional[str] = None
    image_url: Optional[str] = None
    image: Optional[ImageUpload] = None
    content_types: List[str] = field(default_factory=list)
    config: Optional[RankingConfig] = None

    def __post_init__(self):
        self.mode = SearchMode.parse(self.mode)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url) or self.image is not None

    def describe(self) -> str:
        parts = [self.mode.value]
        if self.query:
            parts.append(f"query={self.query!r}")
        if self.image_url:
            parts.append(f"image_url={self.image_url}")
        if self.image is not None:
            parts.append(f"upload={self.image.filename}")
        return " ".join(parts)


class SearchOrchestrator:
    """Runs searches against the backend and consolidates the results.

    Example:
        >>> orchestrator = SearchOrchestrator(client)
        >>> results = await orchestrator.search(
        ...     SearchRequest(mode="semantic", query="winter jackets")
        ... )
    """

    def __init__(
        self,
        client: SearchServiceClient,
        config: Optional[RankingConfig] = None,
    ):
        """Initialize orchestrator.

        Args:
            client: Backend client
            config: Default ranking settings (built from global config if None)
        """
        self.client = client
        self.config = config or RankingConfig.from_config()

    async def search(self, request: SearchRequest) -> List[SearchResult]:
        """Validate, dispatch and consolidate one search.

        Args:
            request: The search to run

        Returns:
            Consolidated results, best first

        Raises:
            QueryValidationError: If the request inputs are invalid
            ConfigurationError: If the ranking settings are invalid
            TransportError: If the backend could not be reached
            InvalidResponseError: If the backend answered with an error or
                a malformed body
        """
        config = request.config or self.config
        request = self._validate(request, config)
        logger.info(f"Search: {request.describe()}")

        if request.mode is SearchMode.HYBRID and config.hybrid_strategy == "client":
            text_results, image_results = await self._fetch_hybrid_channels(
                request, config
            )
            results: List[SearchResult] = list(
                self.consolidate_hybrid(text_results, image_results, config)
            )
        else:
            response = await self._dispatch(request, config)
            results = self.consolidate(response.results, request.mode, config)

        logger.info(f"Search returned {len(results)} results ({request.mode.value})")
        return results

    def consolidate(
        self,
        results: Sequence[SearchResult],
        mode: SearchMode | str,
        config: Optional[RankingConfig] = None,
    ) -> List[SearchResult]:
        """Filter, rank and limit a single result list."""
        config = config or self.config
        mode = SearchMode.parse(mode)
        with TimingContext(f"consolidate.{mode.value}"):
            kept = filter_results(results, config)
            ranked = rank_results(kept)
            limited = limit_results(ranked, config.max_results_for(mode))
        logger.debug(
            f"Consolidated {len(results)} -> {len(kept)} passing -> {len(limited)} shown"
        )
        return limited

    def consolidate_hybrid(
        self,
        text_results: Sequence[SearchResult],
        image_results: Sequence[SearchResult],
        config: Optional[RankingConfig] = None,
    ) -> List[FusedSearchResult]:
        """Fuse the text and image channels, then threshold, rank and limit.

        Raises:
            ConfigurationError: If weights or fusion settings are invalid
        """
        config = config or self.config
        config.validate(SearchMode.HYBRID)
        with TimingContext("consolidate.hybrid"):
            if config.prefilter:
                text_results = filter_results(text_results, config)
                image_results = filter_results(image_results, config)
            fused = fuse(text_results, image_results, config.weights, key=config.fusion_key)
            kept = apply_post_fusion_threshold(fused, config)
            ranked = rank_results(kept, key=fused_score_key)
            limited = limit_results(ranked, config.max_results_for(SearchMode.HYBRID))
        logger.debug(
            f"Hybrid consolidation: {len(fused)} fused -> {len(kept)} passing "
            f"({config.post_fusion}) -> {len(limited)} shown"
        )
        return limited

    def _validate(self, request: SearchRequest, config: RankingConfig) -> SearchRequest:
        """Check the request and return a normalized copy of it."""
        mode = request.mode
        config.validate(mode)

        if mode in (SearchMode.TEXT, SearchMode.SEMANTIC):
            return replace(request, query=validate_search_query(request.query))

        if request.image_url and request.image is not None:
            raise QueryValidationError("Provide either an image URL or an image file, not both")

        if mode is SearchMode.IMAGE and not request.has_image:
            raise QueryValidationError("Image search needs an image URL or an image file")
        query = request.query
        if mode is SearchMode.HYBRID:
            if not request.query and not request.has_image:
                raise QueryValidationError(
                    "Hybrid search needs a text query, an image, or both"
                )
            if request.query:
                query = validate_search_query(request.query)

        image_url = request.image_url
        if image_url:
            image_url = validate_image_url(image_url)
        if request.image is not None:
            validate_image_upload(request.image)
        return replace(request, query=query, image_url=image_url)

    async def _search_image(
        self, request: SearchRequest, limit: int
    ) -> SearchResponse:
        if request.image is not None:
            return await self.client.search_by_upload(request.image, limit=limit)
        return await self.client.search_by_image(request.image_url, limit=limit)

    async def _dispatch(
        self, request: SearchRequest, config: RankingConfig
    ) -> SearchResponse:
        limit = config.fetch_limit
        if request.mode is SearchMode.TEXT:
            return await self.client.search_text(
                request.query, limit=limit, content_types=request.content_types
            )
        if request.mode is SearchMode.SEMANTIC:
            return await self.client.search_semantic(
                request.query, limit=limit, content_types=request.content_types
            )
        if request.mode is SearchMode.IMAGE:
            return await self._search_image(request, limit)
        return await self.client.search_hybrid(
            text_query=request.query,
            image_url=request.image_url,
            upload=request.image,
            limit=limit,
            weights=config.weights,
            content_types=request.content_types,
        )

    async def _fetch_hybrid_channels(
        self, request: SearchRequest, config: RankingConfig
    ) -> tuple[List[SearchResult], List[SearchResult]]:
        """Query the semantic and image channels concurrently."""
        limit = config.fetch_limit
        calls = {}
        if request.query:
            calls["text"] = self.client.search_semantic(
                request.query, limit=limit, content_types=request.content_types
            )
        if request.has_image:
            calls["image"] = self._search_image(request, limit)

        responses: Dict[str, SearchResponse] = dict(
            zip(calls, await asyncio.gather(*calls.values()))
        )
        text_results = responses["text"].results if "text" in responses else []
        image_results = responses["image"].results if "image" in responses else []
        logger.debug(
            f"Hybrid channels returned {len(text_results)} text and "
            f"{len(image_results)} image candidates"
        )
        return text_results, image_results


class SearchState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCESS = "success"
    FAILED = "failed"


class SearchSession:
    """Search state of one user session.

    Every call to :meth:`search` takes a new sequence number. Only the call
    holding the latest number may update the session; completions of older
    calls are discarded and return ``None``.

    Attributes:
        state: Current :class:`SearchState`
        results: Results of the latest successful search
        error: Message of the latest failed search
    """

    def __init__(self, orchestrator: SearchOrchestrator, name: str = "default"):
        self.orchestrator = orchestrator
        self.name = name
        self.state = SearchState.IDLE
        self.results: List[SearchResult] = []
        self.error: Optional[str] = None
        self.last_request: Optional[SearchRequest] = None
        self._sequence = 0

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent search."""
        return self._sequence

    def is_latest(self, sequence: int) -> bool:
        return sequence == self._sequence

    async def search(self, request: SearchRequest) -> Optional[List[SearchResult]]:
        """Run a search in this session.

        Returns:
            The consolidated results, or None if a newer search started
            before this one completed

        Raises:
            SearchError: If this is still the latest search and it failed
        """
        self._sequence += 1
        sequence = self._sequence
        self.state = SearchState.SEARCHING
        self.results = []
        self.error = None
        self.last_request = request

        try:
            results = await self.orchestrator.search(request)
        except Exception as e:
            if not self.is_latest(sequence):
                logger.debug(
                    f"Session '{self.name}': discarding failure of superseded search #{sequence}"
                )
                return None
            self.state = SearchState.FAILED
            self.error = str(e)
            self.results = []
            raise

        if not self.is_latest(sequence):
            logger.debug(
                f"Session '{self.name}': discarding results of superseded search #{sequence}"
            )
            return None

        self.state = SearchState.SUCCESS
        self.results = list(results)
        return self.results

    def clear(self) -> None:
        """Reset to IDLE; a search still in flight will be discarded."""
        self._sequence += 1
        self.state = SearchState.IDLE
        self.results = []
        self.error = None
        self.last_request = None


class SessionRegistry:
    """Hands out one :class:`SearchSession` per session id.

    At most ``max_sessions`` sessions are kept; creating one more evicts
    the session used least recently.
    """

    def __init__(self, orchestrator: SearchOrchestrator, max_sessions: int = 1000):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.orchestrator = orchestrator
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, SearchSession] = OrderedDict()

    def get(self, session_id: str) -> SearchSession:
        """Return the session for ``session_id``, creating it if needed."""
        session = self.find(session_id)
        if session is not None:
            return session

        logger.debug(f"Creating search session '{session_id}'")
        session = self._sessions[session_id] = SearchSession(self.orchestrator, session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicting idle search session '{evicted}'")
        return session

    def find(self, session_id: str) -> Optional[SearchSession]:
        """Return the session for ``session_id`` or None; never creates one."""
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def remove(self, session_id: str) -> Optional[SearchSession]:
        return self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "SearchOrchestrator",
    "SearchRequest",
    "SearchSession",
    "SearchState",
    "SessionRegistry",
]
