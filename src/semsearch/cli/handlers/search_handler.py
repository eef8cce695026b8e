"""Business logic for search commands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from semsearch.client.service import SearchServiceClient
from semsearch.client.stack import StackConfigLoader
from semsearch.core.config import RankingConfig
from semsearch.core.orchestrator import SearchOrchestrator, SearchRequest
from semsearch.core.types import ContentType, ImageUpload, SearchMode, SearchResult
from semsearch.utils.config import Config
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_image(value: Optional[str]) -> Tuple[Optional[str], Optional[ImageUpload]]:
    """Interpret an image argument as a local file or a URL.

    Args:
        value: Path to an existing file, or an image URL

    Returns:
        Tuple of (image_url, upload); at most one of them is set
    """
    if not value:
        return None, None
    path = Path(value).expanduser()
    if path.is_file():
        return None, ImageUpload.from_path(path)
    return value, None


class SearchHandler:
    """Handler for search operations.

    Builds a fresh backend client per command, runs the search through a
    :class:`SearchOrchestrator` and optionally resolves content type names
    and CMS entry links for display.

    Example:
        >>> handler = SearchHandler(config)
        >>> results = handler.search(SearchRequest(mode="semantic", query="boots"))
    """

    def __init__(self, config: Config):
        """Initialize handler.

        Args:
            config: Configuration instance
        """
        self.config = config

    def ranking_config(self, **overrides) -> RankingConfig:
        """Ranking settings from config, with CLI overrides applied.

        Args:
            **overrides: RankingConfig fields; None values are ignored.
                ``max_results`` may be an int, applied to ``mode``.
        """
        mode = overrides.pop("mode", None)
        max_results = overrides.pop("max_results", None)
        ranking = RankingConfig.from_config(self.config).with_overrides(**overrides)
        if max_results is not None and mode is not None:
            ranking = ranking.with_max_results(mode, max_results)
        return ranking

    def search(self, request: SearchRequest) -> List[SearchResult]:
        return asyncio.run(self._search(request))

    async def _search(self, request: SearchRequest) -> List[SearchResult]:
        async with SearchServiceClient(config=self.config) as client:
            orchestrator = SearchOrchestrator(client, RankingConfig.from_config(self.config))
            return await orchestrator.search(request)

    def search_with_details(
        self, request: SearchRequest, with_links: bool = False
    ) -> Tuple[List[SearchResult], List[ContentType], Dict[str, str]]:
        """Run a search and fetch what is needed to display it.

        Returns:
            Tuple of (results, content types, entry links by uid)
        """
        return asyncio.run(self._search_with_details(request, with_links))

    async def _search_with_details(
        self, request: SearchRequest, with_links: bool
    ) -> Tuple[List[SearchResult], List[ContentType], Dict[str, str]]:
        async with SearchServiceClient(config=self.config) as client:
            orchestrator = SearchOrchestrator(client, RankingConfig.from_config(self.config))
            results = await orchestrator.search(request)

            content_types: List[ContentType] = []
            if any(r.content_type for r in results):
                content_types = await client.get_content_types()

            links: Dict[str, str] = {}
            if with_links:
                links = await self._entry_links(StackConfigLoader(client, self.config), results)
            return results, content_types, links

    @staticmethod
    async def _entry_links(
        loader: StackConfigLoader, results: Sequence[SearchResult]
    ) -> Dict[str, str]:
        links = {}
        for result in results:
            if result.content_type and result.locale:
                links[result.uid] = await loader.entry_url(
                    result.content_type, result.locale, result.uid
                )
        return links

    def content_types(self) -> List[ContentType]:
        return asyncio.run(self._content_types())

    async def _content_types(self) -> List[ContentType]:
        async with SearchServiceClient(config=self.config) as client:
            return await client.get_content_types()

    @staticmethod
    def build_request(
        mode: SearchMode | str,
        query: Optional[str] = None,
        image: Optional[str] = None,
        content_types: Sequence[str] = (),
        config: Optional[RankingConfig] = None,
    ) -> SearchRequest:
        image_url, upload = resolve_image(image)
        if upload is not None:
            logger.debug(f"Using local image {upload.filename} ({upload.size} bytes)")
        return SearchRequest(
            mode=SearchMode.parse(mode),
            query=query,
            image_url=image_url,
            image=upload,
            content_types=list(content_types),
            config=config,
        )
