"""Business logic for index commands."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple

from semsearch.client.service import SearchServiceClient
from semsearch.core.reindex import ProgressCallback, ReindexPoller
from semsearch.core.types import ReindexParams, ReindexProgress, ReindexStatus
from semsearch.utils.config import Config


class IndexHandler:
    """Handler for index operations.

    Keeps CLI commands thin and focused on user interaction.

    Example:
        >>> handler = IndexHandler(config)
        >>> status, progress = handler.reindex(ReindexParams(), watch=True)
    """

    def __init__(self, config: Config):
        """Initialize handler.

        Args:
            config: Configuration instance
        """
        self.config = config

    def default_params(self, **overrides) -> ReindexParams:
        """Reindex parameters from the ``reindex`` config section.

        Args:
            **overrides: environment, batch_size or content_types; None or
                empty values fall back to config
        """
        return ReindexParams(
            environment=overrides.get("environment")
            or self.config.get("reindex.environment"),
            batch_size=overrides.get("batch_size")
            or self.config.get("reindex.batch_size"),
            content_types=list(overrides.get("content_types") or []),
        )

    def reindex(
        self,
        params: ReindexParams,
        watch: bool = True,
        interval: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Tuple[ReindexStatus, Optional[ReindexProgress], Optional[ReindexPoller]]:
        """Start a reindex and, with ``watch``, follow it to completion.

        Returns:
            Tuple of (start status, last progress, poller). The poller is
            None when not watching.
        """
        return asyncio.run(self._reindex(params, watch, interval, on_progress))

    async def _reindex(self, params, watch, interval, on_progress):
        async with SearchServiceClient(config=self.config) as client:
            if not watch:
                return await client.start_reindex(params), None, None
            poller = ReindexPoller(
                client, interval=interval, on_progress=on_progress, config=self.config
            )
            status = await poller.start(params)
            progress = await poller.wait()
            return status, progress, poller

    def status(self) -> ReindexStatus:
        return asyncio.run(self._call("get_index_status"))

    def progress(self) -> ReindexProgress:
        return asyncio.run(self._call("get_reindex_progress"))

    def clear(self) -> Dict[str, Any]:
        return asyncio.run(self._call("clear_index"))

    async def _call(self, method: str, *args):
        async with SearchServiceClient(config=self.config) as client:
            return await getattr(client, method)(*args)
