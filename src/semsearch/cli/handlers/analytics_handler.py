"""Business logic for the analytics command."""

from __future__ import annotations

import asyncio

from semsearch.client.service import SearchServiceClient
from semsearch.core.analytics import AnalyticsReport, fetch_dashboard
from semsearch.utils.config import Config


class AnalyticsHandler:
    """Handler for analytics operations."""

    def __init__(self, config: Config):
        self.config = config

    def dashboard(self, days: int) -> AnalyticsReport:
        return asyncio.run(self._dashboard(days))

    async def _dashboard(self, days: int) -> AnalyticsReport:
        async with SearchServiceClient(config=self.config) as client:
            return await fetch_dashboard(client, days)
