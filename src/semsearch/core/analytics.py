"""Search analytics dashboard data."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

from semsearch.core.errors import InvalidResponseError, QueryValidationError
from semsearch.utils.logging import get_logger

if TYPE_CHECKING:
    from semsearch.client.service import SearchServiceClient

logger = get_logger(__name__)

DEFAULT_DAYS = 7


@dataclass
class AnalyticsReport:
    """Search usage over a period combined with index statistics."""

    days: int
    stats: Dict[str, Any] = field(default_factory=dict)
    popular_queries: List[Dict[str, Any]] = field(default_factory=list)
    index_info: Dict[str, Any] = field(default_factory=dict)
    capabilities: Dict[str, bool] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Share of successful searches, 0.0 when nothing was searched."""
        total = self.stats.get("totalSearches") or 0
        if not total:
            return 0.0
        return (self.stats.get("successfulSearches") or 0) / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": self.days,
            "stats": dict(self.stats),
            "successRate": self.success_rate,
            "popularQueries": list(self.popular_queries),
            "indexInfo": dict(self.index_info),
            "capabilities": dict(self.capabilities),
        }


async def fetch_dashboard(
    client: SearchServiceClient, days: int = DEFAULT_DAYS
) -> AnalyticsReport:
    """Fetch analytics and index stats concurrently.

    Args:
        client: Backend client
        days: Length of the reporting period

    Returns:
        AnalyticsReport instance

    Raises:
        QueryValidationError: If ``days`` is not positive
        TransportError: If either backend call fails
    """
    if days <= 0:
        raise QueryValidationError(f"days must be positive, got {days}")

    analytics, stats = await asyncio.gather(
        client.get_analytics(days), client.get_stats()
    )
    if not isinstance(analytics, dict) or not isinstance(stats, dict):
        raise InvalidResponseError("Analytics responses must be JSON objects")

    logger.debug(f"Fetched analytics for the last {days} days")
    return AnalyticsReport(
        days=days,
        stats=dict(analytics.get("stats") or {}),
        popular_queries=list(analytics.get("popularQueries") or []),
        index_info=dict(stats.get("indexInfo") or stats.get("stats") or {}),
        capabilities=dict(stats.get("capabilities") or {}),
    )


__all__ = ["AnalyticsReport", "fetch_dashboard"]
