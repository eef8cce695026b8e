"""CLI command handlers containing business logic."""

from semsearch.cli.handlers.analytics_handler import AnalyticsHandler
from semsearch.cli.handlers.index_handler import IndexHandler
from semsearch.cli.handlers.search_handler import SearchHandler, resolve_image

__all__ = ["AnalyticsHandler", "IndexHandler", "SearchHandler", "resolve_image"]
