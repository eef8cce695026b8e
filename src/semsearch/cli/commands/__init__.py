"""CLI command modules."""

from . import analytics, index_group, search_group, serve

__all__ = ["analytics", "index_group", "search_group", "serve"]
