"""Clients for the external search backend."""

from semsearch.client.service import SearchServiceClient
from semsearch.client.stack import StackConfig, StackConfigLoader, build_entry_url

__all__ = ["SearchServiceClient", "StackConfig", "StackConfigLoader", "build_entry_url"]
