"""semsearch - consolidated semantic, image and hybrid content search."""

__version__ = "0.1.0"

# Client
from semsearch.client import SearchServiceClient, StackConfigLoader

# Core modules
from semsearch.core import (
    ConfigurationError,
    FusedSearchResult,
    FusionWeights,
    InvalidResponseError,
    QueryValidationError,
    RankingConfig,
    SearchError,
    SearchMode,
    SearchOrchestrator,
    SearchRequest,
    SearchResult,
    SearchSession,
    TransportError,
    fuse,
)

# Utils
from semsearch.utils.config import Config, get_config, load_config


# Lazy imports for the API layer
def __getattr__(name):
    """Lazy import for the FastAPI app factory."""
    if name == "create_app":
        from semsearch.api.server import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Core
    "FusedSearchResult",
    "FusionWeights",
    "RankingConfig",
    "SearchMode",
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResult",
    "SearchSession",
    "fuse",
    # Errors
    "ConfigurationError",
    "InvalidResponseError",
    "QueryValidationError",
    "SearchError",
    "TransportError",
    # Client
    "SearchServiceClient",
    "StackConfigLoader",
    # API
    "create_app",
    # Config
    "Config",
    "get_config",
    "load_config",
]
