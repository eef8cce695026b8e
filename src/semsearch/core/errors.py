"""Exception hierarchy for search operations."""

from __future__ import annotations

from typing import Optional


class SearchError(Exception):
    """Base class for every error raised by semsearch."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(SearchError):
    """Network failure, timeout, or non-2xx response from the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidResponseError(SearchError):
    """Backend answered, but with ``success: false`` or a malformed payload."""


class ConfigurationError(SearchError, ValueError):
    """Ranking or fusion configuration that would produce a skewed result."""


class QueryValidationError(SearchError, ValueError):
    """User input rejected before any request is sent."""


__all__ = [
    "ConfigurationError",
    "InvalidResponseError",
    "QueryValidationError",
    "SearchError",
    "TransportError",
]
