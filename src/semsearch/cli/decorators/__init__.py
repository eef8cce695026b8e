"""CLI decorators for common options and error handling."""

from semsearch.cli.decorators.error_handling import handle_errors
from semsearch.cli.decorators.options import (
    with_content_types,
    with_output_format,
    with_ranking_options,
)

__all__ = [
    "handle_errors",
    "with_content_types",
    "with_output_format",
    "with_ranking_options",
]
