"""Output formatting for CLI commands."""

from semsearch.cli.output.formatters import (
    OutputFormatter,
    extract_display_metadata,
    format_file_size,
    format_score,
    truncate_text,
)

__all__ = [
    "OutputFormatter",
    "extract_display_metadata",
    "format_file_size",
    "format_score",
    "truncate_text",
]
