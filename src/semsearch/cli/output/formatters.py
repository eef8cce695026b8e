"""Output formatting utilities for CLI."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import click

from semsearch.core.types import SearchResult

# Keys shown on their own line, or not at all, when rendering a result
_DISPLAY_EXCLUDED = (
    "title",
    "description",
    "similarity",
    "rerankScore",
    "contentType",
    "locale",
    "uid",
    "fusedScore",
    "textScore",
    "imageScore",
)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_score(score: Optional[float], decimals: int = 3) -> str:
    """Format a score for display; missing scores render as ``N/A``."""
    if score is None:
        return "N/A"
    return f"{score:.{decimals}f}"


def truncate_text(text: str, max_length: int = 150) -> str:
    """Cut ``text`` to ``max_length`` characters, adding an ellipsis if cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."


def format_file_size(num_bytes: int) -> str:
    """Human readable file size.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    value = float(num_bytes)
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"


def extract_display_metadata(result: SearchResult) -> Dict[str, Any]:
    """Attributes of a result worth listing besides title, scores and ids.

    Empty strings and null values are dropped.
    """
    return {
        key: value
        for key, value in result.to_dict().items()
        if key not in _DISPLAY_EXCLUDED and value is not None and value != ""
    }


class OutputFormatter:
    """Format output for CLI display.

    Provides consistent formatting for different types of CLI output,
    including success messages, errors, warnings, and structured data.

    Example:
        >>> out = OutputFormatter()
        >>> out.success("Reindex started")
        >>> out.error("Something went wrong")
        >>> out.stats({"processed": 100, "total": 250})
    """

    @staticmethod
    def success(message: str) -> None:
        """Display success message with checkmark.

        Args:
            message: Success message to display
        """
        click.echo(f"✓ {message}")

    @staticmethod
    def error(message: str, abort: bool = False) -> None:
        """Display error message.

        Args:
            message: Error message to display
            abort: Whether to abort command execution after displaying error
        """
        click.echo(f"❌ {message}", err=True)
        if abort:
            raise click.Abort()

    @staticmethod
    def warning(message: str) -> None:
        click.echo(f"⚠️  {message}")

    @staticmethod
    def info(message: str) -> None:
        click.echo(f"ℹ️  {message}")

    @staticmethod
    def section(title: str) -> None:
        click.echo(f"\n{title}")

    @staticmethod
    def stats(stats_dict: Dict[str, Any], indent: str = "   ") -> None:
        """Display statistics dictionary in key: value format.

        Args:
            stats_dict: Dictionary of statistics to display
            indent: Indentation string for each line
        """
        for key, value in stats_dict.items():
            click.echo(f"{indent}{key}: {value}")

    @staticmethod
    def list_items(items: List[str], indent: str = "   ", bullet: str = "-") -> None:
        for item in items:
            click.echo(f"{indent}{bullet} {item}")

    @staticmethod
    def progress_start(message: str) -> None:
        click.echo(f"\n🔍 {message}")

    @staticmethod
    def progress_bar(percentage: float, width: int = 30) -> str:
        """Render a text progress bar, e.g. ``[#####-----]  50.0%``."""
        percentage = max(0.0, min(100.0, percentage))
        filled = int(width * percentage / 100)
        return f"[{'#' * filled}{'-' * (width - filled)}] {percentage:5.1f}%"

    @staticmethod
    def next_steps(title: str, steps: List[str]) -> None:
        click.echo(f"\n{title}")
        for step in steps:
            click.echo(f"   - {step}")
