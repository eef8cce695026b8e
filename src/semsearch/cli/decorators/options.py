"""Common CLI option decorators."""

from __future__ import annotations

import click


def with_output_format(f):
    """Add --format option to command.

    Example:
        @click.command()
        @with_output_format
        def my_command(output_format):
            pass
    """
    return click.option(
        "--format",
        "output_format",
        type=click.Choice(["text", "json"]),
        default="text",
        help="Output format (default: text)",
    )(f)


def with_content_types(f):
    """Add repeatable --content-type option to command."""
    return click.option(
        "--content-type",
        "content_types",
        multiple=True,
        help="Restrict results to a content type (repeatable)",
    )(f)


def with_ranking_options(f):
    """Add threshold and cap overrides: --min-similarity, --min-rerank, --max-results.

    Example:
        @click.command()
        @with_ranking_options
        def my_command(min_similarity, min_rerank, max_results):
            pass
    """
    f = click.option(
        "--max-results",
        "-n",
        type=click.IntRange(min=1),
        help="Maximum number of results to show (default: per mode from config)",
    )(f)
    f = click.option(
        "--min-rerank",
        type=float,
        help="Minimum rerank score (default: ranking.min_rerank)",
    )(f)
    f = click.option(
        "--min-similarity",
        type=float,
        help="Minimum similarity score (default: ranking.min_similarity)",
    )(f)
    return f
