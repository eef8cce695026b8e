"""Analytics and lookup commands."""

from __future__ import annotations

import json

import click

from semsearch.cli.decorators import handle_errors, with_output_format
from semsearch.cli.handlers import AnalyticsHandler, SearchHandler
from semsearch.cli.output import OutputFormatter, truncate_text
from semsearch.utils.config import get_config

out = OutputFormatter()


@click.command(name="analytics")
@click.option(
    "--days",
    "-d",
    type=click.IntRange(min=1),
    default=7,
    help="Reporting period in days (default: 7)",
)
@with_output_format
@handle_errors
def analytics_cmd(days, output_format):
    """Show search usage and index statistics.

    \b
    Examples:
        semsearch analytics
        semsearch analytics --days 30 --format json
    """
    report = AnalyticsHandler(get_config()).dashboard(days)

    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    out.section(f"📈 Search analytics (last {report.days} days)")
    stats = report.stats
    out.stats(
        {
            "Total searches": stats.get("totalSearches", 0),
            "Successful": stats.get("successfulSearches", 0),
            "Success rate": f"{report.success_rate:.1%}",
            "Avg response time": f"{stats.get('averageResponseTime', 0)}ms",
            "Avg results": stats.get("averageResultsCount", 0),
        }
    )

    if report.popular_queries:
        out.section("Popular queries:")
        out.list_items(
            [f"{q.get('query')} ({q.get('count', 0)})" for q in report.popular_queries]
        )

    if report.index_info:
        out.section("Index:")
        out.stats(report.index_info)

    if report.capabilities:
        out.section("Capabilities:")
        out.list_items(
            [
                f"{'✓' if enabled else '✗'} {name}"
                for name, enabled in report.capabilities.items()
            ]
        )


@click.command(name="content-types")
@with_output_format
@handle_errors
def content_types_cmd(output_format):
    """List the content types known to the backend."""
    content_types = SearchHandler(get_config()).content_types()

    if output_format == "json":
        click.echo(
            json.dumps(
                [
                    {
                        "uid": ct.uid,
                        "title": ct.title,
                        "description": ct.description,
                        "fields": len(ct.schema),
                    }
                    for ct in content_types
                ],
                indent=2,
            )
        )
        return

    if not content_types:
        out.warning("No content types found")
        return

    out.success(f"{len(content_types)} content types:")
    for ct in content_types:
        description = f" - {truncate_text(ct.description, 80)}" if ct.description else ""
        click.echo(f"   {ct.uid}: {ct.title}{description}")
