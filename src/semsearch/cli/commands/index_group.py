"""Index management commands - reindex, status, progress, clear."""

from __future__ import annotations

import json

import click

from semsearch.cli.decorators import handle_errors, with_output_format
from semsearch.cli.handlers import IndexHandler
from semsearch.cli.output import OutputFormatter
from semsearch.core.reindex import PollerState
from semsearch.core.types import ReindexProgress
from semsearch.utils.config import get_config

out = OutputFormatter()


@click.group(name="index")
def index_group():
    """Manage the backend search index."""
    pass


def _print_progress(progress: ReindexProgress) -> None:
    current = f" {progress.current_content_type}" if progress.current_content_type else ""
    click.echo(
        f"   {out.progress_bar(progress.percentage)} "
        f"{progress.processed}/{progress.total}{current}"
    )


@index_group.command(name="reindex")
@click.option("--environment", "-e", help="CMS environment to index")
@click.option("--batch-size", type=click.IntRange(min=1), help="Entries per batch")
@click.option(
    "--content-type",
    "content_types",
    multiple=True,
    help="Only reindex this content type (repeatable)",
)
@click.option(
    "--watch/--no-watch",
    default=True,
    help="Follow progress until the reindex finishes (default: watch)",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0.1),
    help="Seconds between progress polls (default: reindex.poll_interval)",
)
@handle_errors
def reindex_cmd(environment, batch_size, content_types, watch, interval):
    """Rebuild the search index from the CMS.

    \b
    Examples:
        semsearch index reindex
        semsearch index reindex -e production --content-type product --no-watch
    """
    handler = IndexHandler(get_config())
    params = handler.default_params(
        environment=environment, batch_size=batch_size, content_types=content_types
    )

    out.progress_start("Starting reindex...")
    status, progress, poller = handler.reindex(
        params, watch=watch, interval=interval, on_progress=_print_progress
    )

    if not watch:
        out.success(status.message or f"Reindex {status.status}")
        out.next_steps("Next step:", ["Run 'semsearch index progress' to follow it"])
        return

    if poller.state is PollerState.COMPLETED:
        out.success(f"Reindex completed: {progress.processed} entries processed")
        if progress.duration is not None:
            out.stats({"Duration": f"{progress.duration}s"})
        if progress.errors:
            out.warning(f"{len(progress.errors)} errors during reindex")
            out.list_items(progress.errors)
        return

    out.error(f"Reindex {poller.state.value}: {poller.error}", abort=True)


@index_group.command(name="status")
@with_output_format
@handle_errors
def status_cmd(output_format):
    """Show index status and statistics."""
    status = IndexHandler(get_config()).status()

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "success": status.success,
                    "status": status.status,
                    "message": status.message,
                    "indexStats": status.index_stats,
                },
                indent=2,
            )
        )
        return

    out.section(f"📊 Index status: {status.status}")
    if status.message:
        out.info(status.message)
    if status.index_stats:
        out.stats(status.index_stats)


@index_group.command(name="progress")
@with_output_format
@handle_errors
def progress_cmd(output_format):
    """Show progress of the current reindex."""
    progress = IndexHandler(get_config()).progress()

    if output_format == "json":
        click.echo(json.dumps(progress.to_dict(), indent=2))
        return

    out.section(f"Reindex {progress.status}")
    _print_progress(progress)
    if progress.errors:
        out.list_items(progress.errors)


@index_group.command(name="clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@handle_errors
def clear_cmd(yes):
    """Delete every document from the search index."""
    if not yes:
        click.confirm("This removes all indexed content. Continue?", abort=True)

    result = IndexHandler(get_config()).clear()
    out.success(result.get("message") or "Index cleared")
