"""CLI entry point for semsearch."""

from __future__ import annotations

import click

from semsearch import __version__
from semsearch.cli.commands import analytics, index_group, search_group, serve
from semsearch.utils.config import get_config, load_config
from semsearch.utils.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to config.yml file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: logging.level from config)",
)
@click.option(
    "--api-url",
    envvar="SEMSEARCH_API_URL",
    help="Search backend base URL (overrides backend.base_url)",
)
@click.pass_context
def cli(ctx, config, log_level, api_url):
    """semsearch - semantic and hybrid content search from the command line.

    \b
    Examples:
        # Semantic search
        semsearch search text "waterproof hiking boots"

        # Image search with a local file
        semsearch search image ./photos/boot.jpg

        # Text + image, weighted 50/50
        semsearch search hybrid --text "boots" --image ./boot.jpg --text-weight 0.5

        # Rebuild the index and follow progress
        semsearch index reindex

        # Usage statistics for the last 30 days
        semsearch analytics --days 30
    """
    ctx.ensure_object(dict)

    cfg = load_config(config) if config else get_config()
    if api_url:
        cfg.set("backend.base_url", api_url)
    ctx.obj["config"] = cfg

    setup_logging(
        level=log_level or cfg.get("logging.level", "INFO"),
        log_file=cfg.get("logging.file"),
    )


# Register command groups
cli.add_command(search_group.search_group)
cli.add_command(index_group.index_group)
cli.add_command(analytics.analytics_cmd)
cli.add_command(analytics.content_types_cmd)
cli.add_command(serve.serve_cmd)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
