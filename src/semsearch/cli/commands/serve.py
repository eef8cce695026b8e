"""Serve command for starting API server."""

from __future__ import annotations

import click

from semsearch.utils.config import get_config
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)


@click.command(name="serve")
@click.option(
    "--host",
    default=None,
    help="Host to bind to (default: api.host from config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (default: api.port from config)",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (development mode)",
)
def serve_cmd(host, port, reload):
    """Start the semsearch HTTP API.

    The API consolidates backend search results the same way the CLI does
    and keeps per-session search state.

    \b
    Examples:
        # Start server
        semsearch serve

        # Custom host and port
        semsearch serve --host localhost --port 9000

        # Development mode with auto-reload
        semsearch serve --reload
    """
    import uvicorn

    config = get_config()
    host = host or config.get("api.host", "0.0.0.0")
    port = port or int(config.get("api.port", 8080))

    click.echo("🚀 Starting semsearch API server...")
    click.echo(f"   Host: {host}")
    click.echo(f"   Port: {port}")
    click.echo(f"   Backend: {config.get('backend.base_url')}")

    try:
        if reload:
            # Reload needs an import string; the factory reads the global config.
            uvicorn.run(
                "semsearch.api.server:create_app",
                factory=True,
                host=host,
                port=port,
                reload=True,
                log_level="info",
            )
        else:
            from semsearch.api.server import create_app

            uvicorn.run(create_app(config), host=host, port=port, log_level="info")
    except OSError as e:
        logger.error(f"Server failed: {e}")
        click.echo(f"❌ Server failed: {e}", err=True)
        raise click.Abort()
