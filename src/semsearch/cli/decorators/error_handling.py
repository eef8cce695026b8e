"""Error handling decorators for CLI commands."""

from __future__ import annotations

import signal
import sys
from functools import wraps

import click

from semsearch.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    QueryValidationError,
    SearchError,
    TransportError,
)
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)

# Handle SIGPIPE gracefully (prevent BrokenPipeError when piping to head, etc.)
try:
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)
except AttributeError:
    # Windows doesn't have SIGPIPE
    pass


def handle_errors(f):
    """Decorator to handle common errors in CLI commands.

    Catches exceptions and displays user-friendly error messages,
    then aborts the command gracefully.

    Example:
        @click.command()
        @handle_errors
        def my_command():
            # Your command logic
            pass
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except click.Abort:
            raise
        except BrokenPipeError:
            devnull = open("/dev/null", "w")
            sys.stdout = devnull
            sys.stderr = devnull
            sys.exit(0)
        except QueryValidationError as e:
            click.echo(f"❌ Invalid search: {e.message}", err=True)
            raise click.Abort()
        except ConfigurationError as e:
            click.echo(f"❌ Invalid configuration: {e.message}", err=True)
            raise click.Abort()
        except TransportError as e:
            click.echo(f"❌ Search service unavailable: {e.message}", err=True)
            logger.debug("TransportError details", exc_info=True)
            raise click.Abort()
        except InvalidResponseError as e:
            click.echo(f"❌ Unexpected response from search service: {e.message}", err=True)
            logger.debug("InvalidResponseError details", exc_info=True)
            raise click.Abort()
        except SearchError as e:
            click.echo(f"❌ {e.message}", err=True)
            raise click.Abort()
        except FileNotFoundError as e:
            click.echo(f"❌ File not found: {e}", err=True)
            raise click.Abort()
        except PermissionError as e:
            click.echo(f"❌ Permission denied: {e}", err=True)
            raise click.Abort()
        except ValueError as e:
            click.echo(f"❌ Invalid value: {e}", err=True)
            logger.debug("ValueError details", exc_info=True)
            raise click.Abort()
        except Exception as e:
            click.echo(f"❌ Unexpected error: {e}", err=True)
            logger.exception("Unexpected error in command")
            raise click.Abort()

    return wrapper
