"""Main CLI entry point for bweb-log.

Defines the CLI group and registers all subcommands.

Commands:
    status   - Show reporters and whether they are enabled
    enable   - Enable a reporter
    disable  - Disable a reporter
    options  - Show the runtime options of an enabled reporter
    set      - Update runtime options of an enabled reporter

Subcommand help:
    bweb-log COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys

import click

from bweb_log import __version__
from bweb_log.constants import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT_SECONDS

from .api_client import ClientSettings
from .commands.reporters import disable, enable, options, set_options
from .commands.status import status


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--url",
    envvar="BWEB_LOG_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="Base URL of the server (env: BWEB_LOG_URL)",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_HTTP_TIMEOUT_SECONDS,
    show_default=True,
    help="Request timeout in seconds",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, url: str, timeout: float) -> None:
    """bweb-log: manage request reporters of a running server."""
    if version:
        click.echo(f"bweb-log {__version__}")
        sys.exit(0)
    ctx.obj = ClientSettings(url=url.rstrip("/"), timeout=timeout)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(status)
cli.add_command(enable)
cli.add_command(disable)
cli.add_command(options)
cli.add_command(set_options)


def main() -> None:
    """CLI entry point."""
    cli()
