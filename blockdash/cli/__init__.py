"""CLI interface for blockdash."""

import logging

import click

from blockdash import __version__

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show the blockdash version and exit.",
)
@click.pass_context
def main(ctx: click.Context, version: bool) -> None:
    """Blockdash - live terminal dashboard for block-device scans.

    \b
      blockdash demo              Render a synthetic scan
      blockdash demo --no-wait    Exit without waiting for a key press
    """
    if version:
        click.echo(__version__)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def register_commands() -> None:
    """Register all commands with the main CLI."""
    from blockdash.cli.config_cli import config
    from blockdash.cli.demo import demo

    main.add_command(demo)
    main.add_command(config)


# Register commands at import time
register_commands()

__all__ = ["main"]
