"""Config command - show the effective renderer settings."""

import click
from rich.console import Console
from rich.table import Table

from blockdash import settings
from blockdash.legend import format_latency

console = Console()


@click.command()
def config() -> None:
    """Show effective renderer settings and where they come from.

    Values resolve as BLOCKDASH_* env var, then [tool.blockdash] in
    pyproject.toml, then the built-in default.
    """
    try:
        rows = [
            ("render-interval", f"{settings.get_render_interval():g}s"),
            ("ring-capacity", f"{settings.get_ring_capacity():,}"),
            ("speed-sample-every", str(settings.get_speed_sample_every())),
            (
                "latency-thresholds",
                ", ".join(format_latency(t) for t in settings.get_latency_thresholds()),
            ),
            ("legend-width", str(settings.get_legend_width())),
        ]
    except ValueError as e:
        raise click.ClickException(f"Invalid setting: {e}") from e

    table = Table(title="Renderer Settings")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)
