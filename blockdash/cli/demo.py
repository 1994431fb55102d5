"""Demo command - drive the dashboard with a synthetic scan.

Generates block reports with log-normally distributed access times and a
configurable error rate, feeding them through the same
``open``/``handle_report``/``close`` contract a real scanner uses.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterator

import click
from rich.console import Console
from rich.table import Table

from blockdash import settings
from blockdash.cli.logging import configure_cli_logging
from blockdash.cli.rich_output import is_interactive, size_problem
from blockdash.core.stats import StatsState
from blockdash.exceptions import BlockdashError, ClockReadError
from blockdash.legend import Legend
from blockdash.models import (
    ERROR_KINDS,
    BlockReport,
    BlockStatus,
    DeviceInfo,
    RenderContext,
)
from blockdash.render.sliding_window import RENDERERS, get_renderer

logger = logging.getLogger(__name__)

# Log-normal parameters for a healthy disk: median ~1.6 ms, long right tail
_LATENCY_MU = 7.4
_LATENCY_SIGMA = 1.1


def synthetic_reports(
    end_lba: int,
    error_rate: float = 0.001,
    seed: int | None = None,
) -> Iterator[BlockReport]:
    """Yield one report per block from LBA 0 to ``end_lba - 1``."""
    rng = random.Random(seed)
    for lba in range(end_lba):
        if rng.random() < error_rate:
            status = rng.choice(ERROR_KINDS)
            access_time = rng.randint(500_000, 3_000_000)
        else:
            status = BlockStatus.OK
            access_time = int(rng.lognormvariate(_LATENCY_MU, _LATENCY_SIGMA))
        yield BlockReport(lba=lba, status=status, access_time=access_time)


def _print_summary(console: Console, legend: Legend, state: StatsState) -> None:
    table = Table(title="Scan Summary", show_header=True, padding=(0, 1))
    table.add_column("Band", no_wrap=True)
    table.add_column("Blocks", justify="right")
    counts = [*state.latency_counts, *state.error_counts[1:]]
    for glyph, count in zip(legend.rows(), counts, strict=True):
        table.add_row(f"[{glyph.style}]{glyph.char}[/] {glyph.label}", f"{count:,}")
    console.print(table)
    if state.dropped:
        console.print(f"  [yellow]{state.dropped:,} reports not displayed[/yellow]")


@click.command()
@click.option(
    "--capacity",
    type=click.IntRange(min=1),
    default=64 * 1024 * 1024,
    show_default=True,
    help="Simulated device capacity in bytes.",
)
@click.option(
    "--block-size",
    type=click.IntRange(min=1),
    default=4096,
    show_default=True,
    help="Bytes per block.",
)
@click.option(
    "--error-rate",
    type=click.FloatRange(0.0, 1.0),
    default=0.001,
    show_default=True,
    help="Fraction of blocks reported as errors.",
)
@click.option(
    "--delay-us",
    type=click.IntRange(min=0),
    default=50,
    show_default=True,
    help="Simulated per-block I/O delay in microseconds.",
)
@click.option("--seed", type=int, default=None, help="Random seed for the scan.")
@click.option(
    "--renderer",
    type=click.Choice(sorted(RENDERERS)),
    default="sliding_window",
    show_default=True,
)
@click.option("--no-wait", is_flag=True, help="Exit without waiting for a key press.")
@click.option("--verbose", "-v", is_flag=True, help="Log DEBUG records too.")
def demo(
    capacity: int,
    block_size: int,
    error_rate: float,
    delay_us: int,
    seed: int | None,
    renderer: str,
    no_wait: bool,
    verbose: bool,
) -> None:
    """Render a synthetic block-device scan.

    Press Ctrl+C to abort the scan; the dashboard reports it as aborted.
    """
    log_file = configure_cli_logging("demo", verbose=verbose)
    console = Console()
    interactive = is_interactive(console)
    try:
        legend_width = settings.get_legend_width()
    except ValueError as e:
        raise click.ClickException(f"Invalid setting: {e}") from e
    if problem := size_problem(console, legend_width):
        raise click.ClickException(problem)
    device = DeviceInfo(path="/dev/demo0", capacity=capacity, model="Synthetic Disk")
    ctx = RenderContext(device=device, block_size=block_size, procedure_name="demo")

    dash = get_renderer(
        renderer,
        console=console,
        legend_width=legend_width,
        wait_for_key=interactive and not no_wait,
        screen=interactive,
    )
    delay = delay_us / 1_000_000
    try:
        with dash.session(ctx):
            for report in synthetic_reports(ctx.end_lba, error_rate, seed):
                ctx.advance(report)
                dash.handle_report(ctx)
                if delay:
                    time.sleep(delay)
    except KeyboardInterrupt:
        logger.info("Scan interrupted after %d blocks", ctx.progress)
    except ClockReadError as e:
        logger.critical("Fatal clock failure: %s", e)
        raise click.ClickException(f"fatal: {e}") from e
    except BlockdashError as e:
        logger.error("Renderer failed: %s", e)
        raise click.ClickException(str(e)) from e

    if dash.aggregator is not None:
        _print_summary(console, dash.legend, dash.aggregator.state)
    console.print(f"  [dim]Log: {log_file}[/dim]")
