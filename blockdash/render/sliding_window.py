"""
Sliding-window renderer: the host-facing lifecycle of the dashboard.

The scanning host drives a renderer through three entry points:

    open(ctx)            once, before the scan starts
    handle_report(ctx)   once per processed block, on the scan thread
    close(ctx)           once, after the scan ends or is interrupted

``handle_report`` only updates the speed estimate and pushes the report into
the ring buffer; everything visual happens on the render thread.  ``close``
joins that thread before touching the canvas again and only then releases
the canvas.

Usage:
    renderer = SlidingWindowRenderer()
    ctx = RenderContext(device=DeviceInfo("/dev/sdb", capacity), block_size=512)
    with renderer.session(ctx):
        for report in scan():
            ctx.advance(report)
            renderer.handle_report(ctx)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager

import click
from rich.console import Console

from blockdash import settings
from blockdash.core.ring_buffer import ReportRingBuffer
from blockdash.core.stats import SpeedEstimator, StatsAggregator, monotonic_ms
from blockdash.exceptions import (
    RendererStartupError,
    RendererStateError,
    RenderLoopError,
)
from blockdash.legend import Legend, default_legend
from blockdash.models import RenderContext
from blockdash.render.canvas import Canvas
from blockdash.render.format import clip_path, format_bytes, format_time
from blockdash.render.loop import RenderLoop

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "blockdash"


class SlidingWindowRenderer:
    """Scrolling glyph-strip dashboard fed by a lock-free report queue.

    Every argument left as None falls back to ``blockdash.settings``.

    Args:
        console: Console to render on.
        legend: Glyph legend and latency thresholds.
        ring_capacity: Report slots in the hand-off ring.
        interval: Seconds between render ticks.
        sample_every: Recompute speed/ETA on every Nth report.
        legend_width: Columns reserved for the side panel.
        clock: Monotonic millisecond clock (injectable for tests).
        key_reader: Blocks for one key press at close.
        wait_for_key: Skip the final key press when False.
        screen: Render on the alternate screen.
    """

    name = "sliding_window"

    def __init__(
        self,
        console: Console | None = None,
        legend: Legend | None = None,
        *,
        ring_capacity: int | None = None,
        interval: float | None = None,
        sample_every: int | None = None,
        legend_width: int | None = None,
        clock: Callable[[], int] = monotonic_ms,
        key_reader: Callable[[], object] = click.getchar,
        wait_for_key: bool = True,
        screen: bool = False,
    ) -> None:
        self.console = console or Console()
        self.legend = legend or default_legend()
        self.ring_capacity = ring_capacity or settings.get_ring_capacity()
        self.interval = interval or settings.get_render_interval()
        self.sample_every = sample_every or settings.get_speed_sample_every()
        self.legend_width = legend_width or settings.get_legend_width()
        self.clock = clock
        self.key_reader = key_reader
        self.wait_for_key = wait_for_key
        self.screen = screen

        self.canvas: Canvas | None = None
        self.ring: ReportRingBuffer | None = None
        self.estimator: SpeedEstimator | None = None
        self.aggregator: StatsAggregator | None = None
        self.loop: RenderLoop | None = None
        self._opened = False
        self._closed = False

    # ── Entry points ──

    def open(self, ctx: RenderContext) -> None:
        """Allocate the canvas, paint static panels and start rendering.

        Raises:
            RendererStateError: Called twice.
            RendererStartupError: Canvas or render thread could not start.
                Anything already allocated is released first.
        """
        if self._opened:
            raise RendererStateError("renderer already opened")
        self._opened = True

        with ExitStack() as stack:
            canvas = Canvas(
                self.legend,
                console=self.console,
                legend_width=self.legend_width,
                screen=self.screen,
            )
            canvas.open()
            stack.callback(canvas.close)
            self._attach_log_strip(canvas)
            stack.callback(self._detach_log_strip, canvas)

            self._paint_static(canvas, ctx)
            canvas.commit()

            ring = ReportRingBuffer(self.ring_capacity)
            ring.seed()
            estimator = SpeedEstimator(
                ctx.device.capacity,
                ctx.block_size,
                clock=self.clock,
                sample_every=self.sample_every,
            )
            aggregator = StatsAggregator(self.legend)
            loop = RenderLoop(
                ring,
                aggregator,
                canvas,
                estimate=lambda: estimator.estimate,
                interval=self.interval,
            )
            try:
                loop.start()
            except (RuntimeError, RenderLoopError) as e:
                raise RendererStartupError(f"cannot start render thread: {e}") from e
            self.canvas, self.ring = canvas, ring
            self.estimator, self.aggregator = estimator, aggregator
            self.loop = loop
            stack.pop_all()

        logger.info(
            "Scanning %s (%s, bs=%d)",
            ctx.device.path,
            format_bytes(ctx.device.capacity),
            ctx.block_size,
        )

    def handle_report(self, ctx: RenderContext) -> None:
        """Queue the context's current report for rendering.

        Runs on the scan thread: never blocks on the render thread.

        Raises:
            RendererStateError: Renderer is not open.
            ClockReadError: Monotonic clock failed (fatal).
        """
        ring, estimator = self.ring, self.estimator
        if ring is None or estimator is None or self._closed:
            raise RendererStateError("handle_report called on a renderer not open")
        report = ctx.report
        if report is None:
            raise ValueError("RenderContext.report is not set")
        estimator.update(ctx.progress, report.lba)
        ring.push(report)

    def close(self, ctx: RenderContext) -> None:
        """Flush, show the outcome, wait for a key and release the canvas.

        Calling close again is a no-op.

        Raises:
            RendererStateError: Renderer was never opened.
            RenderLoopError: Render thread crashed (canvas still released).
        """
        if self._closed:
            return
        loop, canvas = self.loop, self.canvas
        if loop is None or canvas is None:
            raise RendererStateError("close called on a renderer not open")
        self._closed = True

        loop.hangup()
        try:
            loop.join()
            self._paint_outcome(canvas, ctx)
            canvas.commit()
            canvas.bell()
            if self.wait_for_key:
                self.key_reader()
        finally:
            self._detach_log_strip(canvas)
            canvas.close()

    @contextmanager
    def session(self, ctx: RenderContext) -> Iterator[SlidingWindowRenderer]:
        """Open for the duration of a block; an escaping exception marks the
        scan as interrupted before close.

        A render thread failure found while closing after such an exception
        is logged, and the host's exception keeps propagating.
        """
        self.open(ctx)
        try:
            yield self
        except BaseException:
            ctx.interrupted = True
            try:
                self.close(ctx)
            except RenderLoopError:
                logger.exception("Render thread failed during an aborted scan")
            raise
        self.close(ctx)

    # ── Helpers ──

    @property
    def is_open(self) -> bool:
        return self.loop is not None and not self._closed

    def _paint_static(self, canvas: Canvas, ctx: RenderContext) -> None:
        device = ctx.device
        canvas.paint_title(
            f"{device.model or device.path}  {format_bytes(device.capacity)}"
        )
        canvas.paint_legend()
        canvas.paint_end_lba(ctx.end_lba)
        canvas.summary_line(
            f"{ctx.procedure_name} {clip_path(device.path, self.legend_width - 16)} "
            f"bs={ctx.block_size}",
            style="bold",
        )
        canvas.summary_line("Ctrl+C to abort", style="dim")

    def _paint_outcome(self, canvas: Canvas, ctx: RenderContext) -> None:
        assert self.aggregator is not None
        state = self.aggregator.state
        if ctx.interrupted:
            canvas.summary_line("Aborted.", style="bold yellow")
        else:
            canvas.summary_line("Completed.", style="bold green")
        if state.start_time_ms is not None:
            elapsed = (self.clock() - state.start_time_ms) / 1000
            canvas.summary_line(
                f"{state.processed:,} blocks in {format_time(elapsed)}", style="dim"
            )
        if state.dropped:
            logger.debug("%d reports dropped by ring overrun", state.dropped)
        canvas.summary_line("Press any key", style="bold")

    def _attach_log_strip(self, canvas: Canvas) -> None:
        logging.getLogger(PACKAGE_LOGGER).addHandler(canvas.log_handler)

    def _detach_log_strip(self, canvas: Canvas) -> None:
        logging.getLogger(PACKAGE_LOGGER).removeHandler(canvas.log_handler)


RENDERERS: dict[str, type[SlidingWindowRenderer]] = {
    SlidingWindowRenderer.name: SlidingWindowRenderer,
}


def get_renderer(name: str, **kwargs) -> SlidingWindowRenderer:
    """Instantiate a registered renderer by name."""
    try:
        cls = RENDERERS[name]
    except KeyError:
        available = ", ".join(sorted(RENDERERS))
        raise ValueError(f"Unknown renderer '{name}'. Available: {available}") from None
    return cls(**kwargs)
