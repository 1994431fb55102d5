"""
Fixed-rate render loop: the consumer side of the report hand-off.

A dedicated thread wakes every ``interval`` seconds (40 ms, 25 Hz by
default), drains everything pending in the ring buffer through the stats
aggregator onto the canvas, commits one refresh and goes back to sleep.
It never waits on the queue itself, so an idle scan costs one empty tick.

State machine::

    idle ──start()──▶ running ──hangup()──▶ draining ──▶ terminated

The hangup flag is a ``threading.Event``; waiting on it doubles as the tick
timer, so shutdown does not have to sit out a full interval.  After hangup
exactly one more drain runs so reports enqueued before shutdown are shown.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum

from blockdash.core.ring_buffer import ReportRingBuffer
from blockdash.core.stats import ProgressEstimate, StatsAggregator
from blockdash.exceptions import RenderLoopError
from blockdash.render.canvas import Canvas

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.04


class RenderState(str, Enum):
    """Lifecycle state of the render thread."""

    idle = "idle"  # Created, thread not started
    running = "running"  # Ticking at the fixed rate
    draining = "draining"  # Hangup seen, flushing the last reports
    terminated = "terminated"  # Thread has exited


class RenderLoop:
    """Periodic consumer that moves reports from the ring onto the canvas.

    Args:
        ring: Hand-off buffer filled by the scan thread.
        aggregator: Stats owned by this loop from ``start`` until ``join``.
        canvas: Open canvas painted by this loop from ``start`` until ``join``.
        estimate: Callable returning the producer's latest progress estimate.
        interval: Seconds between ticks.
    """

    def __init__(
        self,
        ring: ReportRingBuffer,
        aggregator: StatsAggregator,
        canvas: Canvas,
        estimate: Callable[[], ProgressEstimate] | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.ring = ring
        self.aggregator = aggregator
        self.canvas = canvas
        self.interval = interval
        self._estimate = estimate
        self._hangup = threading.Event()
        self._thread: threading.Thread | None = None
        self.state = RenderState.idle
        self.ticks = 0
        self.error: BaseException | None = None

    # ── Lifecycle ──

    def start(self) -> None:
        """Spawn the render thread.

        Raises:
            RenderLoopError: The loop was already started.
        """
        if self._thread is not None:
            raise RenderLoopError("render loop already started")
        self._thread = threading.Thread(
            target=self._run, name="blockdash-render", daemon=True
        )
        self.state = RenderState.running
        try:
            self._thread.start()
        except RuntimeError:
            self.state = RenderState.terminated
            raise

    def hangup(self) -> None:
        """Ask the loop to flush remaining reports and exit."""
        self._hangup.set()

    @property
    def hangup_requested(self) -> bool:
        return self._hangup.is_set()

    def join(self) -> None:
        """Wait for the render thread to exit.

        Raises:
            RenderLoopError: The thread died with an exception.
        """
        if self._thread is not None:
            self._thread.join()
        if self.error is not None:
            raise RenderLoopError(
                f"render thread failed: {self.error!r}"
            ) from self.error

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        try:
            while not self._hangup.is_set():
                self.tick()
                self._hangup.wait(self.interval)
            self.state = RenderState.draining
            self.tick()
        except Exception as e:
            logger.exception("Render thread crashed")
            self.error = e
        finally:
            self.state = RenderState.terminated

    # ── Work ──

    def drain(self) -> int:
        """Move every pending report through the aggregator onto the canvas.

        Returns:
            Number of reports consumed (overwritten entries excluded).
        """
        ring = self.ring
        lost = ring.skip_overrun()
        consumed = 0
        for _ in range(ring.pending_count()):
            report = ring.consume_report()
            if report is None:
                lost += 1
                continue
            self.canvas.push_glyph(self.aggregator.record(report))
            consumed += 1
        self.aggregator.record_dropped(lost)
        return consumed

    def tick(self) -> int:
        """One render pass: drain, update readouts, commit once."""
        consumed = self.drain()
        if self._estimate is not None:
            self.aggregator.update_progress(self._estimate())
        self.canvas.paint_stats(self.aggregator.state)
        self.canvas.pump_log()
        self.canvas.commit()
        self.ticks += 1
        return consumed
