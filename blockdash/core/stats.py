"""
Scan statistics: latency histogram, error counters, throughput and ETA.

Two halves with different owners:

- ``SpeedEstimator`` runs on the producer (scan) thread inside
  ``handle_report``.  It is gated to recompute only every Nth report and
  publishes an immutable ``ProgressEstimate`` by rebinding one attribute.
- ``StatsAggregator`` runs on the render thread only.  It classifies each
  consumed report and copies the latest estimate for display.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from blockdash.exceptions import ClockReadError
from blockdash.legend import Glyph, Legend
from blockdash.models import BlockReport, BlockStatus


def monotonic_ms() -> int:
    """Milliseconds from the monotonic clock."""
    return time.monotonic_ns() // 1_000_000


# =============================================================================
# Producer side: speed and ETA
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProgressEstimate:
    """Snapshot of scan position and throughput.

    ``avg_speed`` (bytes/s) and ``eta_seconds`` stay 0 until first computed.
    """

    current_lba: int = 0
    avg_speed: int = 0
    eta_seconds: int = 0
    start_time_ms: int | None = None


class SpeedEstimator:
    """Average throughput and remaining time from the report stream.

    The first report starts the clock.  Every ``sample_every``-th report
    recomputes::

        bytes_processed = min(lba * block_size, capacity)
        avg_speed       = bytes_processed * 1000 / elapsed_ms
        eta_seconds     = capacity / avg_speed - elapsed_ms / 1000

    Between samples (and when ``elapsed_ms`` is 0) the previous values are
    kept rather than reset.

    Args:
        capacity: Device capacity in bytes.
        block_size: Bytes per LBA unit.
        clock: Callable returning monotonic milliseconds.
        sample_every: Recompute on every Nth report.
    """

    def __init__(
        self,
        capacity: int,
        block_size: int,
        clock: Callable[[], int] = monotonic_ms,
        sample_every: int = 10,
    ) -> None:
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        if sample_every <= 0:
            raise ValueError(f"sample_every must be positive, got {sample_every}")
        self.capacity = capacity
        self.block_size = block_size
        self.sample_every = sample_every
        self._clock = clock
        self.estimate = ProgressEstimate()

    def _read_clock(self) -> int:
        try:
            return self._clock()
        except OSError as e:
            raise ClockReadError(f"monotonic clock read failed: {e}") from e

    def bytes_processed(self, lba: int) -> int:
        return min(lba * self.block_size, self.capacity)

    def update(self, progress: int, lba: int) -> ProgressEstimate:
        """Fold in the report numbered ``progress`` (1-based) at ``lba``."""
        prev = self.estimate
        start = prev.start_time_ms
        avg_speed = prev.avg_speed
        eta = prev.eta_seconds

        if progress == 1:
            start = self._read_clock()
        elif progress % self.sample_every == 0 and start is not None:
            elapsed_ms = self._read_clock() - start
            if elapsed_ms > 0:
                avg_speed = self.bytes_processed(lba) * 1000 // elapsed_ms
                if avg_speed > 0:
                    # capacity / speed = total time = elapsed + eta
                    eta = max(0, self.capacity // avg_speed - elapsed_ms // 1000)

        # Single reference rebind: the render thread sees old or new, never mixed
        self.estimate = ProgressEstimate(
            current_lba=lba,
            avg_speed=avg_speed,
            eta_seconds=eta,
            start_time_ms=start,
        )
        return self.estimate


# =============================================================================
# Consumer side: histogram and error counters
# =============================================================================


@dataclass
class StatsState:
    """Running totals shown on the dashboard.  Written by the render thread."""

    latency_counts: list[int] = field(default_factory=lambda: [0] * 6)
    error_counts: list[int] = field(default_factory=lambda: [0] * len(BlockStatus))
    avg_speed: int = 0
    eta_seconds: int = 0
    current_lba: int = 0
    start_time_ms: int | None = None
    processed: int = 0
    dropped: int = 0

    @property
    def ok_count(self) -> int:
        return sum(self.latency_counts)

    @property
    def error_count(self) -> int:
        return sum(self.error_counts)


class StatsAggregator:
    """Classify consumed reports into latency bands and error kinds."""

    def __init__(self, legend: Legend) -> None:
        self.legend = legend
        self.state = StatsState(latency_counts=[0] * legend.band_count)

    def bucket_for(self, access_time: int) -> int:
        """Index of the first band whose threshold exceeds ``access_time``.

        Returns the overflow band index when no threshold does.
        """
        for i, threshold in enumerate(self.legend.thresholds):
            if access_time < threshold:
                return i
        return len(self.legend.thresholds)

    def record(self, report: BlockReport) -> Glyph:
        """Count one report and return the glyph to paint for it."""
        self.state.processed += 1
        if report.status.is_error:
            self.state.error_counts[report.status] += 1
            return self.legend.error_glyphs[report.status]
        band = self.bucket_for(report.access_time)
        self.state.latency_counts[band] += 1
        return self.legend.latency_glyphs[band]

    def totals(self) -> tuple[int, int]:
        """(OK count, error count) over everything recorded so far."""
        return self.state.ok_count, self.state.error_count

    def record_dropped(self, count: int) -> None:
        """Account for reports lost to ring overrun."""
        if count > 0:
            self.state.dropped += count

    def update_progress(self, estimate: ProgressEstimate) -> None:
        """Copy the producer's latest estimate for display."""
        self.state.current_lba = estimate.current_lba
        self.state.avg_speed = estimate.avg_speed
        self.state.eta_seconds = estimate.eta_seconds
        self.state.start_time_ms = estimate.start_time_ms
