"""Producer/consumer hand-off and statistics aggregation."""

from blockdash.core.ring_buffer import QueueEntry, ReportRingBuffer
from blockdash.core.stats import (
    ProgressEstimate,
    SpeedEstimator,
    StatsAggregator,
    StatsState,
)

__all__ = [
    "ProgressEstimate",
    "QueueEntry",
    "ReportRingBuffer",
    "SpeedEstimator",
    "StatsAggregator",
    "StatsState",
]
