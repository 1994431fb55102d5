"""
Single-producer/single-consumer ring buffer for block reports.

The scan thread (producer) hands every ``BlockReport`` to the render thread
(consumer) through a fixed array of ``QueueEntry`` slots addressed by two
monotonically increasing sequence counters:

    write_seq   next sequence number to publish (producer only)
    read_seq    next sequence number to consume (consumer only)
    pending     write_seq - read_seq

No locks are taken.  Each counter has exactly one writer, and the producer
publishes in the order "invalidate slot → fill slot → stamp seqno →
advance write_seq".  Under CPython every one of those stores is a single
bytecode-level rebinding executed in program order, so the consumer can
never observe ``write_seq`` ahead of a slot's contents.  Adding a second
producer or consumer breaks this and needs real synchronisation.

The buffer never blocks.  If the producer gets more than ``capacity``
entries ahead, the oldest unread entries are overwritten: staleness is
bounded by ``capacity`` and the loss is reported by ``skip_overrun`` and
``consume_report`` rather than stalling the scan.

Usage:
    ring = ReportRingBuffer(capacity=100_000)
    ring.seed()

    # producer
    ring.push(report)

    # consumer
    for _ in range(ring.pending_count()):
        report = ring.consume_report()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from blockdash.models import BlockReport

logger = logging.getLogger(__name__)

# Marks a slot the producer is rewriting; never a valid sequence number
INVALID_SEQNO = -1
# Slot 0 is seeded with this so it cannot pass for the first published entry
SENTINEL_SEQNO = 1


@dataclass(slots=True)
class QueueEntry:
    """One ring slot: a report and the sequence number it was published as."""

    seqno: int = 0
    report: BlockReport | None = None


class ReportRingBuffer:
    """Fixed-capacity lock-free SPSC queue of ``BlockReport`` values."""

    def __init__(self, capacity: int = 100_000) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._slots = [QueueEntry() for _ in range(capacity)]
        self._write_seq = 0
        self._read_seq = 0

    @property
    def write_seq(self) -> int:
        return self._write_seq

    @property
    def read_seq(self) -> int:
        return self._read_seq

    def seed(self) -> None:
        """Reset both counters and mark slot 0 as not yet written.

        Must only be called while neither side is running.
        """
        self._write_seq = 0
        self._read_seq = 0
        self._slots[0].seqno = SENTINEL_SEQNO
        self._slots[0].report = None

    # ── Producer side ──

    def reserve_for_write(self) -> QueueEntry:
        """Return the slot for the next write, invalidated for the reader."""
        entry = self._slots[self._write_seq % self.capacity]
        entry.seqno = INVALID_SEQNO
        return entry

    def publish(self, entry: QueueEntry) -> None:
        """Stamp a filled slot and make it visible to the consumer."""
        entry.seqno = self._write_seq
        self._write_seq += 1

    def push(self, report: BlockReport) -> None:
        """Reserve, fill and publish in one step."""
        entry = self.reserve_for_write()
        entry.report = report
        self.publish(entry)

    # ── Consumer side ──

    def pending_count(self) -> int:
        """Entries published but not yet consumed (may exceed capacity)."""
        return self._write_seq - self._read_seq

    def consume(self) -> QueueEntry:
        """Return the slot at ``read_seq`` and advance past it."""
        entry = self._slots[self._read_seq % self.capacity]
        self._read_seq += 1
        return entry

    def consume_report(self) -> BlockReport | None:
        """Consume one entry, returning None if it was overwritten.

        The slot's seqno is checked before and after the report is read,
        so a producer lapping the reader mid-read is detected instead of
        yielding a report from the wrong sequence position.
        """
        expected = self._read_seq
        entry = self.consume()
        before = entry.seqno
        report = entry.report
        if before != expected or entry.seqno != expected:
            return None
        return report

    def skip_overrun(self) -> int:
        """Jump over entries the producer has already overwritten.

        Returns:
            Number of entries lost (0 when the reader is within capacity).
        """
        pending = self.pending_count()
        if pending <= self.capacity:
            return 0
        lost = pending - self.capacity
        self._read_seq += lost
        logger.debug(
            "Ring overrun: %d reports overwritten before being read (capacity %d)",
            lost,
            self.capacity,
        )
        return lost

    def __len__(self) -> int:
        return self.pending_count()
