"""Tests for the single-producer/single-consumer report ring buffer."""

import threading

import pytest

from blockdash.core.ring_buffer import (
    INVALID_SEQNO,
    SENTINEL_SEQNO,
    ReportRingBuffer,
)
from blockdash.models import BlockReport


def _drain(ring: ReportRingBuffer) -> list[BlockReport | None]:
    return [ring.consume_report() for _ in range(ring.pending_count())]


class TestRingBufferBasics:
    """Counters, seeding and construction."""

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError, match="capacity"):
            ReportRingBuffer(0)

    def test_seed_resets_counters_and_marks_slot_zero(self, make_report):
        """Seeding leaves slot 0 with a seqno no reader will accept."""
        ring = ReportRingBuffer(8)
        ring.push(make_report(1))
        ring.seed()

        assert ring.write_seq == 0
        assert ring.read_seq == 0
        assert ring._slots[0].seqno == SENTINEL_SEQNO
        assert ring._slots[0].report is None

    def test_unwritten_seed_slot_is_not_consumed_as_valid(self):
        """Reading slot 0 before anything is published yields nothing."""
        ring = ReportRingBuffer(8)
        ring.seed()

        assert ring.consume_report() is None

    def test_pending_count_tracks_push_and_consume(self, make_report):
        ring = ReportRingBuffer(8)
        ring.seed()
        for lba in range(5):
            ring.push(make_report(lba))

        assert ring.pending_count() == 5
        assert len(ring) == 5
        ring.consume_report()
        assert ring.pending_count() == 4

    def test_reserve_invalidates_until_publish(self, make_report):
        """A slot being written carries the invalid seqno until published."""
        ring = ReportRingBuffer(4)
        ring.seed()
        entry = ring.reserve_for_write()

        assert entry.seqno == INVALID_SEQNO
        assert ring.pending_count() == 0

        entry.report = make_report(7)
        ring.publish(entry)

        assert entry.seqno == 0
        assert ring.pending_count() == 1
        assert ring.consume_report() == make_report(7)


class TestRingBufferOrdering:
    """FIFO delivery without gaps while the reader keeps up."""

    def test_reports_come_out_in_publication_order(self, make_report):
        ring = ReportRingBuffer(100)
        ring.seed()
        seen = []
        lba = 0
        for batch in (30, 100, 1, 57, 99):
            for _ in range(batch):
                ring.push(make_report(lba))
                lba += 1
            seen.extend(r.lba for r in _drain(ring))

        assert seen == list(range(lba))

    def test_slots_are_reused_after_wraparound(self, make_report):
        """Capacity 4 ring survives many laps with consumption in between."""
        ring = ReportRingBuffer(4)
        ring.seed()
        for lba in range(25):
            ring.push(make_report(lba))
            assert ring.consume_report().lba == lba

        assert ring.write_seq == ring.read_seq == 25

    def test_concurrent_producer_and_consumer(self, make_report):
        """Reader thread sees every report exactly once and in order."""
        ring = ReportRingBuffer(100_000)
        ring.seed()
        total = 20_000
        seen: list[int] = []
        done = threading.Event()

        def consumer():
            while not done.is_set() or ring.pending_count():
                for report in _drain(ring):
                    assert report is not None
                    seen.append(report.lba)

        thread = threading.Thread(target=consumer)
        thread.start()
        for lba in range(total):
            ring.push(make_report(lba))
        done.set()
        thread.join(timeout=30)

        assert seen == list(range(total))


class TestRingBufferOverrun:
    """Producer lapping the reader loses the oldest entries, never blocks."""

    def test_overrun_loses_exactly_the_excess(self, make_report):
        ring = ReportRingBuffer(10)
        ring.seed()
        for lba in range(15):
            ring.push(make_report(lba))

        lost = ring.skip_overrun()
        reports = _drain(ring)

        assert lost == 5
        assert [r.lba for r in reports] == list(range(5, 15))

    def test_no_overrun_within_capacity(self, make_report):
        ring = ReportRingBuffer(10)
        ring.seed()
        for lba in range(10):
            ring.push(make_report(lba))

        assert ring.skip_overrun() == 0
        assert ring.read_seq == 0

    def test_total_seen_plus_lost_equals_published(self, make_report):
        ring = ReportRingBuffer(16)
        ring.seed()
        seen = lost = 0
        for burst in (5, 40, 3, 100, 16, 17):
            for _ in range(burst):
                ring.push(make_report(ring.write_seq))
            lost += ring.skip_overrun()
            for report in _drain(ring):
                if report is None:
                    lost += 1
                else:
                    seen += 1

        assert seen + lost == ring.write_seq

    def test_slot_overwritten_during_read_is_rejected(self, make_report):
        """A slot the producer has reserved again no longer matches."""
        ring = ReportRingBuffer(4)
        ring.seed()
        for lba in range(4):
            ring.push(make_report(lba))
        # Producer laps onto slot 0 while the reader still expects seq 0
        ring.reserve_for_write()

        assert ring.consume_report() is None
        assert [r.lba for r in _drain(ring)] == [1, 2, 3]

    def test_slot_republished_with_newer_seqno_is_rejected(self, make_report):
        ring = ReportRingBuffer(2)
        ring.seed()
        for lba in range(3):
            ring.push(make_report(lba))

        # Slot 0 now holds seq 2; reading seq 0 from it must fail
        assert ring.consume_report() is None
