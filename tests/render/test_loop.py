"""Tests for the fixed-rate render loop."""

import pytest

from blockdash.core.ring_buffer import ReportRingBuffer
from blockdash.core.stats import ProgressEstimate, StatsAggregator
from blockdash.exceptions import RenderLoopError
from blockdash.models import BlockStatus
from blockdash.render.canvas import Canvas
from blockdash.render.loop import RenderLoop, RenderState


@pytest.fixture
def canvas(console, legend):
    canvas = Canvas(legend, console=console)
    canvas.open()
    yield canvas
    canvas.close()


@pytest.fixture
def ring():
    ring = ReportRingBuffer(1_000)
    ring.seed()
    return ring


@pytest.fixture
def loop(ring, legend, canvas):
    return RenderLoop(ring, StatsAggregator(legend), canvas, interval=0.005)


class TestDrain:
    """Single-threaded drain and tick."""

    def test_drain_consumes_everything_pending(self, loop, ring, make_report):
        for lba in range(50):
            ring.push(make_report(lba))

        assert loop.drain() == 50
        assert ring.pending_count() == 0
        assert loop.aggregator.state.processed == 50
        assert loop.canvas.region("vis").cells == 50

    def test_drain_counts_overrun_as_dropped(self, legend, canvas, make_report):
        ring = ReportRingBuffer(10)
        ring.seed()
        loop = RenderLoop(ring, StatsAggregator(legend), canvas)
        for lba in range(25):
            ring.push(make_report(lba))

        assert loop.drain() == 10
        assert loop.aggregator.state.dropped == 15
        assert loop.aggregator.state.processed == 10

    def test_tick_copies_latest_estimate(self, ring, legend, canvas):
        estimate = ProgressEstimate(current_lba=77, avg_speed=4096, eta_seconds=3)
        loop = RenderLoop(
            ring, StatsAggregator(legend), canvas, estimate=lambda: estimate
        )
        loop.tick()

        assert loop.aggregator.state.current_lba == 77
        assert canvas.text("speed") == "SPEED       4 kb/s"
        assert loop.ticks == 1

    def test_idle_tick_does_not_refresh(self, loop, ring, make_report, monkeypatch):
        ring.push(make_report(1))
        loop.tick()
        refreshes = []
        monkeypatch.setattr(loop.canvas._live, "refresh", lambda: refreshes.append(1))

        assert loop.tick() == 0
        assert refreshes == []

        ring.push(make_report(2))
        loop.tick()
        assert refreshes == [1]

    def test_rejects_non_positive_interval(self, ring, legend, canvas):
        with pytest.raises(ValueError, match="interval"):
            RenderLoop(ring, StatsAggregator(legend), canvas, interval=0)


class TestRenderThread:
    """Thread lifecycle: idle → running → draining → terminated."""

    def test_state_transitions(self, loop):
        assert loop.state is RenderState.idle
        loop.start()
        assert loop.state in (RenderState.running, RenderState.draining)
        loop.hangup()
        loop.join()

        assert loop.state is RenderState.terminated
        assert not loop.alive
        assert loop.hangup_requested

    def test_reports_pushed_before_hangup_are_all_drawn(self, loop, ring, make_report):
        """The final drain picks up whatever was enqueued before hangup."""
        loop.start()
        for lba in range(500):
            ring.push(make_report(lba, status=BlockStatus(lba % 2)))
        loop.hangup()
        loop.join()

        state = loop.aggregator.state
        assert state.processed == 500
        assert state.ok_count == 250
        assert state.error_counts[BlockStatus.ERROR] == 250
        assert ring.pending_count() == 0

    def test_hangup_before_first_tick_still_drains(self, loop, ring, make_report):
        for lba in range(20):
            ring.push(make_report(lba))
        loop.hangup()
        loop.start()
        loop.join()

        assert loop.aggregator.state.processed == 20
        assert loop.ticks == 1

    def test_start_twice_raises(self, loop):
        loop.start()
        try:
            with pytest.raises(RenderLoopError, match="already started"):
                loop.start()
        finally:
            loop.hangup()
            loop.join()

    def test_thread_failure_surfaces_on_join(self, loop, monkeypatch):
        def broken_commit():
            raise RuntimeError("terminal gone")

        monkeypatch.setattr(loop.canvas, "commit", broken_commit)
        loop.start()
        loop.hangup()

        with pytest.raises(RenderLoopError, match="terminal gone"):
            loop.join()
        assert loop.state is RenderState.terminated
        assert isinstance(loop.error, RuntimeError)
