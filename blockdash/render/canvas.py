"""
Terminal canvas for the sliding-window dashboard.

The canvas owns a fixed set of named regions laid out with
``rich.layout.Layout`` and sized from the console at ``open`` time:

    ┌──────────────────────────── top ─────────────────────────────┐
    │ title                       cur_lba   end_lba   eta          │
    ├──────────────────────────────────────────┬───────────────────┤
    │ vis (scrolling glyph strip)              │ speed             │
    │                                          │ legend │ stats    │
    │                                          │ summary           │
    ├──────────────────────────────────────────┴───────────────────┤
    │ log (last two messages)                                      │
    └──────────────────────────────────────────────────────────────┘

Painting only stages content and marks a region dirty.  ``commit`` pushes
every dirty region into the layout and performs one ``Live.refresh``, so a
tick reaches the terminal as a single flush.

All painting happens on one thread at a time: the host thread before the
render loop starts and after it is joined, the render thread in between.
"""

from __future__ import annotations

import logging
import queue
from collections import deque
from dataclasses import dataclass, field
from typing import cast

from rich.console import Console, RenderableType
from rich.errors import LiveError
from rich.layout import Layout
from rich.live import Live
from rich.text import Text

from blockdash.core.stats import StatsState
from blockdash.exceptions import CanvasAllocationError
from blockdash.legend import Glyph, Legend
from blockdash.render.format import format_eta, format_lba, format_speed

logger = logging.getLogger(__name__)

TOP_HEIGHT = 1
LOG_HEIGHT = 2
LBA_WIDTH = 20
LEGEND_ROWS = 11  # 6 latency bands + 5 error kinds
# Header, banner and the three outcome lines painted by close
SUMMARY_ROWS = 5
MIN_HEIGHT = TOP_HEIGHT + LOG_HEIGHT + LEGEND_ROWS + 2 + SUMMARY_ROWS


def minimum_size(legend_width: int) -> tuple[int, int]:
    """Smallest console (columns, rows) a canvas can be allocated on."""
    return legend_width + 2 * LBA_WIDTH + 1, MIN_HEIGHT


REGION_NAMES = (
    "title",
    "cur_lba",
    "end_lba",
    "eta",
    "vis",
    "speed",
    "legend",
    "stats",
    "summary",
    "log",
)


# =============================================================================
# Regions
# =============================================================================


@dataclass
class Region:
    """A named rectangle of the canvas with staged content."""

    name: str
    width: int
    height: int
    content: RenderableType = ""
    dirty: bool = True

    def paint(self, content: RenderableType) -> None:
        """Stage new content; it reaches the terminal on the next commit."""
        self.content = content
        self.dirty = True

    def update(self, content: Text) -> bool:
        """Stage ``content`` only if it differs from what is staged."""
        if content == self.content:
            return False
        self.paint(content)
        return True

    def render(self) -> RenderableType:
        return self.content


@dataclass
class ScrollRegion(Region):
    """Region that appends lines and scrolls once it is full."""

    lines: deque = field(default_factory=deque)

    def __post_init__(self) -> None:
        self.lines = deque(maxlen=max(1, self.height))

    def append(self, line: Text | str) -> None:
        self.lines.append(line if isinstance(line, Text) else Text(line))
        self.dirty = True

    def render(self) -> RenderableType:
        return Text("\n").join(self.lines)


@dataclass
class VisStrip(ScrollRegion):
    """Glyph strip: one cell per block, left to right, scrolling when full."""

    _row: Text = field(default_factory=Text)
    _row_len: int = 0

    def push(self, glyph: Glyph) -> None:
        if self._row_len >= self.width:
            self.lines.append(self._row)
            self._row = Text()
            self._row_len = 0
        self._row.append(glyph.char, style=glyph.style)
        self._row_len += 1
        self.dirty = True

    @property
    def cells(self) -> int:
        """Glyphs currently on screen."""
        return sum(len(line) for line in self.lines) + self._row_len

    def render(self) -> RenderableType:
        # Completed rows plus the row being filled, at most ``height`` rows
        rows = list(self.lines)[-(self.height - 1) :] if self.height > 1 else []
        return Text("\n").join([*rows, self._row])


# =============================================================================
# Log strip handler
# =============================================================================


class LogStripHandler(logging.Handler):
    """Forward log records to the canvas log strip.

    Records may be emitted from any thread; they are queued and only the
    render thread moves them into the log region.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records: queue.SimpleQueue[str] = queue.SimpleQueue()
        self.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.records.put_nowait(self.format(record))
        except Exception:
            self.handleError(record)

    def drain(self) -> list[str]:
        messages = []
        while True:
            try:
                messages.append(self.records.get_nowait())
            except queue.Empty:
                return messages


# =============================================================================
# Canvas
# =============================================================================


class Canvas:
    """Fixed set of dashboard regions committed through one ``Live``.

    Args:
        legend: Glyph legend painted in the side panel.
        console: Target console (defaults to a new ``Console()``).
        legend_width: Columns reserved for the side panel.
        screen: Use the alternate screen, restoring the terminal on close.
    """

    def __init__(
        self,
        legend: Legend,
        console: Console | None = None,
        legend_width: int = 30,
        screen: bool = False,
    ) -> None:
        self.legend = legend
        self.console = console or Console()
        self.legend_width = legend_width
        self.screen = screen
        self.regions: dict[str, Region] = {}
        self.log_handler = LogStripHandler()
        self._layout: Layout | None = None
        self._live: Live | None = None
        self._released = False
        self.release_count = 0

    # ── Lifecycle ──

    @property
    def is_open(self) -> bool:
        return self._live is not None

    @property
    def released(self) -> bool:
        return self._released

    def open(self) -> Canvas:
        """Allocate all regions from the current console size.

        Raises:
            CanvasAllocationError: Console too small or live display busy.
        """
        if self._released:
            raise CanvasAllocationError("canvas already released")
        if self.is_open:
            raise CanvasAllocationError("canvas already open")
        width, height = self.console.size
        min_width, min_height = minimum_size(self.legend_width)
        if width < min_width or height < min_height:
            raise CanvasAllocationError(
                f"terminal {width}x{height} too small, "
                f"need at least {min_width}x{min_height}"
            )

        self.regions = self._allocate_regions(width, height)
        self._layout = self._build_layout()
        live = Live(
            self._layout,
            console=self.console,
            auto_refresh=False,
            screen=self.screen,
            # Inline mode erases the dashboard on stop
            transient=not self.screen,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        try:
            live.start()
        except LiveError as e:
            self.regions.clear()
            self._layout = None
            raise CanvasAllocationError(f"cannot start live display: {e}") from e
        self._live = live
        logger.debug("Canvas opened at %dx%d", width, height)
        return self

    def close(self) -> None:
        """Stop the live display and release every region exactly once.

        Inline (non-screen) dashboards are erased; screen mode restores the
        primary screen.
        """
        if self._released:
            return
        self._released = True
        self.release_count += 1
        try:
            if self._live is not None:
                self._live.stop()
        finally:
            self._live = None
            self._layout = None
            self.regions.clear()
        logger.debug("Canvas released")

    def __enter__(self) -> Canvas:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Geometry ──

    def _allocate_regions(self, width: int, height: int) -> dict[str, Region]:
        side = self.legend_width
        body = height - TOP_HEIGHT - LOG_HEIGHT
        half = side // 2
        title_width = max(1, width - 2 * LBA_WIDTH - side)
        return {
            "title": Region("title", title_width, TOP_HEIGHT),
            "cur_lba": Region("cur_lba", LBA_WIDTH, TOP_HEIGHT),
            "end_lba": Region("end_lba", LBA_WIDTH, TOP_HEIGHT),
            "eta": Region("eta", side, TOP_HEIGHT),
            "vis": VisStrip("vis", width - side - 1, body),
            "speed": Region("speed", side, 1),
            "legend": Region("legend", half, LEGEND_ROWS),
            "stats": Region("stats", side - half, LEGEND_ROWS),
            "summary": ScrollRegion("summary", side, body - LEGEND_ROWS - 2),
            "log": ScrollRegion("log", width, LOG_HEIGHT),
        }

    def _build_layout(self) -> Layout:
        r = self.regions
        layout = Layout(name="root")
        layout.split_column(
            Layout(name="top", size=TOP_HEIGHT),
            Layout(name="body"),
            Layout(name="log", size=LOG_HEIGHT),
        )
        layout["top"].split_row(
            Layout(name="title"),
            Layout(name="cur_lba", size=r["cur_lba"].width),
            Layout(name="end_lba", size=r["end_lba"].width),
            Layout(name="eta", size=r["eta"].width),
        )
        layout["body"].split_row(
            Layout(name="vis"),
            Layout(name="gutter", size=1),
            Layout(name="side", size=self.legend_width),
        )
        layout["side"].split_column(
            Layout(name="speed", size=1),
            Layout(name="spacer", size=1),
            Layout(name="panel", size=LEGEND_ROWS),
            Layout(name="summary"),
        )
        layout["panel"].split_row(
            Layout(name="legend", size=r["legend"].width),
            Layout(name="stats"),
        )
        for name in ("gutter", "spacer"):
            layout[name].update("")
        for name, region in r.items():
            layout[name].update(region.render())
            region.dirty = False
        return layout

    # ── Painting ──

    def region(self, name: str) -> Region:
        try:
            return self.regions[name]
        except KeyError:
            raise KeyError(f"no canvas region {name!r} (canvas not open)") from None

    def paint_title(self, title: str) -> None:
        self.region("title").paint(Text(title, style="bold cyan", no_wrap=True))

    def paint_legend(self) -> None:
        """Static legend: one glyph and label per latency band and error kind."""
        text = Text(no_wrap=True)
        for i, glyph in enumerate(self.legend.rows()):
            if i:
                text.append("\n")
            text.append(glyph.char, style=glyph.style)
            text.append(f" {glyph.label}", style="dim")
        self.region("legend").paint(text)

    def paint_end_lba(self, end_lba: int) -> None:
        self.region("end_lba").paint(Text(f"/ {format_lba(end_lba)}", no_wrap=True))

    def summary_line(self, message: str, style: str = "") -> None:
        line = Text(message, style=style, no_wrap=True)
        cast(ScrollRegion, self.region("summary")).append(line)

    def push_glyph(self, glyph: Glyph) -> None:
        cast(VisStrip, self.region("vis")).push(glyph)

    def log(self, message: str) -> None:
        line = Text(message, style="dim", no_wrap=True)
        cast(ScrollRegion, self.region("log")).append(line)

    def paint_stats(self, state: StatsState) -> None:
        """Counters beside the legend, plus speed, ETA and current LBA.

        Speed and ETA keep their last painted value while still zero.  Only
        regions whose text changed are marked dirty, so an idle tick commits
        nothing.
        """
        counts = [*state.latency_counts, *state.error_counts[1:]]
        self.region("stats").update(
            Text("\n".join(f"{c:>{self.legend_width // 2 - 1},}" for c in counts))
        )
        if state.avg_speed:
            self.region("speed").update(Text(format_speed(state.avg_speed)))
        if state.eta_seconds:
            self.region("eta").update(Text(format_eta(state.eta_seconds)))
        self.region("cur_lba").update(
            Text(f"LBA: {format_lba(state.current_lba):>14}", no_wrap=True)
        )

    def pump_log(self) -> int:
        """Move queued log records into the log strip."""
        messages = self.log_handler.drain()
        for message in messages:
            self.log(message)
        return len(messages)

    # ── Commit ──

    def commit(self) -> int:
        """Flush every dirty region to the terminal in one refresh.

        Returns:
            Number of regions that were updated.
        """
        if self._layout is None or self._live is None:
            return 0
        touched = 0
        for name, region in self.regions.items():
            if region.dirty:
                self._layout[name].update(region.render())
                region.dirty = False
                touched += 1
        if touched:
            self._live.refresh()
        return touched

    def text(self, name: str) -> str:
        """Plain text staged in a region."""
        content = self.region(name).render()
        return content.plain if isinstance(content, Text) else str(content)

    def bell(self) -> None:
        self.console.bell()
