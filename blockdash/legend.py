"""Glyph legend: latency thresholds and the symbol drawn for each outcome.

A ``Legend`` is static configuration built once per session and injected
into both the stats aggregator (for bucketing) and the canvas (for painting
glyphs and the legend panel).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from blockdash import settings
from blockdash.models import ERROR_KINDS, BlockStatus


@dataclass(frozen=True)
class Glyph:
    """A single cell symbol with its Rich style."""

    char: str
    style: str
    label: str = ""


_LATENCY_STYLES = ("grey50", "grey78", "green", "yellow", "dark_orange", "red")

_ERROR_GLYPHS: dict[BlockStatus, Glyph] = {
    BlockStatus.ERROR: Glyph("x", "bold red", "ERR"),
    BlockStatus.TIMEOUT: Glyph("T", "bold magenta", "TIMEOUT"),
    BlockStatus.UNC: Glyph("U", "bold red", "UNC"),
    BlockStatus.IDNF: Glyph("!", "bold yellow", "IDNF"),
    BlockStatus.ABRT: Glyph("A", "bold cyan", "ABRT"),
}


def format_latency(us: int) -> str:
    """Format a microsecond threshold: 500us, 3ms, 1.5s"""
    if us >= 1_000_000:
        return f"{us / 1_000_000:g}s"
    if us >= 1_000:
        return f"{us / 1_000:g}ms"
    return f"{us}us"


def _latency_glyphs(thresholds: tuple[int, ...]) -> tuple[Glyph, ...]:
    labels = [f"<{format_latency(t)}" for t in thresholds]
    labels.append(f">{format_latency(thresholds[-1])}")
    return tuple(
        Glyph("█", style, label)
        for style, label in zip(_LATENCY_STYLES, labels, strict=True)
    )


@dataclass(frozen=True)
class Legend:
    """Latency thresholds plus the glyph table for every band and error kind.

    Attributes:
        thresholds: Five ascending access-time limits in microseconds.
            Band ``i`` holds access times below ``thresholds[i]``; band 5
            is the overflow band.
        latency_glyphs: Six glyphs, one per band.
        error_glyphs: Glyph per error ``BlockStatus``.
    """

    thresholds: tuple[int, ...]
    latency_glyphs: tuple[Glyph, ...] = ()
    error_glyphs: dict[BlockStatus, Glyph] = field(
        default_factory=lambda: dict(_ERROR_GLYPHS)
    )

    def __post_init__(self) -> None:
        if len(self.thresholds) != settings.LATENCY_BANDS:
            raise ValueError(
                f"expected {settings.LATENCY_BANDS} thresholds, "
                f"got {len(self.thresholds)}"
            )
        if any(a >= b for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ValueError(f"thresholds must be ascending: {self.thresholds}")
        if not self.latency_glyphs:
            object.__setattr__(
                self, "latency_glyphs", _latency_glyphs(self.thresholds)
            )
        if len(self.latency_glyphs) != len(self.thresholds) + 1:
            raise ValueError("need one latency glyph per band plus overflow")
        missing = [s.name for s in ERROR_KINDS if s not in self.error_glyphs]
        if missing:
            raise ValueError(f"no error glyph for: {', '.join(missing)}")

    @property
    def band_count(self) -> int:
        return len(self.latency_glyphs)

    def rows(self) -> list[Glyph]:
        """Legend rows in display order: latency bands, then error kinds."""
        return [*self.latency_glyphs, *(self.error_glyphs[s] for s in ERROR_KINDS)]


def default_legend() -> Legend:
    """Legend built from the configured latency thresholds."""
    return Legend(thresholds=settings.get_latency_thresholds())
