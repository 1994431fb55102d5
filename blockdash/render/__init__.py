"""Terminal rendering: canvas regions, render loop and renderer lifecycle."""

from blockdash.render.canvas import Canvas, LogStripHandler, Region
from blockdash.render.loop import RenderLoop, RenderState
from blockdash.render.sliding_window import (
    RENDERERS,
    SlidingWindowRenderer,
    get_renderer,
)

__all__ = [
    "RENDERERS",
    "Canvas",
    "LogStripHandler",
    "Region",
    "RenderLoop",
    "RenderState",
    "SlidingWindowRenderer",
    "get_renderer",
]
