"""Exception hierarchy for the blockdash renderer."""

from __future__ import annotations


class BlockdashError(Exception):
    """Base class for all blockdash errors."""


class RendererStartupError(BlockdashError):
    """Renderer could not allocate its canvas or start the render thread.

    Fatal to the scan session: the host should abort and report it.
    """


class CanvasAllocationError(RendererStartupError):
    """Terminal regions could not be allocated (e.g. terminal too small)."""


class RendererStateError(BlockdashError):
    """A lifecycle entry point was called out of order."""


class RenderLoopError(BlockdashError):
    """The render thread terminated with an unhandled exception."""


class ClockReadError(BlockdashError):
    """The monotonic clock could not be read.

    Timing data cannot be trusted after this, so it is never recovered from.
    """
