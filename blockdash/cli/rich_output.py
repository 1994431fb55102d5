"""Decide how the demo presents itself on a given Rich console.

The live dashboard redraws in place, so it needs a cursor-addressable
terminal big enough for every canvas region.  Pipes, CI logs and dumb
terminals still run the scan but only get the end-of-scan summary in
their captured output.

``BLOCKDASH_RICH`` overrides the terminal detection: ``0``/``false``/``no``
forces plain output, ``1``/``true``/``yes`` forces the interactive dashboard.
"""

from __future__ import annotations

import os

from rich.console import Console

from blockdash.render.canvas import minimum_size

_FORCE_OFF = frozenset({"0", "false", "no"})
_FORCE_ON = frozenset({"1", "true", "yes"})


def is_interactive(console: Console) -> bool:
    """Whether ``console`` can host the dashboard and take a key press."""
    override = os.environ.get("BLOCKDASH_RICH", "").strip().lower()
    if override in _FORCE_OFF:
        return False
    if override in _FORCE_ON:
        return True
    if os.environ.get("CI"):
        return False
    return console.is_terminal and not console.is_dumb_terminal


def size_problem(console: Console, legend_width: int) -> str | None:
    """Describe why ``console`` is too small for the dashboard, if it is."""
    width, height = console.size
    min_width, min_height = minimum_size(legend_width)
    if width >= min_width and height >= min_height:
        return None
    return (
        f"terminal {width}x{height} too small for the dashboard, "
        f"need at least {min_width}x{min_height} (resize or widen the window)"
    )
