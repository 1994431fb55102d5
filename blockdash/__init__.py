"""Blockdash - live terminal dashboard for block-device scans.

The scanning host drives a renderer through three entry points
(``open``, ``handle_report``, ``close``).  Reports are handed to a
dedicated render thread through a lock-free ring buffer so the scan
loop never waits on the terminal.
"""

__version__ = "0.3.0"
