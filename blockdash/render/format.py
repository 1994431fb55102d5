"""Text formatting helpers for dashboard readouts."""

from __future__ import annotations

from rich.cells import cell_len


def format_lba(lba: int) -> str:
    """Thousands-separated block address: 1,953,525,168"""
    return f"{lba:,}"


def format_speed(bytes_per_sec: int) -> str:
    """Fixed-width throughput readout in KiB/s."""
    return f"SPEED {bytes_per_sec // 1024:7d} kb/s"


def format_eta(seconds: int) -> str:
    """Fixed-width remaining-time readout as minutes:seconds."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"ETA {minutes:11d}:{secs:02d}"


def format_time(seconds: float) -> str:
    """Format duration: 1h 23m, 5m 30s, 45s"""
    if seconds < 0:
        return "--"
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        mins, secs = divmod(int(seconds), 60)
        return f"{mins}m {secs:02d}s" if secs else f"{mins}m"
    hours, rem = divmod(int(seconds), 3600)
    mins = rem // 60
    return f"{hours}h {mins:02d}m" if mins else f"{hours}h"


def format_bytes(num_bytes: int) -> str:
    """Format bytes: 1.5MB, 256KB, 1.2GB"""
    if num_bytes >= 1_000_000_000_000:
        return f"{num_bytes / 1_000_000_000_000:.1f}TB"
    if num_bytes >= 1_000_000_000:
        return f"{num_bytes / 1_000_000_000:.1f}GB"
    if num_bytes >= 1_000_000:
        return f"{num_bytes / 1_000_000:.1f}MB"
    if num_bytes >= 1_000:
        return f"{num_bytes / 1_000:.1f}KB"
    return f"{num_bytes}B"


def clip_path(path: str, max_len: int = 40) -> str:
    """Clip middle of path with ellipsis: /dev/disk/.../wwn-0x5000

    Keeps the start (context) and end (specificity) of the path.
    """
    if cell_len(path) <= max_len:
        return path
    keep_start = max_len // 3
    keep_end = max_len - keep_start - 5  # 5 for "/.../"
    if keep_end < 4:
        return path[: max(0, max_len - 3)] + "..."
    return f"{path[:keep_start]}/.../{path[-keep_end:]}"
