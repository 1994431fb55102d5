"""Renderer settings loaded from pyproject.toml [tool.blockdash] section.

Recognised keys (all optional):

    [tool.blockdash]
    render-interval = 0.04          # seconds between render ticks (25 Hz)
    ring-capacity = 100000          # report slots in the hand-off ring
    speed-sample-every = 10         # recompute speed/ETA every Nth report
    latency-thresholds = [3000, 10000, 50000, 150000, 500000]  # microseconds
    legend-width = 30               # columns reserved for the side panel

All settings support environment variable overrides (BLOCKDASH_* prefix).
"""

from __future__ import annotations

import importlib.resources
import os
from functools import cache
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found,no-redef]

DEFAULT_RENDER_INTERVAL = 0.04
DEFAULT_RING_CAPACITY = 100_000
DEFAULT_SPEED_SAMPLE_EVERY = 10
DEFAULT_LATENCY_THRESHOLDS: tuple[int, ...] = (
    3_000,
    10_000,
    50_000,
    150_000,
    500_000,
)
DEFAULT_LEGEND_WIDTH = 30

LATENCY_BANDS = 5


@cache
def _load_pyproject_settings() -> dict:
    """Load settings from pyproject.toml [tool.blockdash] section.

    Returns:
        Dictionary of settings from pyproject.toml, empty dict if not found.
    """
    try:
        files = importlib.resources.files("blockdash")
        pyproject_path = files.joinpath("..", "pyproject.toml")

        if not pyproject_path.is_file():  # type: ignore[union-attr]
            # Walk up to find pyproject.toml (for development)
            current = Path(__file__).resolve().parent
            while current != current.parent:
                candidate = current / "pyproject.toml"
                if candidate.exists():
                    pyproject_path = candidate
                    break
                current = current.parent
            else:
                return {}

        data = tomllib.loads(pyproject_path.read_text())  # type: ignore[union-attr]
        return data.get("tool", {}).get("blockdash", {})
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def _lookup(key: str, env_var: str) -> str | int | float | list | None:
    """Resolve a raw setting: env var first, then pyproject value."""
    if env := os.getenv(env_var):
        return env
    return _load_pyproject_settings().get(key)


def _parse_positive_int(name: str, value: str | int) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name}: expected an integer, got {value!r}") from e
    if result <= 0:
        raise ValueError(f"{name}: must be positive, got {result}")
    return result


def get_render_interval() -> float:
    """Seconds between render ticks.

    Priority: BLOCKDASH_RENDER_INTERVAL → [tool.blockdash].render-interval → 0.04.
    """
    value = _lookup("render-interval", "BLOCKDASH_RENDER_INTERVAL")
    if value is None:
        return DEFAULT_RENDER_INTERVAL
    try:
        interval = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"render-interval: expected seconds, got {value!r}") from e
    if interval <= 0:
        raise ValueError(f"render-interval: must be positive, got {interval}")
    return interval


def get_ring_capacity() -> int:
    """Number of report slots in the producer/consumer ring buffer."""
    value = _lookup("ring-capacity", "BLOCKDASH_RING_CAPACITY")
    if value is None:
        return DEFAULT_RING_CAPACITY
    return _parse_positive_int("ring-capacity", value)


def get_speed_sample_every() -> int:
    """Recompute average speed and ETA on every Nth report."""
    value = _lookup("speed-sample-every", "BLOCKDASH_SPEED_SAMPLE_EVERY")
    if value is None:
        return DEFAULT_SPEED_SAMPLE_EVERY
    return _parse_positive_int("speed-sample-every", value)


def get_latency_thresholds() -> tuple[int, ...]:
    """Ascending access-time thresholds (microseconds) for the histogram.

    Accepts a TOML list or a comma separated env var string.
    """
    value = _lookup("latency-thresholds", "BLOCKDASH_LATENCY_THRESHOLDS")
    if value is None:
        return DEFAULT_LATENCY_THRESHOLDS
    if isinstance(value, str):
        value = [part.strip() for part in value.split(",") if part.strip()]
    if not isinstance(value, list):
        raise ValueError(f"latency-thresholds: expected a list, got {value!r}")
    thresholds = tuple(_parse_positive_int("latency-thresholds", v) for v in value)
    if len(thresholds) != LATENCY_BANDS:
        raise ValueError(
            f"latency-thresholds: expected {LATENCY_BANDS} values, "
            f"got {len(thresholds)}"
        )
    if any(a >= b for a, b in zip(thresholds, thresholds[1:], strict=False)):
        raise ValueError(f"latency-thresholds: must be ascending, got {thresholds}")
    return thresholds


def get_legend_width() -> int:
    """Columns reserved for the legend/stats side panel."""
    value = _lookup("legend-width", "BLOCKDASH_LEGEND_WIDTH")
    if value is None:
        return DEFAULT_LEGEND_WIDTH
    return _parse_positive_int("legend-width", value)
