"""Shared fixtures for blockdash tests."""

import io

import pytest
from rich.console import Console

from blockdash import settings
from blockdash.legend import Legend
from blockdash.models import BlockReport, BlockStatus, DeviceInfo, RenderContext

THRESHOLDS = (3_000, 10_000, 50_000, 150_000, 500_000)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_000) -> None:
        self.now = start
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def console():
    """Non-interactive console with a fixed 100x30 size."""
    return Console(
        file=io.StringIO(),
        width=100,
        height=30,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def legend():
    return Legend(thresholds=THRESHOLDS)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def render_context():
    """Context for a 1,000,000-byte device scanned in 512-byte blocks."""
    device = DeviceInfo(path="/dev/sdz", capacity=1_000_000, model="Test Disk")
    return RenderContext(device=device, block_size=512, procedure_name="verify")


@pytest.fixture
def make_report():
    def _make(lba: int, status=BlockStatus.OK, access_time: int = 1_000):
        return BlockReport(lba=lba, status=status, access_time=access_time)

    return _make


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Drop cached pyproject settings between tests."""
    settings._load_pyproject_settings.cache_clear()
    yield
    settings._load_pyproject_settings.cache_clear()
