"""Tests for the glyph legend and data model."""

import pytest

from blockdash import settings
from blockdash.legend import Glyph, Legend, default_legend, format_latency
from blockdash.models import (
    ERROR_KINDS,
    BlockReport,
    BlockStatus,
    DeviceInfo,
    RenderContext,
)


class TestFormatLatency:
    @pytest.mark.parametrize(
        "us,expected",
        [
            (500, "500us"),
            (3_000, "3ms"),
            (150_000, "150ms"),
            (1_500_000, "1.5s"),
        ],
    )
    def test_format_latency(self, us, expected):
        assert format_latency(us) == expected


class TestLegend:
    """Legend construction and validation."""

    def test_builds_one_glyph_per_band(self, legend):
        assert legend.band_count == 6
        assert [g.label for g in legend.latency_glyphs] == [
            "<3ms",
            "<10ms",
            "<50ms",
            "<150ms",
            "<500ms",
            ">500ms",
        ]

    def test_rows_list_bands_then_error_kinds(self, legend):
        rows = legend.rows()

        assert len(rows) == 11
        assert rows[:6] == list(legend.latency_glyphs)
        assert [g.label for g in rows[6:]] == ["ERR", "TIMEOUT", "UNC", "IDNF", "ABRT"]

    def test_every_error_kind_has_a_distinct_glyph(self, legend):
        chars = {legend.error_glyphs[kind].char for kind in ERROR_KINDS}
        assert len(chars) == len(ERROR_KINDS)

    @pytest.mark.parametrize(
        "thresholds",
        [
            (1, 2, 3, 4),
            (1, 2, 3, 4, 5, 6),
            (10, 5, 20, 30, 40),
            (1, 2, 2, 3, 4),
        ],
    )
    def test_rejects_bad_thresholds(self, thresholds):
        with pytest.raises(ValueError):
            Legend(thresholds=thresholds)

    def test_rejects_missing_error_glyph(self):
        glyphs = {BlockStatus.ERROR: Glyph("x", "red", "ERR")}
        with pytest.raises(ValueError, match="TIMEOUT"):
            Legend(thresholds=(1, 2, 3, 4, 5), error_glyphs=glyphs)

    def test_rejects_wrong_latency_glyph_count(self):
        with pytest.raises(ValueError, match="latency glyph"):
            Legend(thresholds=(1, 2, 3, 4, 5), latency_glyphs=(Glyph("#", ""),))

    def test_default_legend_uses_configured_thresholds(self, monkeypatch):
        monkeypatch.setattr(settings, "_load_pyproject_settings", lambda: {})
        monkeypatch.setenv("BLOCKDASH_LATENCY_THRESHOLDS", "100,200,300,400,500")

        assert default_legend().thresholds == (100, 200, 300, 400, 500)


class TestModels:
    """Block reports and the render context."""

    def test_ok_is_the_only_non_error_status(self):
        assert not BlockStatus.OK.is_error
        assert all(kind.is_error for kind in ERROR_KINDS)
        assert BlockStatus.OK not in ERROR_KINDS

    @pytest.mark.parametrize("kwargs", [{"lba": -1}, {"lba": 0, "access_time": -5}])
    def test_report_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            BlockReport(**kwargs)

    def test_report_is_immutable(self):
        report = BlockReport(lba=3)
        with pytest.raises(AttributeError):
            report.lba = 4

    def test_end_lba_divides_capacity_by_block_size(self):
        ctx = RenderContext(DeviceInfo("/dev/sdz", 1_000_000), block_size=512)
        assert ctx.end_lba == 1953

    def test_advance_sets_report_and_progress(self):
        ctx = RenderContext(DeviceInfo("/dev/sdz", 4096))
        ctx.advance(BlockReport(lba=0))
        ctx.advance(BlockReport(lba=1))

        assert ctx.progress == 2
        assert ctx.report == BlockReport(lba=1)
