"""Tests for chuk_mcp_relief.core.terrain."""

import pytest

from chuk_mcp_relief.constants import DEFAULT_RENDER_PARAMS, RenderStyle
from chuk_mcp_relief.core.terrain import (
    TerrainAnalysis,
    analyze_elevations,
    analyze_terrain,
    classify_range,
    derive_render_params,
    round_half_up,
)
from chuk_mcp_relief.render.base import ElevationPoint

ORDER = ["flat", "rolling", "hilly", "mountainous"]


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (-0.5, 0), (-1.5, -1), (2.49, 2)]
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


class TestClassifyRange:
    @pytest.mark.parametrize(
        "elevation_range,expected",
        [
            (0, "flat"),
            (29.9, "flat"),
            (30, "rolling"),
            (149.9, "rolling"),
            (150, "hilly"),
            (799, "hilly"),
            (800, "mountainous"),
        ],
    )
    def test_threshold_is_upper_bound(self, elevation_range, expected):
        assert classify_range(elevation_range) == expected

    def test_monotonic(self):
        ranks = [ORDER.index(classify_range(r)) for r in range(0, 2000, 7)]
        assert ranks == sorted(ranks)


class TestAnalyzeElevations:
    def test_statistics(self):
        analysis = analyze_elevations([100.0, 200.0, 300.0, 400.0])
        assert analysis.elevation_range == 300.0
        assert analysis.average_elevation == 250.0
        assert analysis.elevation_variability == pytest.approx(111.803, rel=1e-4)

    def test_low_prefix(self):
        assert analyze_elevations([10.0, 20.0]).terrain_type == "low-flat"

    def test_high_prefix(self):
        assert analyze_elevations([1500.0, 3000.0]).terrain_type == "high-mountainous"

    def test_thirty_metre_range_is_rolling(self):
        assert analyze_elevations([500.0, 530.0]).terrain_type == "rolling"

    def test_mid_altitude_has_no_prefix(self):
        assert analyze_elevations([500.0, 700.0]).terrain_type == "hilly"

    def test_prefix_boundaries_exclusive(self):
        assert analyze_elevations([200.0]).terrain_type == "flat"
        assert analyze_elevations([1000.0]).terrain_type == "flat"

    def test_empty_is_unknown(self):
        analysis = analyze_elevations([])
        assert analysis.terrain_type == "unknown"
        assert analysis.elevation_range == 0.0

    def test_base_type_strips_prefix(self):
        assert TerrainAnalysis("low-hilly", 0, 0, 0).base_type == "hilly"
        assert TerrainAnalysis("hilly", 0, 0, 0).base_type == "hilly"

    def test_analyze_terrain_reads_points(self):
        points = [ElevationPoint(0, 0, e, 0.0) for e in (500.0, 1500.0)]
        assert analyze_terrain(points).terrain_type == "mountainous"


class TestDeriveRenderParams:
    def test_other_styles_use_defaults(self):
        analysis = analyze_elevations([0.0, 5000.0])
        for style in (RenderStyle.DOTGRID, RenderStyle.GRAPH):
            params = derive_render_params(analysis, style)
            assert params.to_dict() == DEFAULT_RENDER_PARAMS

    def test_pure(self):
        analysis = analyze_elevations([300.0, 900.0, 1200.0])
        assert derive_render_params(analysis, "perspective") == derive_render_params(
            analysis, "perspective"
        )

    def test_small_range_caps(self):
        params = derive_render_params(analyze_elevations([500.0, 550.0]), "perspective")
        assert params.amplification <= 300.0
        assert params.horizon_position <= 0.35

    def test_large_range_floors(self):
        params = derive_render_params(analyze_elevations([500.0, 4000.0]), "perspective")
        assert params.amplification >= 600.0
        assert params.horizon_position >= 0.65

    def test_mountainous_mid_range(self):
        # range 1000, mean 500: no prefix, variability 500 > 300
        params = derive_render_params(analyze_elevations([0.0, 1000.0]), "perspective")
        assert params.horizon_position == 0.6
        assert params.perspective_exponent == 0.85
        assert params.peak_emphasis == pytest.approx(0.92 * 0.9)
        assert params.amplification == pytest.approx(550 * 0.92 * (0.5 + 0.5 * 0.8))
        assert params.num_lines == 33

    def test_low_terrain_gets_more_lines(self):
        low = derive_render_params(analyze_elevations([0.0, 120.0]), "perspective")
        mid = derive_render_params(analyze_elevations([500.0, 620.0]), "perspective")
        assert low.num_lines > mid.num_lines

    def test_line_cap(self):
        params = derive_render_params(analyze_elevations([0.0, 10.0]), "perspective")
        assert params.num_lines <= 55

    def test_high_terrain_flattens_exponent(self):
        params = derive_render_params(analyze_elevations([1500.0, 1900.0]), "perspective")
        assert params.perspective_exponent == pytest.approx(0.75 * 0.9)
