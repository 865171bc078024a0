"""Tests for chuk_mcp_relief.core.relief: normalization and style dispatch."""

import pytest

from chuk_mcp_relief.core.geodesy import BoundingBox, Coordinate
from chuk_mcp_relief.core.providers import ElevationSample
from chuk_mcp_relief.core.relief import (
    create_renderer,
    normalize_samples,
    render_relief,
    resolve_style,
)
from chuk_mcp_relief.errors import EmptyPointSetError
from chuk_mcp_relief.render.base import RenderOptions
from chuk_mcp_relief.render.dotgrid import DotGridRenderer, dot_radius
from chuk_mcp_relief.render.graph import GraphRenderer
from chuk_mcp_relief.render.perspective import PerspectiveRenderer

UNIT_BOX = BoundingBox(min_lat=0.0, max_lat=1.0, min_lon=0.0, max_lon=1.0)


def _samples_3x3() -> list[ElevationSample]:
    """3x3 grid over the unit box with elevations 100..500."""
    samples = []
    for i in range(3):
        for j in range(3):
            samples.append(
                ElevationSample(Coordinate(i * 0.5, j * 0.5), 100.0 + (i * 3 + j) * 50.0)
            )
    return samples


class TestResolveStyle:
    @pytest.mark.parametrize("style", ["dotgrid", "graph", "perspective"])
    def test_known(self, style):
        assert resolve_style(style) == style

    def test_unknown_falls_back_to_dotgrid(self):
        assert resolve_style("watercolour") == "dotgrid"

    def test_none_falls_back(self):
        assert resolve_style(None) == "dotgrid"

    def test_create_renderer(self):
        assert isinstance(create_renderer("graph"), GraphRenderer)
        assert isinstance(create_renderer("perspective", seed=1), PerspectiveRenderer)
        assert isinstance(create_renderer("nope"), DotGridRenderer)


class TestNormalizeSamples:
    def test_min_max_map_to_unit_range(self):
        points = normalize_samples(_samples_3x3(), UNIT_BOX, 300, 300)
        values = [p.normalized_elevation for p in points]
        assert min(values) == 0.0
        assert max(values) == 1.0

    def test_linear_law(self):
        samples = _samples_3x3()
        points = normalize_samples(samples, UNIT_BOX, 300, 300)
        for sample, point in zip(samples, points):
            assert point.normalized_elevation == pytest.approx((sample.elevation - 100.0) / 400.0)

    def test_constant_elevation_is_half(self):
        samples = [ElevationSample(Coordinate(0.1 * i, 0.1 * i), 250.0) for i in range(4)]
        points = normalize_samples(samples, UNIT_BOX, 100, 100)
        assert all(p.normalized_elevation == 0.5 for p in points)

    def test_positions_use_transformer(self):
        points = normalize_samples(_samples_3x3(), UNIT_BOX, 300, 300, padding=0)
        assert (points[0].x, points[0].y) == (0.0, 300.0)
        assert (points[-1].x, points[-1].y) == (300.0, 0.0)

    def test_keeps_coordinates(self):
        samples = _samples_3x3()
        points = normalize_samples(samples, UNIT_BOX, 300, 300)
        assert points[4].coordinate == samples[4].coordinate

    def test_empty(self):
        assert normalize_samples([], UNIT_BOX, 10, 10) == []


class TestRenderRelief:
    def test_dotgrid_end_to_end(self):
        renderer = DotGridRenderer()
        options = RenderOptions(style="dotgrid", width=300, height=300)
        canvas = render_relief(_samples_3x3(), UNIT_BOX, options, renderer)
        assert (canvas.width, canvas.height) == (300, 300)
        assert renderer.cells_evaluated == 900
        assert dot_radius(1.0, 300) > dot_radius(0.0, 300)

    def test_empty_raises(self):
        with pytest.raises(EmptyPointSetError):
            render_relief([], UNIT_BOX, RenderOptions(width=10, height=10))

    @pytest.mark.parametrize("style", ["dotgrid", "graph", "perspective", "unknown"])
    def test_every_style_renders(self, style):
        options = RenderOptions(style=style, width=200, height=200, seed=1)
        canvas = render_relief(_samples_3x3(), UNIT_BOX, options)
        assert canvas.encode().startswith(b"\x89PNG")

    def test_degenerate_bbox(self):
        flat_box = BoundingBox(min_lat=0.0, max_lat=0.0, min_lon=0.0, max_lon=1.0)
        with pytest.raises(ValueError):
            render_relief(_samples_3x3(), flat_box, RenderOptions(width=10, height=10))
