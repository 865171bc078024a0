"""Tests for chuk_mcp_relief.render: canvas, transformer and the three styles."""

import io
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image

from chuk_mcp_relief.constants import MARKER_PEN_CONFIG
from chuk_mcp_relief.core.geodesy import BoundingBox, Coordinate
from chuk_mcp_relief.core.noise import ValueNoise
from chuk_mcp_relief.render.base import ElevationPoint, RenderOptions
from chuk_mcp_relief.render.canvas import Canvas, quadratic_points, to_rgba
from chuk_mcp_relief.render.dotgrid import DotGridRenderer, dot_radius
from chuk_mcp_relief.render.graph import STEM_COLOR, STEM_WIDTH, GraphRenderer
from chuk_mcp_relief.render.perspective import (
    PerspectiveRenderer,
    build_heightfield,
    is_low_or_flat,
    make_sampler,
    segment_count,
)
from chuk_mcp_relief.render.strokes import (
    draw_marker_line,
    hand_drawn_path,
    smooth_points,
)
from chuk_mcp_relief.render.transform import make_transformer

BLACK = (0, 0, 0, 255)


def _grid_points(n=3, size=300, low=100.0, high=500.0) -> list[ElevationPoint]:
    """n x n points spread over the canvas with elevations rising row by row."""
    points = []
    step = (high - low) / (n * n - 1)
    for i in range(n):
        for j in range(n):
            elevation = low + (i * n + j) * step
            points.append(
                ElevationPoint(
                    x=(j + 0.5) * size / n,
                    y=(i + 0.5) * size / n,
                    elevation=elevation,
                    normalized_elevation=(elevation - low) / (high - low),
                )
            )
    return points


def _non_background(canvas: Canvas) -> int:
    pixels = np.asarray(canvas.image)
    return int(np.count_nonzero(np.any(pixels[:, :, :3] != 0, axis=2)))


class TestCanvas:
    def test_background(self):
        canvas = Canvas(10, 10)
        assert canvas.pixel(5, 5) == BLACK

    def test_rejects_empty_size(self):
        with pytest.raises(ValueError):
            Canvas(0, 10)

    def test_fill_circle(self):
        canvas = Canvas(20, 20)
        canvas.fill_circle(10, 10, 4, "#ffffff")
        assert canvas.pixel(10, 10) == (255, 255, 255, 255)
        assert canvas.pixel(0, 0) == BLACK

    def test_opaque_line(self):
        canvas = Canvas(20, 20)
        canvas.stroke_line((0, 10), (19, 10), "#ff0000", 3)
        assert canvas.pixel(10, 10)[:3] == (255, 0, 0)

    def test_translucent_stroke_blends_once(self):
        canvas = Canvas(40, 40)
        # three overlapping segments of one path
        canvas.stroke_path([(5, 20), (30, 20), (10, 20), (35, 20)], "#ffffff", [4], alpha=0.5)
        value = canvas.pixel(20, 20)[0]
        assert 120 <= value <= 135

    def test_fill_polygon(self):
        canvas = Canvas(20, 20, "#ffffff")
        canvas.fill_polygon([(0, 10), (19, 10), (19, 19), (0, 19)], "#000000")
        assert canvas.pixel(10, 15) == BLACK
        assert canvas.pixel(10, 2) == (255, 255, 255, 255)

    def test_draw_text_marks_pixels(self):
        canvas = Canvas(80, 30)
        canvas.draw_text("50%", 40, 25, "#ffffff", size=14, align="center")
        assert _non_background(canvas) > 0

    def test_encode_png(self):
        data = Canvas(12, 8).encode()
        with Image.open(io.BytesIO(data)) as img:
            assert img.size == (12, 8)
            assert img.format == "PNG"

    def test_to_rgba(self):
        assert to_rgba("#0085ff", 0.5) == (0, 133, 255, 128)
        assert to_rgba((1, 2, 3)) == (1, 2, 3, 255)

    def test_quadratic_points_end_on_target(self):
        points = quadratic_points((0, 0), (5, 10), (10, 0), steps=4)
        assert len(points) == 4
        assert points[-1] == (10, 0)
        assert points[1] == pytest.approx((5.0, 5.0))


class TestTransformer:
    BBOX = BoundingBox(min_lat=0.0, max_lat=1.0, min_lon=0.0, max_lon=2.0)

    def test_corners_with_padding(self):
        t = make_transformer(self.BBOX, 200, 100, padding=10)
        assert t(Coordinate(1.0, 0.0)) == (10, 10)
        assert t(Coordinate(0.0, 2.0)) == (190, 90)

    def test_invert_y_off(self):
        t = make_transformer(self.BBOX, 200, 100, invert_y=False)
        assert t(Coordinate(0.0, 0.0)).y == 0
        assert t(Coordinate(1.0, 0.0)).y == 100

    def test_centre(self):
        t = make_transformer(self.BBOX, 200, 100)
        assert t(Coordinate(0.5, 1.0)) == (100, 50)

    def test_degenerate_bbox(self):
        with pytest.raises(ValueError):
            make_transformer(BoundingBox(1.0, 1.0, 0.0, 2.0), 100, 100)


class TestDotGrid:
    def test_evaluates_every_cell(self):
        canvas = Canvas(300, 300)
        renderer = DotGridRenderer()
        options = RenderOptions(style="dotgrid", width=300, height=300)
        renderer.render(canvas, _grid_points(), options)
        assert renderer.cells_evaluated == 900
        assert _non_background(canvas) > 0

    def test_radius_grows_with_elevation(self):
        assert dot_radius(1.0, 300) > dot_radius(0.5, 300) > dot_radius(0.0, 300)

    def test_radius_bounds(self):
        assert dot_radius(0.0, 700) == pytest.approx(0.5)
        assert dot_radius(1.0, 700) == pytest.approx(10.0)

    def test_empty_points_only_background(self):
        canvas = Canvas(50, 50)
        renderer = DotGridRenderer()
        renderer.render(canvas, [], RenderOptions(width=50, height=50))
        assert renderer.cells_evaluated == 0
        assert _non_background(canvas) == 0


class TestGraph:
    def test_draws_reference_lines(self):
        canvas = Canvas(300, 300)
        options = RenderOptions(style="graph", width=300, height=300)
        GraphRenderer().render(canvas, _grid_points(), options)
        assert _non_background(canvas) > 0

    def test_single_point_draws_no_stems(self):
        options = RenderOptions(style="graph", width=200, height=200, padding=20)
        with_stem = Canvas(200, 200)
        GraphRenderer().render(with_stem, _grid_points(n=2, size=200), options)
        without_stem = Canvas(200, 200)
        GraphRenderer().render(without_stem, _grid_points(n=2, size=200)[:1], options)
        assert _non_background(with_stem) > _non_background(without_stem)

    def _stem_widths(self, options):
        canvas = Canvas(200, 200)
        with patch.object(canvas, "stroke_line", wraps=canvas.stroke_line) as stroke:
            GraphRenderer().render(canvas, _grid_points(size=200), options)
        return [c.args[3] for c in stroke.call_args_list if c.args[2] == STEM_COLOR]

    def test_stems_use_contour_width(self):
        options = RenderOptions(style="graph", width=200, height=200, contour_width=1.5)
        assert self._stem_widths(options) == [1.5] * 9

    def test_stem_width_default(self):
        options = RenderOptions(style="graph", width=200, height=200)
        assert self._stem_widths(options) == [STEM_WIDTH] * 9

    def test_seeded_jitter_is_deterministic(self):
        options = RenderOptions(style="graph", width=200, height=200, seed=3)
        a, b = Canvas(200, 200), Canvas(200, 200)
        GraphRenderer().render(a, _grid_points(size=200), options)
        GraphRenderer().render(b, _grid_points(size=200), options)
        assert a.encode() == b.encode()


class TestStrokes:
    def test_smooth_keeps_endpoints(self):
        points = [(0, 0), (1, 5), (2, 0), (3, 5)]
        smoothed = smooth_points(points)
        assert smoothed[0] == (0, 0)
        assert smoothed[-1] == (3, 5)
        assert smoothed[1] == pytest.approx((1.0, 3.5))

    def test_smooth_short_input_unchanged(self):
        assert smooth_points([(0, 0), (1, 1)]) == [(0, 0), (1, 1)]

    def test_hand_drawn_path_deterministic(self):
        contour = [(x * 1.0, 100 + (x % 7)) for x in range(300)]
        a = hand_drawn_path(contour, ValueNoise(4), 100, 1)
        b = hand_drawn_path(contour, ValueNoise(4), 100, 1)
        assert a == b
        assert len(a) < len(contour)

    def test_hand_drawn_path_empty(self):
        assert hand_drawn_path([], ValueNoise(), 0) == []

    def test_stroke_count_in_range(self):
        contour = [(x * 2.0, 50.0) for x in range(100)]
        count_min, count_max = MARKER_PEN_CONFIG["stroke_count"]
        for line in range(10):
            drawn = draw_marker_line(Canvas(220, 100), contour, line, 10, ValueNoise(line), 10)
            assert count_min <= drawn <= count_max

    def test_strokes_use_pen_colour(self):
        canvas = Canvas(220, 100)
        contour = [(10 + x * 2.0, 50.0) for x in range(100)]
        draw_marker_line(canvas, contour, 9, 10, ValueNoise(1), 10)
        column = [canvas.pixel(110, y) for y in range(35, 66)]
        covered = [p for p in column if p[2] > 0]
        assert covered
        assert all(p[0] == 0 and p[2] > p[1] for p in covered)

    def test_empty_contour(self):
        assert draw_marker_line(Canvas(10, 10), [], 0, 2, ValueNoise(), 0) == 0

    def test_mask_hides_earlier_strokes(self):
        canvas = Canvas(200, 200)
        far = [(10 + x * 1.8, 120.0) for x in range(100)]
        near = [(10 + x * 1.8, 40.0) for x in range(100)]
        band = range(100, 141)
        draw_marker_line(canvas, far, 0, 2, ValueNoise(2), 10)
        assert any(canvas.pixel(100, y)[2] > 0 for y in band)
        draw_marker_line(canvas, near, 1, 2, ValueNoise(2), 10, mask=True)
        assert all(canvas.pixel(100, y) == BLACK for y in band)


class TestPerspectiveHelpers:
    def test_is_low_or_flat(self):
        assert is_low_or_flat("low-hilly")
        assert is_low_or_flat("flat")
        assert not is_low_or_flat("high-mountainous")

    def test_segment_count(self):
        assert segment_count(1.0) == 100
        assert segment_count(2.0) == 230

    def test_heightfield_normalized(self):
        field = build_heightfield(_grid_points(n=4), 8, 0.65, "hilly")
        assert field.shape == (8, 8)
        assert field.min() == pytest.approx(0.0)
        assert field.max() == pytest.approx(1.0)

    def test_heightfield_collinear_points(self):
        points = [ElevationPoint(10.0, float(y), y, y / 9) for y in range(10)]
        field = build_heightfield(points, 5, 1.0, "hilly")
        assert np.all(np.isfinite(field))

    def test_sampler_clamps_and_interpolates(self):
        sample = make_sampler(np.array([[0.0, 1.0], [0.0, 1.0]]))
        assert sample(0.5, 0.5) == pytest.approx(0.5)
        assert sample(-1.0, 0.0) == 0.0
        assert sample(2.0, 2.0) == 1.0


class TestPerspectiveRenderer:
    OPTIONS = RenderOptions(style="perspective", width=300, height=300, padding=20, seed=9)

    def test_byte_identical_for_same_seed(self):
        a, b = Canvas(300, 300), Canvas(300, 300)
        PerspectiveRenderer(seed=9).render(a, _grid_points(n=5), self.OPTIONS)
        PerspectiveRenderer(seed=9).render(b, _grid_points(n=5), self.OPTIONS)
        assert a.encode() == b.encode()

    def test_seed_from_options(self):
        a, b = Canvas(300, 300), Canvas(300, 300)
        PerspectiveRenderer().render(a, _grid_points(n=5), self.OPTIONS)
        PerspectiveRenderer(seed=9).render(b, _grid_points(n=5), self.OPTIONS)
        assert a.encode() == b.encode()

    def test_different_seed_differs(self):
        a, b = Canvas(300, 300), Canvas(300, 300)
        PerspectiveRenderer(seed=1).render(a, _grid_points(n=5), self.OPTIONS)
        PerspectiveRenderer(seed=2).render(b, _grid_points(n=5), self.OPTIONS)
        assert a.encode() != b.encode()

    def test_records_layout(self):
        renderer = PerspectiveRenderer(seed=0)
        renderer.render(Canvas(300, 300), _grid_points(n=5), self.OPTIONS)
        assert renderer.last_terrain.terrain_type == "hilly"
        assert renderer.lines_drawn >= 2
        assert renderer.lines_drawn <= renderer.last_params.num_lines

    def test_draws_in_pen_colour(self):
        canvas = Canvas(300, 300)
        PerspectiveRenderer(seed=0).render(canvas, _grid_points(n=5), self.OPTIONS)
        pixels = np.asarray(canvas.image)
        assert np.any(pixels[:, :, 2] > 0)
        assert not np.any(pixels[:, :, 0] > pixels[:, :, 2])

    def test_empty_points_noop(self):
        canvas = Canvas(50, 50)
        renderer = PerspectiveRenderer(seed=0)
        renderer.render(canvas, [], RenderOptions(width=50, height=50))
        assert renderer.lines_drawn == 0

    def test_debug_text(self):
        plain, debug = Canvas(300, 300), Canvas(300, 300)
        PerspectiveRenderer(seed=0).render(plain, _grid_points(n=5), self.OPTIONS)
        options = RenderOptions(
            style="perspective", width=300, height=300, padding=20, seed=9, show_debug_text=True
        )
        PerspectiveRenderer(seed=0).render(debug, _grid_points(n=5), options)
        assert plain.encode() != debug.encode()
