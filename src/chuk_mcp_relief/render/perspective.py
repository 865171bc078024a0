"""
Perspective renderer.

Builds a smoothed heightfield from the points, sweeps horizontal contour
lines from the horizon to the foreground and draws them back to front with
the marker-pen effect, masking each new line's underside so nearer terrain
occludes farther terrain.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import convolve

from ..constants import BASE_RENDER_SIZE, PERSPECTIVE_CONFIG, RenderStyle
from ..core.noise import ValueNoise
from ..core.terrain import (
    RenderParams,
    TerrainAnalysis,
    analyze_terrain,
    derive_render_params,
    round_half_up,
)
from .base import ElevationPoint, Renderer, RenderOptions
from .canvas import Canvas, Point
from .strokes import draw_marker_line

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating[Any]]
Sampler = Callable[[float, float], float]


def is_low_or_flat(terrain_type: str) -> bool:
    return "low-" in terrain_type or "flat" in terrain_type


def build_heightfield(
    points: list[ElevationPoint],
    grid_size: int,
    peak_emphasis: float,
    terrain_type: str,
) -> FloatArray:
    """
    Bin points into a grid, blur it and emphasise peaks.

    Each point lands in a cell by its position within the point set's own
    x/y extent; a cell keeps its highest normalized elevation. A 3x3 box
    blur (neighbour weight 0.4, centre weight boosted for low/flat terrain,
    normalized by the in-bounds weights) is followed by ``v ** peak_emphasis``
    and a rescale into [0, 1].

    Returns:
        (grid_size, grid_size) array indexed [row, col]
    """
    grid = np.full((grid_size, grid_size), PERSPECTIVE_CONFIG["empty_cell_value"], dtype=np.float64)

    xs = [p.x for p in points]
    ys = [p.y for p in points]
    min_x, span_x = min(xs), max(xs) - min(xs)
    min_y, span_y = min(ys), max(ys) - min(ys)

    for p in points:
        nx = (p.x - min_x) / span_x if span_x > 0 else 0.0
        ny = (p.y - min_y) / span_y if span_y > 0 else 0.0
        col = min(math.floor(nx * grid_size), grid_size - 1)
        row = min(math.floor(ny * grid_size), grid_size - 1)
        if grid[row, col] < p.normalized_elevation:
            grid[row, col] = p.normalized_elevation

    center_weight = 1.0
    if is_low_or_flat(terrain_type):
        center_weight = PERSPECTIVE_CONFIG["flat_center_weight"]
    kernel = np.full((3, 3), PERSPECTIVE_CONFIG["neighbor_weight"])
    kernel[1, 1] = center_weight

    weighted = convolve(grid, kernel, mode="constant", cval=0.0)
    weights = convolve(np.ones_like(grid), kernel, mode="constant", cval=0.0)
    smoothed = np.power(weighted / weights, peak_emphasis)

    low, high = float(smoothed.min()), float(smoothed.max())
    if high - low > 0:
        target_min, target_max = PERSPECTIVE_CONFIG["elevation_range"]
        smoothed = target_min + (target_max - target_min) * (smoothed - low) / (high - low)
    return smoothed


def make_sampler(heightfield: FloatArray) -> Sampler:
    """Bilinear sampler over normalized (x, y) in [0, 1], clamped at the edges."""
    size = heightfield.shape[0]

    def sample(nx: float, ny: float) -> float:
        x = max(0.0, min(1.0, nx)) * (size - 1)
        y = max(0.0, min(1.0, ny)) * (size - 1)
        x0, y0 = math.floor(x), math.floor(y)
        x1, y1 = min(x0 + 1, size - 1), min(y0 + 1, size - 1)
        sx, sy = x - x0, y - y0

        top = heightfield[y0, x0] * (1 - sx) + heightfield[y0, x1] * sx
        bottom = heightfield[y1, x0] * (1 - sx) + heightfield[y1, x1] * sx
        return float(top * (1 - sy) + bottom * sy)

    return sample


def segment_count(scale_factor: float) -> int:
    base = PERSPECTIVE_CONFIG["num_segments"]
    if scale_factor <= 1.01:
        return base
    return round_half_up(base * scale_factor**1.2)


@dataclass
class Contour:
    points: list[Point]
    base_y: float


class PerspectiveRenderer(Renderer):
    """
    Renderer with a per-instance noise generator.

    Layout state is recomputed on every ``render`` call; only the noise
    persists between calls.
    """

    name = RenderStyle.PERSPECTIVE

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self.noise = ValueNoise(seed) if seed is not None else None
        self.last_terrain: TerrainAnalysis | None = None
        self.last_params: RenderParams | None = None
        self.lines_drawn = 0

    def render(self, canvas: Canvas, points: list[ElevationPoint], options: RenderOptions) -> None:
        if not points:
            return
        noise = self.noise or ValueNoise(options.seed)
        scale = options.scale_factor or 1.0

        width, height = canvas.width, canvas.height
        padding = round_half_up((options.padding or PERSPECTIVE_CONFIG["default_padding"]) * scale)
        drawing_width = width - padding * 2
        drawing_height = height - padding * 2
        grid_size = options.grid_resolution or round_half_up(
            PERSPECTIVE_CONFIG["default_grid_resolution"] * scale
        )
        canvas.fill(options.background)

        terrain = analyze_terrain(points)
        params = derive_render_params(terrain, RenderStyle.PERSPECTIVE)
        size_ratio = width / BASE_RENDER_SIZE
        if size_ratio > 1:
            params.num_lines = round_half_up(params.num_lines * math.sqrt(size_ratio))
        params.num_lines = max(2, params.num_lines)
        horizon_y = padding + drawing_height * params.horizon_position

        self.last_terrain = terrain
        self.last_params = params
        logger.debug(
            f"Perspective render: {terrain.terrain_type}, "
            f"{params.num_lines} lines, grid {grid_size}"
        )

        heightfield = build_heightfield(
            points, grid_size, params.peak_emphasis, terrain.terrain_type
        )
        sampler = make_sampler(heightfield)

        amplification = min(
            params.amplification * scale,
            (horizon_y - padding) * PERSPECTIVE_CONFIG["available_height_ratio"],
        )
        skip_interval = max(2, round_half_up(scale + 1))

        self.lines_drawn = 0
        for i in range(params.num_lines):
            is_edge = i == 0 or i == params.num_lines - 1
            if not is_edge and i % skip_interval != 0:
                continue
            contour = self._contour_line(
                i,
                params,
                terrain,
                sampler,
                amplification,
                scale,
                width=width,
                height=height,
                padding=padding,
                drawing_width=drawing_width,
                horizon_y=horizon_y,
            )
            draw_marker_line(
                canvas,
                contour.points,
                i,
                params.num_lines,
                noise,
                padding,
                scale,
                mask=self.lines_drawn > 0,
            )
            self.lines_drawn += 1

        if options.show_debug_text:
            self._draw_debug_info(canvas, terrain, scale, padding)

    def _contour_line(
        self,
        i: int,
        params: RenderParams,
        terrain: TerrainAnalysis,
        sampler: Sampler,
        amplification: float,
        scale: float,
        *,
        width: int,
        height: int,
        padding: float,
        drawing_width: float,
        horizon_y: float,
    ) -> Contour:
        t = i / (params.num_lines - 1)
        exponent = params.perspective_exponent
        if i <= 1:
            exponent *= PERSPECTIVE_CONFIG["first_line_multiplier"]
        line_y = horizon_y + t**exponent * (height - horizon_y - padding)

        sampling = PERSPECTIVE_CONFIG["terrain_sampling"]
        key = "low_flat" if is_low_or_flat(terrain.terrain_type) else "default"
        start, span = sampling[key]
        terrain_y = start + t * span

        num_segments = segment_count(scale)
        row = [sampler(j / num_segments, terrain_y) for j in range(num_segments + 1)]

        row_max = max(0.0, max(row))
        row_amplification = amplification
        if row_max > PERSPECTIVE_CONFIG["max_row_elevation"]:
            row_amplification = amplification * PERSPECTIVE_CONFIG["max_row_elevation"] / row_max
        damping = PERSPECTIVE_CONFIG["amplification_damping"]
        if i == 0:
            row_amplification *= damping["first_line"]
        elif i == 1:
            row_amplification *= damping["second_line"]

        center_x = width / 2
        compression = 1.0 - PERSPECTIVE_CONFIG["x_compression"] * (1 - t)
        points = []
        for j, elevation in enumerate(row):
            raw_x = padding + j / num_segments * drawing_width
            x = center_x + (raw_x - center_x) * compression
            y = max(padding, line_y - elevation * row_amplification)
            points.append((x, y))

        return Contour(points=points, base_y=line_y)

    @staticmethod
    def _draw_debug_info(
        canvas: Canvas, terrain: TerrainAnalysis, scale: float, padding: float
    ) -> None:
        color = PERSPECTIVE_CONFIG["default_line_color"]
        size = round_half_up(10 * scale)
        base_y = canvas.height - padding
        spacing = round_half_up(20 * scale)
        lines = [
            terrain.terrain_type,
            f"{round_half_up(terrain.elevation_range)}m",
            f"{round_half_up(terrain.average_elevation)}m",
            f"{round_half_up(terrain.elevation_variability)}m",
        ]
        for k, text in enumerate(lines):
            canvas.draw_text(
                text, canvas.width / 2, base_y - spacing * k, color, size=size, align="center"
            )
