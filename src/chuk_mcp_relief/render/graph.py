"""
Graph renderer: grayscale reference lines with one vertical stem per sample.
"""

import random

from ..constants import (
    GRAPH_COLOR_RAMP,
    GRAPH_DEFAULT_LINES,
    GRAPH_DEFAULT_PADDING,
    GRAPH_SEGMENTS,
    RenderStyle,
)
from ..core.terrain import round_half_up
from .base import ElevationPoint, Renderer, RenderOptions
from .canvas import Canvas

STEM_COLOR = (255, 255, 255)
STEM_ALPHA = 0.4
STEM_WIDTH = 1.0
JITTER_ALPHA = 0.5


class GraphRenderer(Renderer):
    name = RenderStyle.GRAPH

    def render(self, canvas: Canvas, points: list[ElevationPoint], options: RenderOptions) -> None:
        width, height = canvas.width, canvas.height
        scale = options.scale_factor or 1.0
        padding = (options.padding or GRAPH_DEFAULT_PADDING) * scale
        num_lines = max(2, options.contour_lines or GRAPH_DEFAULT_LINES)
        rng = random.Random(options.seed)

        canvas.fill(options.background)

        line_width = 2.5 * scale
        segment_width = (width - padding * 2) / GRAPH_SEGMENTS
        for i in range(num_lines):
            y = padding + (height - padding * 2) * (1 - i / (num_lines - 1))
            color_index = min(int(i / num_lines * len(GRAPH_COLOR_RAMP)), len(GRAPH_COLOR_RAMP) - 1)
            color = GRAPH_COLOR_RAMP[color_index]

            canvas.stroke_line(
                (padding, y), (width - padding, y), color, line_width, round_cap=True
            )

            label = f"{round_half_up(i / (num_lines - 1) * 100)}%"
            font_size = round_half_up(12 * scale)
            canvas.draw_text(label, width - padding + 5, y + 4, color, size=font_size)

            # sketched overdraw
            for j in range(GRAPH_SEGMENTS):
                x1 = padding + j * segment_width
                x2 = x1 + segment_width
                jitter = rng.random() * 1.5 * scale - 0.75 * scale
                canvas.stroke_line(
                    (x1, y), (x2, y + jitter), color, line_width, alpha=JITTER_ALPHA, round_cap=True
                )

        if len(points) < 2:
            return

        stem_width = options.contour_width or STEM_WIDTH
        for point in sorted(points, key=lambda p: p.x):
            top = padding + (height - padding * 2) * (1 - point.normalized_elevation)
            canvas.stroke_line(
                (point.x, height - padding),
                (point.x, top),
                STEM_COLOR,
                stem_width,
                alpha=STEM_ALPHA,
            )
