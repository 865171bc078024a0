"""
DotGrid renderer: a fixed grid of circles sized by the nearest sample.
"""

import math

from ..constants import DOTGRID_CELLS, DOTGRID_COLOR, DOTGRID_DEFAULT_PADDING, RenderStyle
from .base import ElevationPoint, Renderer, RenderOptions
from .canvas import Canvas


class DotGridRenderer(Renderer):
    """
    Each of the 30x30 cells draws a circle whose radius interpolates between
    a minimum and maximum by the nearest point's normalized elevation.
    """

    name = RenderStyle.DOTGRID

    def __init__(self) -> None:
        self.cells_evaluated = 0

    def render(self, canvas: Canvas, points: list[ElevationPoint], options: RenderOptions) -> None:
        width, height = canvas.width, canvas.height
        scale = options.scale_factor or 1.0
        padding = (options.padding or DOTGRID_DEFAULT_PADDING) * scale
        size = min(width, height)

        canvas.fill(options.background)
        self.cells_evaluated = 0
        if not points:
            return

        cell_size = (size - padding * 2) / DOTGRID_CELLS
        offset_x = (width - size) / 2 + padding
        offset_y = (height - size) / 2 + padding

        for row in range(DOTGRID_CELLS):
            for col in range(DOTGRID_CELLS):
                x = offset_x + col * cell_size + cell_size / 2
                y = offset_y + row * cell_size + cell_size / 2
                nearest = min(points, key=lambda p: math.hypot(p.x - x, p.y - y))
                radius = dot_radius(nearest.normalized_elevation, size, scale)
                canvas.fill_circle(x, y, radius, DOTGRID_COLOR)
                self.cells_evaluated += 1


def dot_radius(normalized_elevation: float, canvas_size: int, scale_factor: float = 1.0) -> float:
    """Radius the grid uses for a given normalized elevation."""
    min_radius = 0.5 * scale_factor
    max_radius = canvas_size / 70 * scale_factor
    return min_radius + normalized_elevation * (max_radius - min_radius)
